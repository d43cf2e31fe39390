import logging
import discord
from discord.ext import commands
from discord import app_commands

from core import embeds  # type: ignore
from core.helpers import send_ephemeral  # type: ignore
from modules.rolls import ItemRollError  # type: ignore

logger = logging.getLogger('errors')

# Errors whose message is safe to show the user as-is
USER_FACING = (
    commands.BadArgument,
    commands.MissingRequiredArgument,
    app_commands.CheckFailure,
    ItemRollError,
)

def _unwrap(error: Exception) -> Exception:
    return getattr(error, 'original', error)

class ErrorHandlerCog(commands.Cog):
    """Turns command failures into ephemeral error embeds and log records."""
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_command_error(self, ctx: commands.Context, error: Exception):
        orig = _unwrap(error)
        if isinstance(orig, commands.CommandNotFound):
            return
        if isinstance(orig, USER_FACING):
            await ctx.reply(embed=embeds.error(str(orig)), mention_author=False)
            return
        logger.exception('Unhandled prefix command error in %s: %s', ctx.command, orig)
        await ctx.reply(embed=embeds.error('An unexpected error occurred.'), mention_author=False)

    @commands.Cog.listener()
    async def on_app_command_completion(self, interaction: discord.Interaction, command: app_commands.Command):
        logger.info('/%s completed for %s', command.qualified_name, interaction.user)

    @commands.Cog.listener()
    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        orig = _unwrap(error)
        name = interaction.command.qualified_name if interaction.command else '?'
        if isinstance(orig, USER_FACING):
            logger.warning('/%s refused for %s: %s', name, interaction.user, orig)
            text = str(orig)
        else:
            logger.exception('/%s failed for %s', name, interaction.user, exc_info=orig)
            text = 'An unexpected error occurred.'
        try:
            await send_ephemeral(interaction, embed=embeds.error(text or 'Error.'))
        except discord.HTTPException:
            logger.warning('Could not report the error to %s', interaction.user)

async def setup(bot: commands.Bot):
    await bot.add_cog(ErrorHandlerCog(bot))
