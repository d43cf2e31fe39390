import logging
import os
from pathlib import Path

import discord
from discord import app_commands
from discord.ext import commands

from core.config import TOKEN, GUILD_ID, SAVE_FOLDER  # type: ignore
from core.hooks import HOOKS, ITEM_CARD_CREATED, CARD_ACTION_FAILED, hook  # type: ignore

# Basic logging
logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(name)s: %(message)s')
logger = logging.getLogger('osebot')

INTENTS = discord.Intents.default()
INTENTS.members = True

BOT_PREFIX = '!'

class OSEBot(commands.Bot):
    """Launcher bot.

    - Discover & load cogs in ./cogs (single pass)
    - Route app command errors to the errors cog
    - Sync slash commands
    """
    def __init__(self):
        super().__init__(command_prefix=BOT_PREFIX, intents=INTENTS)

    async def setup_hook(self):
        cogs_dir = Path(__file__).parent / 'cogs'
        if cogs_dir.exists():
            for py in sorted(cogs_dir.glob('*.py')):
                if py.name.startswith('_'):
                    continue
                mod_name = f'cogs.{py.stem}'
                try:
                    await self.load_extension(mod_name)
                    logger.info('Loaded cog module %s', mod_name)
                except commands.ExtensionError as e:
                    logger.exception('Failed loading %s: %s', mod_name, e)

        @self.tree.error
        async def _route_errors(interaction: discord.Interaction, error: app_commands.AppCommandError):
            self.dispatch('app_command_error', interaction, error)

        # Sync slash commands (prefer fast per-guild availability)
        try:
            if GUILD_ID:
                guild = discord.Object(id=int(GUILD_ID))
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                logger.info('Synced %d guild app commands for %s', len(synced), GUILD_ID)
                await HOOKS.emit('commands.synced', scope='guild', guild_id=int(GUILD_ID), count=len(synced))
            else:
                synced = await self.tree.sync()
                logger.info('Synced %d global app commands', len(synced))
                await HOOKS.emit('commands.synced', scope='global', count=len(synced))
        except discord.HTTPException:
            logger.exception('Failed syncing app commands')
        logger.info('Setup complete.')
        await HOOKS.emit('bot.ready')

bot = OSEBot()

@hook(ITEM_CARD_CREATED)
async def _log_card(item, actor, message, **_):
    logger.info('Card %s: %s rolled %s (whisper=%s)', message.id, actor.name, item.name, bool(message.descriptor.whisper))

@hook(CARD_ACTION_FAILED)
async def _log_failed_action(request, actor, item, error, **_):
    logger.warning('Card action %s on %s/%s failed: %s', request.action.value, actor.name, item.name, error)

@bot.event
async def on_ready():
    logger.info('Logged in as %s (%s)', bot.user, bot.user and bot.user.id)
    logger.info('Data folder: %s', os.path.abspath(SAVE_FOLDER))
    logger.info('Guilds seen: %s', [g.id for g in bot.guilds])


# ---- Slash Commands ----
@bot.tree.command(name="ping", description="Ping the bot to check latency")
async def ping_slash(interaction: discord.Interaction):
    await interaction.response.send_message("Pong!", ephemeral=True)


@bot.tree.command(name="help", description="Show available commands")
async def help_slash(interaction: discord.Interaction):
    lines: list[str] = []
    seen = set()
    for cmd in bot.tree.get_commands():
        if cmd.name in seen:
            continue
        seen.add(cmd.name)
        lines.append(f"/{cmd.name} - {getattr(cmd, 'description', '') or 'No description'}")
    text = "\n".join(lines) or "No commands registered."
    await interaction.response.send_message(f"```\n{text}\n```", ephemeral=True)


def main():
    if not TOKEN:
        logger.error('No token found! Set DISCORD_TOKEN in token.env.')
        return
    bot.run(TOKEN, log_handler=None)

if __name__ == '__main__':
    main()
