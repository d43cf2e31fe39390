from __future__ import annotations
import logging
from typing import Dict, List, Optional, Set

import discord
from discord import app_commands
from discord.ext import commands

from core import embeds
from core.config import CARDS_FOLDER, DEFAULT_ROLL_MODE
from core.context import RollContext
from core.helpers import send_ephemeral, user_for
from core.hooks import HOOKS
from core.permissions import check_item_permission, is_gm_member
from models.actor import Actor, Token
from models.card import ActionRequest, CardAction, Message, RollMode
from modules.card_actions import handle_card_action, toggle_card_content
from modules.rolls import ItemRollError, roll_formula, roll_item
from modules.templates import CardRenderer, MarkdownEnricher
from storage import files
from storage.engine import ActorRegistry, MessageLog, SceneRegistry
from utils.dice import DiceRoller

logger = logging.getLogger('osebot')

BUTTON_STYLES = {
    CardAction.DAMAGE: discord.ButtonStyle.danger,
    CardAction.FORMULA: discord.ButtonStyle.primary,
    CardAction.SAVE: discord.ButtonStyle.secondary,
}


# --- Card buttons (dynamic items, routed by custom_id) ---

class CardActionButton(discord.ui.DynamicItem[discord.ui.Button], template=r'card:(?P<action>damage|formula|save):(?P<message_id>[0-9a-f]+)(?::(?P<ability>\w+))?'):
    def __init__(self, request: ActionRequest, label: str | None = None, disabled: bool = False):
        super().__init__(discord.ui.Button(
            label=label or request.action.value.title(),
            style=BUTTON_STYLES[request.action],
            custom_id=request.encode(),
            disabled=disabled,
        ))
        self.request = request

    @classmethod
    async def from_custom_id(cls, interaction: discord.Interaction, item: discord.ui.Button, match):
        return cls(ActionRequest.decode(item.custom_id), label=item.label, disabled=item.disabled)

    async def callback(self, interaction: discord.Interaction):
        cog = interaction.client.get_cog('ItemCardsCog')
        if cog is None:
            await send_ephemeral(interaction, embed=embeds.error("Item cards are not loaded."))
            return
        await cog.run_card_action(interaction, self.request, self.item)


class CardToggleButton(discord.ui.DynamicItem[discord.ui.Button], template=r'cardtoggle:(?P<message_id>[0-9a-f]+)'):
    def __init__(self, message_id: str):
        super().__init__(discord.ui.Button(
            label="Details",
            style=discord.ButtonStyle.secondary,
            custom_id=f"cardtoggle:{message_id}",
        ))
        self.message_id = message_id

    @classmethod
    async def from_custom_id(cls, interaction: discord.Interaction, item: discord.ui.Button, match):
        return cls(match['message_id'])

    async def callback(self, interaction: discord.Interaction):
        cog = interaction.client.get_cog('ItemCardsCog')
        message = cog.log.get(self.message_id) if cog else None
        if message is None or message.card is None:
            await interaction.response.defer()
            return
        toggle_card_content(message.card)
        await cog.log.save(message)
        await interaction.response.edit_message(embed=embeds.message_embed(message))


def card_view(message: Message) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    for b in message.card.buttons:
        view.add_item(CardActionButton(ActionRequest(b.action, message.id, b.ability), b.label))
    view.add_item(CardToggleButton(message.id))
    return view


# --- Collaborators backed by a Discord interaction ---

class GuildUserDirectory:
    def __init__(self, guild: Optional[discord.Guild]):
        self._guild = guild

    def gm_ids(self) -> List[str]:
        if self._guild is None:
            return []
        return [str(m.id) for m in self._guild.members if not m.bot and is_gm_member(m)]


class InteractionNotifier:
    def __init__(self, interaction: discord.Interaction):
        self._interaction = interaction

    async def error(self, text: str) -> None:
        await send_ephemeral(self._interaction, embed=embeds.error(text))

    async def warn(self, text: str) -> None:
        await send_ephemeral(self._interaction, embed=embeds.warn(text))


class InteractionMessenger:
    """Stores messages in the log and posts them: publicly, or by DM to whisper recipients."""

    def __init__(self, log: MessageLog, interaction: discord.Interaction, guild: Optional[discord.Guild]):
        self._log = log
        self._interaction = interaction
        self._guild = guild

    def get(self, message_id: str) -> Optional[Message]:
        return self._log.get(message_id)

    async def create(self, descriptor) -> Message:
        extra = {'guild_id': self._guild.id} if self._guild is not None else None
        message = await self._log.create(descriptor, extra)
        await self._publish(message)
        return message

    async def _publish(self, message: Message) -> None:
        d = message.descriptor
        kwargs = {'embed': embeds.message_embed(message)}
        if d.card is not None:
            kwargs['view'] = card_view(message)
        if not d.whisper:
            await self._interaction.channel.send(**kwargs)
            return
        for uid in d.whisper:
            target = (self._guild.get_member(int(uid)) if self._guild else None) or self._interaction.client.get_user(int(uid))
            if target is None:
                logger.warning('Whisper recipient %s not found', uid)
                continue
            try:
                await target.send(**kwargs)
            except discord.Forbidden:
                logger.warning('Cannot DM whisper recipient %s', uid)
        if str(self._interaction.user.id) not in d.whisper:
            await send_ephemeral(self._interaction, embed=embeds.message_embed(message, hidden=d.blind))


class ItemCardsCog(commands.Cog):
    """Roll items to chat as interactive cards."""
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.actors = ActorRegistry()
        self.scenes = SceneRegistry()
        self.log = MessageLog(folder=CARDS_FOLDER)
        self.renderer = CardRenderer()
        self.enricher = MarkdownEnricher()
        self.dice = DiceRoller()
        self.selections: Dict[int, List[str]] = {}
        self.roll_modes: Dict[int, RollMode] = {}
        self._in_flight: Set[str] = set()

    async def cog_load(self):
        self.bot.add_dynamic_items(CardActionButton, CardToggleButton)
        await self.log.load()
        await self.reload()

    async def reload(self) -> tuple[int, int]:
        actors = await files.async_load_actors()
        scenes = await files.async_load_scenes()
        self.actors.replace_all(actors)
        self.scenes.replace_all(scenes)
        logger.info('Loaded %d actors and %d scenes', len(actors), len(scenes))
        return len(actors), len(scenes)

    # Helpers
    def _selected_tokens(self, user_id: int) -> List[Token]:
        out: List[Token] = []
        for key in self.selections.get(user_id, []):
            scene_id, _, token_id = key.partition('.')
            scene = self.scenes.get(scene_id)
            token = scene.get_embedded_token(token_id) if scene else None
            if token is not None:
                out.append(token)
        return out

    def context_for(self, interaction: discord.Interaction, guild: Optional[discord.Guild] = None) -> RollContext:
        guild = guild or interaction.guild
        member = (guild.get_member(interaction.user.id) if guild else None) or interaction.user
        owned = self.actors.owned_by(str(member.id))
        return RollContext(
            user=user_for(member, owned[0].id if owned else None),
            actors=self.actors,
            scenes=self.scenes,
            users=GuildUserDirectory(guild),
            messages=InteractionMessenger(self.log, interaction, guild),
            notifications=InteractionNotifier(interaction),
            templates=self.renderer,
            enricher=self.enricher,
            dice=self.dice,
            selected_tokens=self._selected_tokens(member.id),
            roll_mode=self.roll_modes.get(member.id, RollMode.parse(DEFAULT_ROLL_MODE, RollMode.PUBLIC)),
            hooks=HOOKS,
        )

    def _resolve_roller(self, ctx: RollContext, actor_name: str, token_key: Optional[str]) -> tuple[Optional[Actor], Optional[str]]:
        actor = self.actors.find(actor_name)
        if actor is None:
            return None, "❌ Actor not found."
        if not ctx.user.is_gm and actor.owner != ctx.user.id:
            return None, "🚫 You do not own this actor."
        if token_key:
            scene_id, _, token_id = token_key.partition('.')
            scene = self.scenes.get(scene_id)
            token = scene.get_embedded_token(token_id) if scene else None
            if token is None or token.actor_id != actor.id:
                return None, f"❌ Token {token_key} is not a placed token of {actor.name}."
            actor = actor.with_token(token)
        return actor, None

    async def run_card_action(self, interaction: discord.Interaction, request: ActionRequest, button: discord.ui.Button):
        message = self.log.get(request.message_id)
        guild = interaction.guild
        if guild is None and message is not None and message.extra.get('guild_id'):
            guild = self.bot.get_guild(message.extra['guild_id'])
        ctx = self.context_for(interaction, guild)
        # Each click gets a fresh Button; repeat clicks are matched by custom_id
        key = request.encode()
        if key in self._in_flight:
            logger.debug('Card action %s already running', key)
            await interaction.response.defer()
            return
        self._in_flight.add(key)
        try:
            await interaction.response.defer()
            await self._sync_button(interaction, button, disabled=True)
            await handle_card_action(request, button, ctx)
            await self._sync_button(interaction, button)
        finally:
            self._in_flight.discard(key)

    async def _sync_button(self, interaction: discord.Interaction, button: discord.ui.Button, disabled: Optional[bool] = None) -> None:
        if interaction.message is None:
            return
        view = discord.ui.View.from_message(interaction.message, timeout=None)
        for child in view.children:
            if getattr(child, 'custom_id', None) == button.custom_id:
                child.disabled = button.disabled if disabled is None else disabled
        try:
            await interaction.edit_original_response(view=view)
        except discord.HTTPException as e:
            logger.warning('Could not update card buttons: %s', e)

    # Slash commands
    @app_commands.command(name="item", description="Roll an item to chat as a card")
    @app_commands.describe(actor="Actor name", item="Item name", token="Placed token to roll as (scene.token)")
    async def item(self, interaction: discord.Interaction, actor: str, item: str, token: Optional[str] = None):
        ok, reason = check_item_permission(interaction)
        if not ok:
            await send_ephemeral(interaction, reason or "Not allowed.")
            return
        ctx = self.context_for(interaction)
        roller, problem = self._resolve_roller(ctx, actor, token)
        if roller is None:
            await send_ephemeral(interaction, problem)
            return
        it = roller.find_item(item)
        if it is None:
            await send_ephemeral(interaction, f"❌ {roller.name} has no item named {item}.")
            return
        logger.info("/item %s by %s for %s", it.name, interaction.user, roller.name)
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            await roll_item(it, roller, ctx)
        except (ItemRollError, ValueError) as e:
            logger.warning("/item %s failed: %s", it.name, e)
            await ctx.notifications.error(str(e))
            return
        await interaction.followup.send(f"🎲 Rolled **{it.name}**.", ephemeral=True)

    @app_commands.command(name="formula", description="Roll an item's formula")
    @app_commands.describe(actor="Actor name", item="Item name")
    async def formula(self, interaction: discord.Interaction, actor: str, item: str):
        ok, reason = check_item_permission(interaction)
        if not ok:
            await send_ephemeral(interaction, reason or "Not allowed.")
            return
        ctx = self.context_for(interaction)
        roller, problem = self._resolve_roller(ctx, actor, None)
        if roller is None:
            await send_ephemeral(interaction, problem)
            return
        it = roller.find_item(item)
        if it is None:
            await send_ephemeral(interaction, f"❌ {roller.name} has no item named {item}.")
            return
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            result = await roll_formula(it, roller, ctx)
        except (ItemRollError, ValueError) as e:
            await ctx.notifications.error(str(e))
            return
        await interaction.followup.send(f"🎲 {result.flavor}: **{result.total}**", ephemeral=True)

    @app_commands.command(name="select", description="Select tokens (scene.token, comma separated); blank clears")
    async def select(self, interaction: discord.Interaction, tokens: str = ""):
        keys = [k.strip() for k in tokens.replace(';', ',').split(',') if k.strip()]
        self.selections[interaction.user.id] = keys
        found = self._selected_tokens(interaction.user.id)
        if not keys:
            await send_ephemeral(interaction, "Selection cleared.")
            return
        names = ", ".join(t.name or t.key for t in found) or "none"
        missing = len(keys) - len(found)
        note = f" ({missing} not found)" if missing else ""
        await send_ephemeral(interaction, f"🎯 Selected: {names}{note}")

    @app_commands.command(name="rollmode", description="Choose who sees your rolls")
    @app_commands.choices(mode=[
        app_commands.Choice(name="Public", value=RollMode.PUBLIC.value),
        app_commands.Choice(name="GM only", value=RollMode.GM.value),
        app_commands.Choice(name="Blind GM", value=RollMode.BLIND.value),
        app_commands.Choice(name="Self", value=RollMode.SELF.value),
    ])
    async def rollmode(self, interaction: discord.Interaction, mode: app_commands.Choice[str]):
        self.roll_modes[interaction.user.id] = RollMode.parse(mode.value)
        await send_ephemeral(interaction, f"Roll mode set to **{mode.name}**.")

    @app_commands.command(name="itemreload", description="GM: reload actors and scenes from disk")
    async def itemreload(self, interaction: discord.Interaction):
        if not is_gm_member(interaction.user):
            await send_ephemeral(interaction, "🚫 GM only.")
            return
        n_actors, n_scenes = await self.reload()
        await send_ephemeral(interaction, embed=embeds.info(f"{n_actors} actors, {n_scenes} scenes.", "Reloaded"))

    # Autocomplete
    @item.autocomplete('actor')
    @formula.autocomplete('actor')
    async def ac_actor(self, interaction: discord.Interaction, current: str):
        cur = (current or '').lower()
        names = sorted(a.name for a in self.actors.all() if cur in a.name.lower())
        return [app_commands.Choice(name=n, value=n) for n in names[:25]]

    @item.autocomplete('item')
    @formula.autocomplete('item')
    async def ac_item(self, interaction: discord.Interaction, current: str):
        actor = self.actors.find(getattr(interaction.namespace, 'actor', '') or '')
        if actor is None:
            return []
        cur = (current or '').lower()
        names = sorted(i.name for i in actor.items if cur in i.name.lower())
        return [app_commands.Choice(name=n, value=n) for n in names[:25]]

async def setup(bot: commands.Bot):
    await bot.add_cog(ItemCardsCog(bot))
