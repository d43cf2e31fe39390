from __future__ import annotations
import logging
from typing import Protocol

from core.context import RollContext
from core.hooks import CARD_ACTION_COMPLETED, CARD_ACTION_FAILED
from models.card import ActionRequest, CardAction, ChatCard
from modules.resolver import resolve_actor, resolve_targets
from modules.rolls import roll_damage, roll_formula, roll_save

logger = logging.getLogger('osebot')

NO_TARGETS_WARNING = "You must have one or more controlled Tokens in order to use this option."


class Control(Protocol):
    """The clicked button; discord.ui.Button satisfies this."""
    disabled: bool


async def handle_card_action(request: ActionRequest, control: Control, ctx: RollContext) -> None:
    """Run the follow up roll behind a chat card button.

    The control is disabled while the action runs. Permission denials leave it
    enabled again; a card whose actor or item is gone leaves it disabled.
    A control that is already disabled means the action is running or the
    card is dead, so nothing happens.
    """
    if control.disabled:
        logger.debug('Card action %s on %s ignored: control disabled', request.action.value, request.message_id)
        return
    control.disabled = True
    action = request.action

    message = ctx.messages.get(request.message_id)
    card = message.card if message is not None else None
    if card is None:
        logger.debug('Card action %s: message %s has no card', action.value, request.message_id)
        return

    # Validate permission to proceed with the roll
    if not (action.is_targeted or ctx.user.is_gm or message.is_author(ctx.user)):
        logger.info('Card action %s on %s refused for user %s', action.value, message.id, ctx.user.id)
        control.disabled = False
        return

    # Get the Actor, possibly synthetic from a Token
    actor = resolve_actor(card, ctx)
    if actor is None:
        logger.debug('Card action %s: actor for message %s not found', action.value, message.id)
        return

    item = actor.get_owned_item(card.item_id)
    if item is None:
        await ctx.notifications.error(
            f"The requested item {card.item_id} no longer exists on Actor {actor.name}"
        )
        return

    targets = []
    if action.is_targeted:
        targets = resolve_targets(ctx)
        if not targets:
            await ctx.notifications.warn(NO_TARGETS_WARNING)
            control.disabled = False
            return

    try:
        if action is CardAction.DAMAGE:
            await roll_damage(item, actor, ctx)
        elif action is CardAction.FORMULA:
            await roll_formula(item, actor, ctx)
        elif action is CardAction.SAVE:
            for target in targets:
                await roll_save(target, request.ability, ctx)
    except Exception as e:
        logger.exception('Card action %s for %s failed', action.value, item.name)
        await ctx.notifications.error(str(e) or f"{action.value.title()} roll failed.")
        await ctx.hooks.emit(CARD_ACTION_FAILED, request=request, actor=actor, item=item, error=e)
    else:
        await ctx.hooks.emit(CARD_ACTION_COMPLETED, request=request, actor=actor, item=item, targets=targets)
    finally:
        control.disabled = False


def toggle_card_content(card: ChatCard) -> bool:
    """Show or hide the card's detail section; returns the new visibility."""
    card.content_visible = not card.content_visible
    return card.content_visible

__all__ = ["handle_card_action", "toggle_card_content", "NO_TARGETS_WARNING", "Control"]
