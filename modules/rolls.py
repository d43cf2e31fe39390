from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from core.config import CARD_TEMPLATE
from core.context import RollContext
from core.hooks import ITEM_CARD_CREATED, ITEM_FORMULA_ROLLED
from models.actor import Actor
from models.card import (
    CardAction, CardButton, ChatCard, Message, MessageDescriptor, MessageType,
    RollMode, RollResult, Speaker,
)
from models.item import Item
from modules.presenter import present_item
from modules.utils import ability_modifier, format_roll, save_emoji, save_name
from utils.dice import substitute_roll_data

logger = logging.getLogger('osebot')


class ItemRollError(Exception):
    """An item cannot be rolled the way it was asked to."""

class FormulaMissingError(ItemRollError):
    pass

class DamageMissingError(ItemRollError):
    pass

class UnknownSaveError(ItemRollError):
    pass


# --- Message helpers ---

def speaker_for(actor: Actor) -> Speaker:
    return Speaker(actor_id=actor.id, token_key=actor.token_key, alias=actor.name)

def apply_roll_mode(descriptor: MessageDescriptor, ctx: RollContext) -> MessageDescriptor:
    """Whisper GM and blind rolls to the GMs (blind also hides the result).

    Self rolls are whispered to the rolling user only.
    """
    mode = ctx.roll_mode
    if mode in (RollMode.GM, RollMode.BLIND):
        descriptor.whisper = list(ctx.users.gm_ids())
    elif mode is RollMode.SELF:
        descriptor.whisper = [ctx.user.id]
    if mode is RollMode.BLIND:
        descriptor.blind = True
    return descriptor

def _evaluate(formula: str, flavor: str, ctx: RollContext, data: Optional[Mapping[str, Any]] = None) -> RollResult:
    expr = substitute_roll_data(formula, data) if data else formula
    total, rolls = ctx.dice.roll(expr)
    return RollResult(total=total, formula=expr, rolls=rolls, flavor=flavor)

async def _to_message(result: RollResult, actor: Actor, ctx: RollContext) -> Message:
    descriptor = MessageDescriptor(
        user_id=ctx.user.id,
        type=MessageType.ROLL,
        content=format_roll(result),
        speaker=speaker_for(actor),
        flavor=result.flavor,
        roll=result,
    )
    return await ctx.messages.create(apply_roll_mode(descriptor, ctx))


# --- Actor rolls ---

ATTACK_ABILITY = {"Melee": "STR", "Missile": "DEX"}

async def roll_attack(actor: Actor, ctx: RollContext, attack_type: Optional[str] = None) -> RollResult:
    bonus = actor.attack_bonus
    if attack_type in ATTACK_ABILITY:
        bonus += ability_modifier(actor.abilities, ATTACK_ABILITY[attack_type])
    formula = f"1d20+{bonus}" if bonus >= 0 else f"1d20{bonus}"
    label = f"{attack_type} Attack" if attack_type else "Attack"
    result = _evaluate(formula, f"{actor.name} - {label}", ctx)
    await _to_message(result, actor, ctx)
    return result

async def roll_save(actor: Actor, ability: Optional[str], ctx: RollContext) -> RollResult:
    code = str(ability or "").lower()
    if code not in actor.saves:
        raise UnknownSaveError(f"{actor.name} has no saving throw against {ability!r}")
    target = actor.saves[code]
    result = _evaluate("1d20", "", ctx)
    outcome = "Success" if result.total >= target else "Failure"
    result.flavor = f"{save_emoji(code)} {actor.name} - Save vs {save_name(code)} ({target}+): {outcome}".strip()
    await _to_message(result, actor, ctx)
    return result


# --- Item rolls ---

async def roll_damage(item: Item, actor: Actor, ctx: RollContext) -> RollResult:
    if not item.has_damage:
        raise DamageMissingError(f"{item.name} does not have a damage formula to roll!")
    label = "Healing" if item.is_healing else "Damage"
    result = _evaluate(str(item.data["damage"]), f"{item.name} - {label}", ctx, {"item": item.data})
    await _to_message(result, actor, ctx)
    return result

async def roll_formula(item: Item, actor: Actor, ctx: RollContext) -> RollResult:
    if not item.has_formula:
        raise FormulaMissingError("This Item does not have a formula to roll!")
    roll_data = {"item": item.data}
    title = f"{item.name} - Roll"
    result = _evaluate(str(item.data["roll"]), item.data.get("chatFlavor") or title, ctx, roll_data)
    message = await _to_message(result, actor, ctx)
    await ctx.hooks.emit(ITEM_FORMULA_ROLLED, item=item, actor=actor, result=result, message=message)
    return result

async def roll_weapon(item: Item, actor: Actor, ctx: RollContext) -> Tuple[bool, RollResult]:
    """Roll the weapon's attack. Returns (handled, result); handled weapons post no item card."""
    if item.data.get("missile"):
        return True, await roll_attack(actor, ctx, "Missile")
    if item.data.get("melee"):
        return True, await roll_attack(actor, ctx, "Melee")
    return False, await roll_attack(actor, ctx)


def card_template_data(item: Item, actor: Actor, ctx: RollContext, render_options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    return {
        "actor": actor,
        "token_id": actor.token_key,
        "item": item,
        "data": present_item(item, ctx.enricher, render_options),
        "labels": item.labels,
        "is_healing": item.is_healing,
        "has_damage": item.has_damage,
        "is_spell": item.is_spell,
        "has_save": item.has_save,
        "has_formula": item.has_formula,
    }

def card_buttons(template_data: Mapping[str, Any]) -> List[CardButton]:
    item: Item = template_data["item"]
    buttons: List[CardButton] = []
    if template_data.get("has_damage"):
        label = "Healing" if template_data.get("is_healing") else "Damage"
        buttons.append(CardButton(CardAction.DAMAGE, label))
    if template_data.get("has_formula"):
        buttons.append(CardButton(CardAction.FORMULA, "Roll Formula"))
    if template_data.get("has_save"):
        ability = str(item.data["save"]).lower()
        buttons.append(CardButton(CardAction.SAVE, f"Save vs {save_name(ability)}", ability))
    return buttons

async def roll_item(item: Item, actor: Actor, ctx: RollContext) -> Union[RollResult, Message]:
    """Roll an item to chat, creating a card with follow up damage, formula and save buttons.

    Missile and melee weapons only roll their attack. A weapon that is neither
    rolls a generic attack and still gets its card.
    """
    if item.is_weapon:
        handled, attack = await roll_weapon(item, actor, ctx)
        if handled:
            return attack

    template_data = card_template_data(item, actor, ctx)
    content = await ctx.templates.render(CARD_TEMPLATE, template_data)
    card = ChatCard(
        item_id=item.id,
        actor_id=actor.id,
        token_key=actor.token_key,
        buttons=card_buttons(template_data),
    )
    descriptor = MessageDescriptor(
        user_id=ctx.user.id,
        type=MessageType.OTHER,
        content=content,
        speaker=speaker_for(actor),
        card=card,
    )
    message = await ctx.messages.create(apply_roll_mode(descriptor, ctx))
    logger.info('Item card %s for %s posted as message %s', item.name, actor.name, message.id)
    await ctx.hooks.emit(ITEM_CARD_CREATED, item=item, actor=actor, message=message)
    return message

__all__ = [
    "ItemRollError", "FormulaMissingError", "DamageMissingError", "UnknownSaveError",
    "apply_roll_mode", "speaker_for", "roll_attack", "roll_save", "roll_damage",
    "roll_formula", "roll_weapon", "roll_item", "card_template_data", "card_buttons",
]
