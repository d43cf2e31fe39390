import asyncio

from core.hooks import CARD_ACTION_COMPLETED, CARD_ACTION_FAILED
from models.actor import User
from models.card import ActionRequest, CardAction, ChatCard
from modules.card_actions import NO_TARGETS_WARNING, handle_card_action, toggle_card_content

from conftest import ButtonControl, RecordingMessenger, StubDice, post_card, token


def _card(ctx, actor, item_id, author="u-player"):
    return asyncio.run(post_card(ctx, actor.get_owned_item(item_id), actor, author))


def test_damage_action_disables_then_reenables_once(make_ctx, fighter):
    ctx = make_ctx()
    message_id = _card(ctx, fighter, "sword")
    control = ButtonControl()
    asyncio.run(handle_card_action(ActionRequest(CardAction.DAMAGE, message_id), control, ctx))
    assert control.history == [True, False]
    assert ctx.notifications.warnings == []
    assert ctx.notifications.errors == []
    (roll,) = ctx.messages.created
    assert roll.descriptor.flavor == "Sword - Damage"


def test_save_without_targets_warns_and_reenables(make_ctx, fighter):
    ctx = make_ctx()
    message_id = _card(ctx, fighter, "sleep")
    control = ButtonControl()
    asyncio.run(handle_card_action(ActionRequest(CardAction.SAVE, message_id, "spells"), control, ctx))
    assert control.disabled is False
    assert ctx.notifications.warnings == [NO_TARGETS_WARNING]
    assert ctx.messages.created == []


def test_save_rolls_for_each_target_in_selection_order(make_ctx, fighter, scene):
    selected = [token(scene, "t4"), token(scene, "t2"), token(scene, "t3")]
    ctx = make_ctx(user=User(id="u-other"), selected=selected, dice=StubDice([20, 1]))
    message_id = _card(ctx, fighter, "sleep")
    control = ButtonControl()
    asyncio.run(handle_card_action(ActionRequest(CardAction.SAVE, message_id, "spells"), control, ctx))
    speakers = [m.descriptor.speaker.alias for m in ctx.messages.created]
    assert speakers == ["Goblin Chief", "Goblin A"]
    assert ctx.messages.created[0].descriptor.flavor.endswith("Success")
    assert ctx.messages.created[1].descriptor.flavor.endswith("Failure")
    assert control.history == [True, False]


def test_save_uses_user_character_without_selection(make_ctx, fighter):
    ctx = make_ctx(user=User(id="u-player", character_id="fighter"))
    message_id = _card(ctx, fighter, "sleep")
    asyncio.run(handle_card_action(ActionRequest(CardAction.SAVE, message_id, "spells"), ButtonControl(), ctx))
    (roll,) = ctx.messages.created
    assert roll.descriptor.speaker.actor_id == "fighter"


def test_non_author_cannot_roll_damage(make_ctx, fighter):
    ctx = make_ctx(user=User(id="u-stranger"))
    message_id = _card(ctx, fighter, "sword", author="u-player")
    control = ButtonControl()
    asyncio.run(handle_card_action(ActionRequest(CardAction.DAMAGE, message_id), control, ctx))
    assert ctx.messages.created == []
    assert ctx.notifications.errors == [] and ctx.notifications.warnings == []
    assert control.disabled is False


def test_gm_can_roll_on_any_card(make_ctx, fighter, gm):
    ctx = make_ctx(user=gm)
    message_id = _card(ctx, fighter, "potion", author="u-player")
    asyncio.run(handle_card_action(ActionRequest(CardAction.FORMULA, message_id), ButtonControl(), ctx))
    (roll,) = ctx.messages.created
    assert roll.descriptor.flavor == "Potion of Healing - Roll"
    assert roll.descriptor.user_id == "u-gm"


def test_missing_item_reports_error_and_stays_disabled(make_ctx, fighter):
    ctx = make_ctx()
    message_id = _card(ctx, fighter, "sword")
    ctx.actors.get("fighter").items = [i for i in fighter.items if i.id != "sword"]
    control = ButtonControl()
    asyncio.run(handle_card_action(ActionRequest(CardAction.DAMAGE, message_id), control, ctx))
    assert ctx.notifications.errors == ["The requested item sword no longer exists on Actor Aldric"]
    assert control.disabled is True
    assert ctx.messages.created == []


def test_vanished_scene_is_a_silent_no_op(make_ctx, fighter, scene):
    ctx = make_ctx()
    synthetic = fighter.with_token(token(scene, "t1"))
    message_id = _card(ctx, synthetic, "sword")
    ctx.scenes.replace_all([])
    control = ButtonControl()
    asyncio.run(handle_card_action(ActionRequest(CardAction.DAMAGE, message_id), control, ctx))
    assert ctx.notifications.errors == [] and ctx.notifications.warnings == []
    assert ctx.messages.created == []
    assert control.history == [True]


def test_unknown_message_is_a_silent_no_op(make_ctx):
    ctx = make_ctx()
    control = ButtonControl()
    asyncio.run(handle_card_action(ActionRequest(CardAction.DAMAGE, "deadbeef"), control, ctx))
    assert ctx.notifications.errors == []
    assert control.history == [True]


def test_failed_roll_is_reported_and_reenables(make_ctx, fighter):
    ctx = make_ctx()
    message_id = _card(ctx, fighter, "sword")
    failures = []

    async def on_failed(request, actor, item, error):
        failures.append(type(error).__name__)

    ctx.hooks.on(CARD_ACTION_FAILED, on_failed)
    control = ButtonControl()
    # The sword has no formula to roll
    asyncio.run(handle_card_action(ActionRequest(CardAction.FORMULA, message_id), control, ctx))
    assert ctx.notifications.errors == ["This Item does not have a formula to roll!"]
    assert ctx.messages.created == []
    assert control.history == [True, False]
    assert failures == ["FormulaMissingError"]


def test_completed_hook_reports_targets(make_ctx, fighter, scene):
    ctx = make_ctx(selected=[token(scene, "t3")])
    message_id = _card(ctx, fighter, "sleep")
    seen = []

    async def on_done(request, actor, item, targets):
        seen.append((request.action, item.id, [t.name for t in targets]))

    ctx.hooks.on(CARD_ACTION_COMPLETED, on_done)
    asyncio.run(handle_card_action(ActionRequest(CardAction.SAVE, message_id, "spells"), ButtonControl(), ctx))
    assert seen == [(CardAction.SAVE, "sleep", ["Goblin A"])]


def test_toggle_card_content():
    card = ChatCard(item_id="sword", actor_id="fighter")
    assert toggle_card_content(card) is False
    assert card.content_visible is False
    assert toggle_card_content(card) is True


class SlowMessenger(RecordingMessenger):
    async def create(self, descriptor, extra=None):
        await asyncio.sleep(0.01)
        return await super().create(descriptor, extra)


def test_second_click_while_running_is_ignored(make_ctx, fighter):
    ctx = make_ctx(messages=SlowMessenger())
    message_id = _card(ctx, fighter, "sword")
    control = ButtonControl()
    request = ActionRequest(CardAction.DAMAGE, message_id)

    async def double_click():
        await asyncio.gather(
            handle_card_action(request, control, ctx),
            handle_card_action(request, control, ctx),
        )

    asyncio.run(double_click())
    assert len(ctx.messages.created) == 1
    assert control.history == [True, False]


def test_disabled_control_does_nothing(make_ctx, fighter):
    ctx = make_ctx()
    message_id = _card(ctx, fighter, "sword")
    control = ButtonControl()
    control.disabled = True
    asyncio.run(handle_card_action(ActionRequest(CardAction.DAMAGE, message_id), control, ctx))
    assert ctx.messages.created == []
    assert control.history == [True]


def test_card_outlives_its_own_rolls(make_ctx, fighter):
    ctx = make_ctx(messages=RecordingMessenger(limit=3))
    message_id = _card(ctx, fighter, "potion")
    control = ButtonControl()
    for _ in range(5):
        asyncio.run(handle_card_action(ActionRequest(CardAction.DAMAGE, message_id), control, ctx))
    assert len(ctx.messages.created) == 5
    assert ctx.messages.get(message_id) is not None
    assert control.disabled is False
