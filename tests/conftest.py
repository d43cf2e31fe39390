from __future__ import annotations
from typing import List, Optional

import pytest

from core.context import RollContext
from core.hooks import HookRegistry
from models.actor import Actor, Scene, Token, User
from models.card import ChatCard, MessageDescriptor, Speaker
from models.item import Item
from modules.rolls import card_buttons, card_template_data
from modules.templates import MarkdownEnricher
from storage.engine import ActorRegistry, MessageLog, SceneRegistry


class StaticUserDirectory:
    def __init__(self, gm_ids=()):
        self._gm_ids = [str(i) for i in gm_ids]

    def gm_ids(self) -> List[str]:
        return list(self._gm_ids)


class RecordingMessenger(MessageLog):
    def __init__(self, limit: int = 1000):
        super().__init__(limit=limit)
        self.created = []

    async def create(self, descriptor, extra=None):
        message = await super().create(descriptor, extra)
        self.created.append(message)
        return message


class RecordingNotifier:
    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    async def error(self, text: str) -> None:
        self.errors.append(text)

    async def warn(self, text: str) -> None:
        self.warnings.append(text)


class EchoRenderer:
    def __init__(self):
        self.calls = []

    async def render(self, template, data):
        self.calls.append((template, data))
        return f"card:{data['item'].name}"


class StubDice:
    """Returns queued totals (10 once the queue runs dry) and records every formula."""
    def __init__(self, totals=()):
        self.totals = list(totals)
        self.formulas: List[str] = []

    def roll(self, formula):
        self.formulas.append(formula)
        total = self.totals.pop(0) if self.totals else 10
        return total, [total]


class ButtonControl:
    def __init__(self):
        self._disabled = False
        self.history: List[bool] = []

    @property
    def disabled(self) -> bool:
        return self._disabled

    @disabled.setter
    def disabled(self, value: bool) -> None:
        self._disabled = value
        self.history.append(value)


def _items() -> list:
    return [
        {"_id": "sword", "name": "Sword", "type": "weapon",
         "data": {"melee": True, "damage": "1d8", "qualities": "Melee", "equipped": True}},
        {"_id": "bow", "name": "Short Bow", "type": "weapon",
         "data": {"missile": True, "damage": "1d6", "qualities": ["Missile", "Two-handed"]}},
        {"_id": "club", "name": "Club", "type": "weapon", "data": {"damage": "1d4", "equipped": False}},
        {"_id": "potion", "name": "Potion of Healing", "type": "item",
         "data": {"roll": "1d6+@item.bonus", "bonus": 2, "damage": "1d6+1", "actionType": "heal",
                  "description": "<p>Restores <strong>1d6+1</strong> hp.</p>"}},
        {"_id": "sleep", "name": "Sleep", "type": "spell",
         "data": {"class": "Magic-User", "lvl": 1, "range": "240'", "duration": "4d4 turns",
                  "save": "spells", "description": "Puts creatures to sleep."}},
        {"_id": "rope", "name": "Rope", "type": "item", "data": {"description": "50'"}},
    ]


@pytest.fixture
def fighter() -> Actor:
    return Actor.from_dict({
        "_id": "fighter", "name": "Aldric", "owner": "u-player",
        "items": _items(), "attack_bonus": 1,
        "abilities": {"STR": 16, "DEX": 9},
        "saves": {"death": 12, "wands": 13, "paralysis": 14, "breath": 15, "spells": 16},
    })


@pytest.fixture
def goblin() -> Actor:
    return Actor.from_dict({
        "_id": "goblin", "name": "Goblin", "owner": None,
        "saves": {"death": 14, "wands": 15, "paralysis": 16, "breath": 17, "spells": 18},
    })


@pytest.fixture
def scene() -> Scene:
    return Scene.from_dict({
        "_id": "keep", "name": "Keep on the Borderlands",
        "tokens": [
            {"_id": "t1", "name": "Aldric (token)", "actorId": "fighter", "actorData": {"attack_bonus": 3}},
            {"_id": "t2", "name": "Torch", "actorId": None},
            {"_id": "t3", "name": "Goblin A", "actorId": "goblin"},
            {"_id": "t4", "name": "Goblin B", "actorId": "goblin", "actorData": {"name": "Goblin Chief"}},
        ],
    })


@pytest.fixture
def player() -> User:
    return User(id="u-player", name="Player")


@pytest.fixture
def gm() -> User:
    return User(id="u-gm", name="GM", is_gm=True)


@pytest.fixture
def make_ctx(fighter, goblin, scene, player):
    def _make(user: Optional[User] = None, selected=(), roll_mode=None, messages=None, dice=None):
        kwargs = {}
        if roll_mode is not None:
            kwargs["roll_mode"] = roll_mode
        return RollContext(
            user=user or player,
            actors=ActorRegistry([fighter, goblin]),
            scenes=SceneRegistry([scene]),
            users=StaticUserDirectory(["u-gm", "u-gm2"]),
            messages=messages or RecordingMessenger(),
            notifications=RecordingNotifier(),
            templates=EchoRenderer(),
            enricher=MarkdownEnricher(),
            dice=dice or StubDice(),
            selected_tokens=list(selected),
            hooks=HookRegistry(),
            **kwargs,
        )
    return _make


async def post_card(ctx: RollContext, item: Item, actor: Actor, author: str) -> str:
    """Store a card message authored by `author` and return its id."""
    data = card_template_data(item, actor, ctx)
    card = ChatCard(item_id=item.id, actor_id=actor.id, token_key=actor.token_key, buttons=card_buttons(data))
    descriptor = MessageDescriptor(user_id=author, content="card", speaker=Speaker(actor.id, actor.token_key, actor.name), card=card)
    message = await MessageLog.create(ctx.messages, descriptor)
    return message.id


def token(scene: Scene, token_id: str) -> Token:
    t = scene.get_embedded_token(token_id)
    assert t is not None
    return t
