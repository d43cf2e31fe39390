from __future__ import annotations
import logging
import time
import uuid
from typing import Any, Dict, Iterable, List, Optional

from models.actor import Actor, Scene
from models.card import Message, MessageDescriptor
from . import files

logger = logging.getLogger('osebot')

# Directories and the card store the item-card core reads.

class ActorRegistry:
    def __init__(self, actors: Iterable[Actor] = ()):
        self._actors: Dict[str, Actor] = {a.id: a for a in actors}

    def get(self, actor_id: str) -> Optional[Actor]:
        return self._actors.get(actor_id)

    def all(self) -> List[Actor]:
        return list(self._actors.values())

    def find(self, name_or_id: str) -> Optional[Actor]:
        key = str(name_or_id or "").strip().lower()
        for a in self._actors.values():
            if a.id.lower() == key or a.name.lower() == key:
                return a
        return None

    def owned_by(self, user_id: str) -> List[Actor]:
        return [a for a in self._actors.values() if a.owner == str(user_id)]

    def replace_all(self, actors: Iterable[Actor]) -> None:
        self._actors = {a.id: a for a in actors}


class SceneRegistry:
    def __init__(self, scenes: Iterable[Scene] = ()):
        self._scenes: Dict[str, Scene] = {s.id: s for s in scenes}

    def get(self, scene_id: str) -> Optional[Scene]:
        return self._scenes.get(scene_id)

    def replace_all(self, scenes: Iterable[Scene]) -> None:
        self._scenes = {s.id: s for s in scenes}


class MessageLog:
    """Creates chat messages and keeps the ones carrying a card so their buttons can find them again.

    Plain roll messages get an id but are not retained. With a ``folder`` every
    kept card is also written there as JSON and survives a restart.
    """

    def __init__(self, limit: int = 1000, folder: Optional[str] = None):
        self._cards: Dict[str, Message] = {}
        self._limit = limit
        self._folder = folder

    async def create(self, descriptor: MessageDescriptor, extra: Optional[Dict[str, Any]] = None) -> Message:
        message = Message(id=uuid.uuid4().hex[:16], descriptor=descriptor, extra=dict(extra or {}))
        if descriptor.card is None:
            return message
        message.extra.setdefault("created", time.time())
        self._cards[message.id] = message
        await self.save(message)
        while len(self._cards) > self._limit:
            oldest = next(iter(self._cards))
            self._cards.pop(oldest)
            if self._folder:
                await files.async_delete_json(self._folder, oldest)
        return message

    def get(self, message_id: str) -> Optional[Message]:
        return self._cards.get(message_id)

    async def save(self, message: Message) -> None:
        if self._folder and message.id in self._cards:
            await files.async_save_card(message, self._folder)

    async def load(self) -> int:
        if not self._folder:
            return 0
        cards = await files.async_load_cards(self._folder)
        self._cards = {m.id: m for m in cards[-self._limit:]}
        logger.info('Loaded %d stored cards', len(self._cards))
        return len(self._cards)

__all__ = [
    "ActorRegistry",
    "SceneRegistry",
    "MessageLog",
]
