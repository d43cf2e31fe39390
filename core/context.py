from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from core.hooks import HookRegistry
from models.actor import Actor, Scene, Token, User
from models.card import Message, MessageDescriptor, RollMode

# Collaborators the item-card core talks to. Defaults live in storage/ and modules/templates.py.

class SceneDirectory(Protocol):
    def get(self, scene_id: str) -> Optional[Scene]: ...

class ActorDirectory(Protocol):
    def get(self, actor_id: str) -> Optional[Actor]: ...

class UserDirectory(Protocol):
    def gm_ids(self) -> List[str]: ...

class TextEnricher(Protocol):
    def enrich(self, text: str, options: Optional[Mapping[str, Any]] = None) -> str: ...

class TemplateRenderer(Protocol):
    async def render(self, template: str, data: Dict[str, Any]) -> str: ...

class Messenger(Protocol):
    async def create(self, descriptor: MessageDescriptor) -> Message: ...
    def get(self, message_id: str) -> Optional[Message]: ...

class Notifier(Protocol):
    async def error(self, text: str) -> None: ...
    async def warn(self, text: str) -> None: ...

class Roller(Protocol):
    def roll(self, formula: str) -> Tuple[int, List[int]]: ...


@dataclass
class RollContext:
    """Everything a roll or card action needs, passed explicitly instead of read from globals."""
    user: User
    actors: ActorDirectory
    scenes: SceneDirectory
    users: UserDirectory
    messages: Messenger
    notifications: Notifier
    templates: TemplateRenderer
    enricher: TextEnricher
    dice: Roller
    selected_tokens: Sequence[Token] = field(default_factory=list)
    roll_mode: RollMode = RollMode.PUBLIC
    hooks: HookRegistry = field(default_factory=HookRegistry)

    def user_character(self) -> Optional[Actor]:
        if not self.user.character_id:
            return None
        return self.actors.get(self.user.character_id)

__all__ = [
    "SceneDirectory", "ActorDirectory", "UserDirectory", "TextEnricher",
    "TemplateRenderer", "Messenger", "Notifier", "Roller", "RollContext",
]
