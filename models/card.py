from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class CardAction(str, Enum):
    DAMAGE = "damage"
    FORMULA = "formula"
    SAVE = "save"

    @property
    def is_targeted(self) -> bool:
        return self is CardAction.SAVE


class RollMode(str, Enum):
    PUBLIC = "roll"
    GM = "gmroll"
    BLIND = "blindroll"
    SELF = "selfroll"

    @classmethod
    def parse(cls, value: str | None, default: "RollMode | None" = None) -> "RollMode":
        v = (value or "").strip().lower()
        aliases = {
            "public": cls.PUBLIC, "roll": cls.PUBLIC,
            "gm": cls.GM, "gmroll": cls.GM, "private": cls.GM,
            "blind": cls.BLIND, "blindroll": cls.BLIND,
            "self": cls.SELF, "selfroll": cls.SELF,
        }
        if v in aliases:
            return aliases[v]
        if default is not None:
            return default
        raise ValueError(f"Unknown roll mode: {value!r}")


class MessageType(str, Enum):
    OTHER = "other"
    ROLL = "roll"


@dataclass(frozen=True)
class Speaker:
    actor_id: Optional[str] = None
    token_key: Optional[str] = None
    alias: str = ""


@dataclass(frozen=True)
class CardButton:
    action: CardAction
    label: str
    ability: Optional[str] = None


@dataclass
class ChatCard:
    """Identifiers a rendered item card keeps so a button click can find its actor again."""
    item_id: str
    actor_id: Optional[str] = None
    token_key: Optional[str] = None
    buttons: List[CardButton] = field(default_factory=list)
    content_visible: bool = True

    def __post_init__(self) -> None:
        if not self.actor_id and not self.token_key:
            raise ValueError("ChatCard needs an actor id or a token key")


# custom_id layout: "card:<action>:<message id>[:<ability>]"
_REQUEST_PREFIX = "card"


@dataclass(frozen=True)
class ActionRequest:
    action: CardAction
    message_id: str
    ability: Optional[str] = None

    def encode(self) -> str:
        parts = [_REQUEST_PREFIX, self.action.value, self.message_id]
        if self.ability:
            parts.append(self.ability)
        return ":".join(parts)

    @staticmethod
    def decode(value: str) -> "ActionRequest":
        parts = str(value or "").split(":")
        if len(parts) not in (3, 4) or parts[0] != _REQUEST_PREFIX:
            raise ValueError(f"Not a card action id: {value!r}")
        ability = parts[3] if len(parts) == 4 and parts[3] else None
        return ActionRequest(action=CardAction(parts[1]), message_id=parts[2], ability=ability)


@dataclass
class RollResult:
    total: int
    formula: str
    rolls: List[int] = field(default_factory=list)
    flavor: str = ""


@dataclass
class MessageDescriptor:
    user_id: str
    content: str
    speaker: Speaker
    type: MessageType = MessageType.OTHER
    whisper: List[str] = field(default_factory=list)
    blind: bool = False
    flavor: str = ""
    roll: Optional[RollResult] = None
    card: Optional[ChatCard] = None


@dataclass
class Message:
    id: str
    descriptor: MessageDescriptor
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def card(self) -> Optional[ChatCard]:
        return self.descriptor.card

    @property
    def user_id(self) -> str:
        return self.descriptor.user_id

    def is_author(self, user) -> bool:
        return str(self.descriptor.user_id) == str(getattr(user, "id", user))

    def to_dict(self) -> Dict[str, Any]:
        d = self.descriptor
        card = d.card
        return {
            "_id": self.id,
            "user_id": d.user_id,
            "content": d.content,
            "speaker": {"actor_id": d.speaker.actor_id, "token_key": d.speaker.token_key, "alias": d.speaker.alias},
            "type": d.type.value,
            "whisper": list(d.whisper),
            "blind": d.blind,
            "flavor": d.flavor,
            "card": None if card is None else {
                "item_id": card.item_id,
                "actor_id": card.actor_id,
                "token_key": card.token_key,
                "buttons": [{"action": b.action.value, "label": b.label, "ability": b.ability} for b in card.buttons],
                "content_visible": card.content_visible,
            },
            "extra": dict(self.extra),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Message":
        raw_card = data.get("card")
        card = None
        if raw_card:
            card = ChatCard(
                item_id=str(raw_card.get("item_id") or ""),
                actor_id=raw_card.get("actor_id"),
                token_key=raw_card.get("token_key"),
                buttons=[CardButton(CardAction(b["action"]), b.get("label", ""), b.get("ability"))
                         for b in raw_card.get("buttons", [])],
                content_visible=bool(raw_card.get("content_visible", True)),
            )
        speaker = data.get("speaker") or {}
        descriptor = MessageDescriptor(
            user_id=str(data.get("user_id") or ""),
            content=data.get("content", ""),
            speaker=Speaker(speaker.get("actor_id"), speaker.get("token_key"), speaker.get("alias", "")),
            type=MessageType(data.get("type", MessageType.OTHER.value)),
            whisper=[str(u) for u in data.get("whisper", [])],
            blind=bool(data.get("blind", False)),
            flavor=data.get("flavor", ""),
            card=card,
        )
        return Message(id=str(data.get("_id") or ""), descriptor=descriptor, extra=dict(data.get("extra") or {}))

__all__ = [
    "CardAction", "RollMode", "MessageType", "Speaker", "CardButton", "ChatCard",
    "ActionRequest", "RollResult", "MessageDescriptor", "Message",
]
