from __future__ import annotations
import copy
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from models.item import Item

# OSE save categories
SAVE_CATEGORIES = ("death", "wands", "paralysis", "breath", "spells")

@dataclass
class Token:
    id: str
    scene_id: str
    name: str = ""
    actor_id: Optional[str] = None
    overrides: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return f"{self.scene_id}.{self.id}"

    @staticmethod
    def from_dict(data: Dict[str, Any], scene_id: str) -> "Token":
        return Token(
            id=str(data.get("_id") or data.get("id") or ""),
            scene_id=scene_id,
            name=data.get("name", ""),
            actor_id=data.get("actorId") or None,
            overrides=dict(data.get("actorData") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "actorId": self.actor_id,
            "actorData": self.overrides,
        }


@dataclass
class Scene:
    id: str
    name: str = ""
    tokens: List[Token] = field(default_factory=list)

    def get_embedded_token(self, token_id: str) -> Optional[Token]:
        for t in self.tokens:
            if t.id == token_id:
                return t
        return None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Scene":
        scene_id = str(data.get("_id") or data.get("id") or "")
        return Scene(
            id=scene_id,
            name=data.get("name", ""),
            tokens=[Token.from_dict(t, scene_id) for t in data.get("tokens", [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "tokens": [t.to_dict() for t in self.tokens],
        }


@dataclass
class Actor:
    id: str
    name: str
    owner: Optional[str] = None
    items: List[Item] = field(default_factory=list)
    saves: Dict[str, int] = field(default_factory=dict)
    attack_bonus: int = 0
    abilities: Dict[str, int] = field(default_factory=dict)
    token: Optional[Token] = None
    schema_version: int = 1

    @property
    def token_key(self) -> Optional[str]:
        return self.token.key if self.token else None

    @property
    def is_synthetic(self) -> bool:
        return self.token is not None

    def get_owned_item(self, item_id: str) -> Optional[Item]:
        for it in self.items:
            if it.id == item_id:
                return it
        return None

    def find_item(self, name_or_id: str) -> Optional[Item]:
        key = str(name_or_id or "").strip().lower()
        for it in self.items:
            if it.id.lower() == key or it.name.lower() == key:
                return it
        return None

    def with_token(self, token: Token) -> "Actor":
        """Synthetic actor view: the token's overrides merged onto a copy of this actor."""
        raw = self.to_dict()
        for key, value in token.overrides.items():
            if isinstance(value, dict) and isinstance(raw.get(key), dict):
                raw[key] = {**raw[key], **value}
            else:
                raw[key] = copy.deepcopy(value)
        if token.name and "name" not in token.overrides:
            raw["name"] = token.name
        synthetic = Actor.from_dict(raw)
        synthetic.token = token
        return synthetic

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Actor":
        owner = data.get("owner")
        return Actor(
            id=str(data.get("_id") or data.get("id") or ""),
            name=data.get("name", "Unnamed"),
            owner=str(owner) if owner is not None else None,
            items=[Item.from_dict(i) for i in data.get("items", [])],
            saves={str(k): int(v) for k, v in (data.get("saves") or {}).items()},
            attack_bonus=int(data.get("attack_bonus", 0) or 0),
            abilities=dict(data.get("abilities") or {}),
            schema_version=int(data.get("schema_version", 1) or 1),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "owner": self.owner,
            "items": [copy.deepcopy(i.to_dict()) for i in self.items],
            "saves": dict(self.saves),
            "attack_bonus": self.attack_bonus,
            "abilities": dict(self.abilities),
            "schema_version": self.schema_version,
        }


@dataclass
class User:
    id: str
    name: str = ""
    is_gm: bool = False
    character_id: Optional[str] = None

__all__ = ["Actor", "Token", "Scene", "User", "SAVE_CATEGORIES"]
