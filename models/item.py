from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any

ItemData = Dict[str, Any]

@dataclass
class Item:
    id: str
    name: str
    type: str = "item"
    data: ItemData = field(default_factory=dict)
    img: str | None = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Item":
        return Item(
            id=str(data.get("_id") or data.get("id") or ""),
            name=data.get("name", "Unnamed"),
            type=data.get("type", "item"),
            data=dict(data.get("data") or {}),
            img=data.get("img"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "name": self.name,
            "type": self.type,
            "data": self.data,
            "img": self.img,
        }

    @property
    def is_weapon(self) -> bool:
        return self.type == "weapon"

    @property
    def is_spell(self) -> bool:
        return self.type == "spell"

    @property
    def has_formula(self) -> bool:
        return bool(self.data.get("roll"))

    @property
    def has_damage(self) -> bool:
        return bool(self.data.get("damage"))

    @property
    def is_healing(self) -> bool:
        return self.data.get("actionType") == "heal"

    @property
    def has_save(self) -> bool:
        return bool(self.data.get("save"))

    @property
    def labels(self) -> Dict[str, str]:
        out = {"type": self.type.title()}
        if self.has_damage:
            out["damage"] = str(self.data["damage"])
        if self.has_save:
            out["save"] = f"Save vs {str(self.data['save']).title()}"
        if self.is_spell and self.data.get("lvl"):
            out["level"] = f"Level {self.data['lvl']}"
        return out

__all__ = ["Item", "ItemData"]
