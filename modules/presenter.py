from __future__ import annotations
import copy
from typing import Any, Dict, List, Mapping, Optional

from core.context import TextEnricher
from models.item import Item

def _qualities(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v)
    return value

def item_properties(item: Item, data: Mapping[str, Any]) -> List[str]:
    props: List[Any] = []
    if item.type == "weapon":
        props.append(_qualities(data.get("qualities")))
    if item.type == "spell":
        props.extend([
            f"{data.get('class', '')} {data.get('lvl', '')}".strip(),
            data.get("range"),
            data.get("duration"),
        ])
    if "equipped" in data:
        props.append("Equipped" if data["equipped"] else "Not Equipped")
    return [p for p in props if p]

def present_item(item: Item, enricher: TextEnricher, render_options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Display-ready copy of an item's data with enriched description and property labels."""
    data = copy.deepcopy(item.data)
    data["description"] = enricher.enrich(data.get("description") or "", render_options)
    data["properties"] = item_properties(item, data)
    return data

__all__ = ["present_item", "item_properties"]
