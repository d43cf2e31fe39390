from __future__ import annotations
import html
import re
from typing import Any, Callable, Dict, Mapping, Optional

from core.config import CARD_TEMPLATE

# --- Text enrichment: stored item descriptions are HTML, Discord speaks markdown ---

_TAG_MAP = [
    (re.compile(r"<\s*(strong|b)\s*>(.*?)<\s*/\s*\1\s*>", re.I | re.S), r"**\2**"),
    (re.compile(r"<\s*(em|i)\s*>(.*?)<\s*/\s*\1\s*>", re.I | re.S), r"*\2*"),
    (re.compile(r"<\s*li\s*>", re.I), "• "),
    (re.compile(r"<\s*br\s*/?\s*>", re.I), "\n"),
    (re.compile(r"<\s*/\s*(p|li|div|h\d)\s*>", re.I), "\n"),
]
_ANY_TAG = re.compile(r"<[^>]+>")
_INLINE_ROLL = re.compile(r"\[\[/r(?:oll)?\s+([^\]]+)\]\]")

class MarkdownEnricher:
    """Converts item description HTML into Discord markdown.

    Options:
      - ``max_length``: truncate the result (Discord embed descriptions cap at 4096)
      - ``inline_rolls``: render ``[[/r 1d6]]`` as a code span (default True)
    """

    def enrich(self, text: str, options: Optional[Mapping[str, Any]] = None) -> str:
        options = options or {}
        out = str(text or "")
        for pattern, repl in _TAG_MAP:
            out = pattern.sub(repl, out)
        out = _ANY_TAG.sub("", out)
        out = html.unescape(out)
        if options.get("inline_rolls", True):
            out = _INLINE_ROLL.sub(lambda m: f"`{m.group(1).strip()}`", out)
        out = re.sub(r"\n{3,}", "\n\n", out).strip()
        limit = options.get("max_length")
        if limit and len(out) > int(limit):
            out = out[: int(limit) - 1].rstrip() + "…"
        return out

# --- Card templates ---

TemplateFn = Callable[[Dict[str, Any]], str]

def _item_card(data: Dict[str, Any]) -> str:
    item = data["item"]
    shown = data.get("data") or {}
    lines = [f"**{item.name}**"]
    if shown.get("description"):
        lines.append(shown["description"])
    props = shown.get("properties") or []
    if props:
        lines.append(" · ".join(f"`{p}`" for p in props))
    labels = data.get("labels") or {}
    for key in ("level", "damage", "save"):
        if labels.get(key):
            lines.append(f"*{labels[key]}*")
    return "\n".join(lines)

class CardRenderer:
    def __init__(self, templates: Optional[Dict[str, TemplateFn]] = None):
        self._templates: Dict[str, TemplateFn] = {CARD_TEMPLATE: _item_card}
        if templates:
            self._templates.update(templates)

    async def render(self, template: str, data: Dict[str, Any]) -> str:
        try:
            fn = self._templates[template]
        except KeyError as e:
            raise KeyError(f"Unknown card template: {template}") from e
        return fn(data)

__all__ = ["MarkdownEnricher", "CardRenderer"]
