from __future__ import annotations
import discord
from typing import Optional

from models.card import Message, MessageType

PALETTE = {
    'info': 0x3498db,
    'success': 0x2ecc71,
    'error': 0xe74c3c,
    'warn': 0xf1c40f,
    'neutral': 0x95a5a6,
    'card': 0x8e44ad,
    'roll': 0xe67e22,
}

def _base(title: Optional[str]=None, description: Optional[str]=None, color: int | None=None) -> discord.Embed:
    return discord.Embed(title=title, description=description, color=color or PALETTE['neutral'])

def info(desc: str, title: str='Info') -> discord.Embed:
    return _base(title, desc, PALETTE['info'])

def error(desc: str, title: str='Error') -> discord.Embed:
    return _base(title, desc, PALETTE['error'])

def warn(desc: str, title: str='Warning') -> discord.Embed:
    return _base(title, desc, PALETTE['warn'])

BLIND_TEXT = "🙈 *Blind roll: only the GM can see the result.*"

def message_embed(message: Message, hidden: bool = False) -> discord.Embed:
    """Embed for a chat message. Cards with collapsed content show only their header line."""
    d = message.descriptor
    if hidden:
        return _base(d.speaker.alias or None, BLIND_TEXT, PALETTE['neutral'])
    if d.type is MessageType.ROLL:
        emb = _base(d.flavor or None, d.content, PALETTE['roll'])
    else:
        content = d.content
        if d.card is not None and not d.card.content_visible:
            content = content.split("\n", 1)[0]
        emb = _base(None, content, PALETTE['card'])
    if d.speaker.alias:
        emb.set_author(name=d.speaker.alias)
    if d.whisper:
        emb.set_footer(text="Blind GM roll" if d.blind else "Whispered")
    return emb
