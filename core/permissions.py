from __future__ import annotations
import os
from typing import Optional
import discord

def _parse_id_list(value: Optional[str]) -> set[int]:
    if not value:
        return set()
    out: set[int] = set()
    for part in value.replace(';', ',').split(','):
        part = part.strip()
        if not part:
            continue
        try:
            out.add(int(part))
        except ValueError:
            continue
    return out

def gm_role_ids() -> set[int]:
    return _parse_id_list(os.getenv('GM_ROLE_IDS'))

def is_gm_member(member) -> bool:
    """Server administrators and holders of a GM_ROLE_IDS role act as GM."""
    if member is None:
        return False
    perms = getattr(member, 'guild_permissions', None)
    if perms is not None and getattr(perms, 'administrator', False):
        return True
    role_ids = gm_role_ids()
    return bool(role_ids) and any(r.id in role_ids for r in getattr(member, 'roles', []))

def check_item_permission(interaction: discord.Interaction) -> tuple[bool, str | None]:
    """Enforce simple allow rules for /item and /formula.

    Env vars:
      - ITEM_ALLOWED_CHANNEL_IDS: comma/semicolon-separated channel IDs
      - ITEM_BLOCK_DM: '1' to block in DMs

    Returns (allowed, reason). If not allowed, reason is a short message.
    """
    block_dm = os.getenv('ITEM_BLOCK_DM', '0') == '1'
    chan_ids = _parse_id_list(os.getenv('ITEM_ALLOWED_CHANNEL_IDS'))

    if interaction.guild is None and block_dm:
        return False, "Item rolls are disabled in DMs."

    if chan_ids and interaction.channel_id not in chan_ids:
        return False, "Item rolls are not allowed in this channel."

    return True, None

__all__ = ["is_gm_member", "gm_role_ids", "check_item_permission"]
