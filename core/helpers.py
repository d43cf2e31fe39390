from __future__ import annotations
from typing import Optional
import discord

from core.permissions import is_gm_member
from models.actor import User

def user_for(member, character_id: Optional[str] = None) -> User:
    """Item-card user for a Discord member or user."""
    return User(
        id=str(member.id),
        name=getattr(member, 'display_name', None) or str(member),
        is_gm=is_gm_member(member),
        character_id=character_id,
    )

async def send_ephemeral(interaction: discord.Interaction, content: str | None = None, *, embed: discord.Embed | None = None) -> None:
    if interaction.response.is_done():
        await interaction.followup.send(content, embed=embed, ephemeral=True)
    else:
        await interaction.response.send_message(content, embed=embed, ephemeral=True)

__all__ = ["user_for", "send_ephemeral"]
