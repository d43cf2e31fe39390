from __future__ import annotations
import logging
from typing import List, Optional

from core.context import RollContext
from models.actor import Actor, Token
from models.card import ChatCard

logger = logging.getLogger('osebot')

def _token_actor(token: Token, ctx: RollContext) -> Optional[Actor]:
    if not token.actor_id:
        return None
    base = ctx.actors.get(token.actor_id)
    if base is None:
        return None
    return base.with_token(token)

def resolve_actor(card: ChatCard, ctx: RollContext) -> Optional[Actor]:
    """Find the actor a chat card speaks for.

    Token-bound cards (``sceneId.tokenId``) resolve to a synthetic actor built
    from the placed token; other cards use the actor directory. Any missing
    piece resolves to None.
    """
    # Case 1 - a synthetic actor from a Token
    if card.token_key:
        scene_id, sep, token_id = card.token_key.partition('.')
        if not sep or not scene_id or not token_id:
            logger.debug('Malformed token key on card: %s', card.token_key)
            return None
        scene = ctx.scenes.get(scene_id)
        if scene is None:
            logger.debug('Card scene %s no longer exists', scene_id)
            return None
        token = scene.get_embedded_token(token_id)
        if token is None:
            logger.debug('Card token %s missing from scene %s', token_id, scene_id)
            return None
        return _token_actor(token, ctx)

    # Case 2 - use the actor directory
    if not card.actor_id:
        return None
    return ctx.actors.get(card.actor_id)

def resolve_targets(ctx: RollContext) -> List[Actor]:
    targets = [a for a in (_token_actor(t, ctx) for t in ctx.selected_tokens) if a is not None]
    if not ctx.selected_tokens:
        character = ctx.user_character()
        if character is not None:
            targets.append(character)
    return targets

__all__ = ["resolve_actor", "resolve_targets"]
