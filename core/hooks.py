from __future__ import annotations
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger('osebot')

Listener = Callable[..., Awaitable[None]]

# Events emitted by the item-card flow
ITEM_CARD_CREATED = 'item.card.created'
ITEM_FORMULA_ROLLED = 'item.formula.rolled'
CARD_ACTION_COMPLETED = 'card.action.completed'
CARD_ACTION_FAILED = 'card.action.failed'

class HookRegistry:
    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def once(self, event: str, listener: Listener) -> None:
        async def wrapper(*args, **kwargs):
            try:
                await listener(*args, **kwargs)
            finally:
                self.off(event, wrapper)
        self.on(event, wrapper)

    def off(self, event: str, listener: Optional[Listener] = None) -> None:
        if listener is None:
            self._listeners.pop(event, None)
            return
        lst = self._listeners.get(event)
        if lst and listener in lst:
            lst.remove(listener)

    async def emit(self, event: str, *args, **kwargs) -> None:
        # Copy listeners to avoid modification during iteration
        for listener in list(self._listeners.get(event, [])):
            try:
                await listener(*args, **kwargs)
            except Exception:
                # A broken listener must not abort the roll that emitted the event
                logger.exception('Hook listener for %s failed', event)


# Bot-wide registry; the item-card core receives its registry through RollContext
HOOKS = HookRegistry()

def hook(event: str, registry: HookRegistry = HOOKS):
    """Decorator for registering an async listener function to an event."""
    def deco(fn: Listener) -> Listener:
        registry.on(event, fn)
        return fn
    return deco
