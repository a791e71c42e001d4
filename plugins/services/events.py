"""
Event Bus - delivers bridge events to host listeners
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List

from plugins.core.utils import get_logger, safe_callback

logger = get_logger(__name__)


class EventBus:
    """Named events with any number of sync or async listeners"""

    def __init__(self):
        self._handlers: Dict[str, List[Callable[..., Any]]] = defaultdict(list)

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        """Register a listener"""
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Callable[..., Any]) -> bool:
        """Remove a listener, returns False when it was not registered"""
        handlers = self._handlers.get(event, [])
        if handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    def listeners(self, event: str) -> List[Callable[..., Any]]:
        return list(self._handlers.get(event, []))

    async def emit(self, event: str, *args: Any) -> int:
        """Deliver an event to every listener, returns the number notified"""
        handlers = self.listeners(event)
        logger.debug(f"Emitting {event} to {len(handlers)} listener(s)")
        for handler in handlers:
            await safe_callback(handler, *args)
        return len(handlers)
