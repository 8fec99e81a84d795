"""Best-effort fan-out of cache mutations to registered listeners."""

import inspect
from typing import Any, Iterable, List, Optional

from tablecache.core.logging import get_logger

logger = get_logger(__name__)


class CacheEventListener:
    """Observer notified after a mutation commits.

    Subclass and override what you need. Methods may be plain functions or
    coroutines.
    """

    def on_put(self, key: str, value: Any) -> None:
        pass

    def on_evict(self, key: str) -> None:
        pass

    def on_clear(self) -> None:
        pass


class CacheEventDispatcher:
    """Calls listeners in registration order; a failing listener is logged and skipped."""

    def __init__(self, listeners: Optional[Iterable[CacheEventListener]] = None):
        self._listeners: List[CacheEventListener] = [
            listener for listener in (listeners or []) if listener is not None
        ]

    @property
    def listeners(self) -> List[CacheEventListener]:
        return list(self._listeners)

    def add_listener(self, listener: CacheEventListener) -> None:
        if listener is not None and listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: CacheEventListener) -> bool:
        try:
            self._listeners.remove(listener)
            return True
        except ValueError:
            return False

    async def fire_on_put(self, key: str, value: Any) -> None:
        for listener in self.listeners:
            await self._call(listener, "on_put", key, value)

    async def fire_on_evict(self, key: str) -> None:
        for listener in self.listeners:
            await self._call(listener, "on_evict", key)

    async def fire_on_clear(self) -> None:
        for listener in self.listeners:
            await self._call(listener, "on_clear")

    async def _call(self, listener: CacheEventListener, method: str, *args) -> None:
        try:
            result = getattr(listener, method)(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning("Cache event listener failed",
                           method=method,
                           listener=type(listener).__name__,
                           key=args[0] if args else None,
                           error=str(e))
