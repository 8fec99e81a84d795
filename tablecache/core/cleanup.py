"""Periodic sweep of expired cache entries.

Follows the start/stop background-task pattern used by the store's
lifecycle. Expiry is also enforced lazily on read; the sweeper only keeps
storage from growing with entries nobody reads again.
"""
import asyncio
from typing import Optional, TYPE_CHECKING

from tablecache.core.logging import get_logger

if TYPE_CHECKING:
    from tablecache.core.cache import CacheStore

logger = get_logger(__name__)


class ExpirationSweeper:
    """Background task calling ``store.cleanup_expired()`` every ``interval`` seconds."""

    def __init__(
        self,
        store: "CacheStore",
        interval: float = 300.0,
        shutdown_timeout: float = 5.0,
    ):
        self.store = store
        self.interval = interval
        self.shutdown_timeout = shutdown_timeout
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self.sweeps = 0

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the sweeper background task."""
        if self._running:
            return
        self._running = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._sweep_loop(), name="tablecache-sweeper")
        logger.info("Expiration sweeper started", interval=self.interval)

    async def stop(self) -> None:
        """Stop the sweeper, waiting briefly for an in-flight sweep before cancelling."""
        task = self._task
        if not self._running and task is None:
            return
        self._running = False
        self._task = None
        if self._stop_event is not None:
            self._stop_event.set()
        if task is None or task.done():
            logger.info("Expiration sweeper stopped")
            return

        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self.shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning("Sweeper did not finish in time, cancelling",
                           timeout=self.shutdown_timeout)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Expiration sweeper stopped", sweeps=self.sweeps)

    async def _sweep_loop(self) -> None:
        """Main loop - waits one interval, then sweeps, until stopped."""
        while self._running:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                break  # stop requested
            except asyncio.TimeoutError:
                pass
            try:
                await self.run_once()
            except Exception as e:
                logger.warning("Background cleanup failed", error=str(e))

    async def run_once(self) -> int:
        """Run one sweep and return the number of removed entries."""
        removed = await self.store.cleanup_expired()
        self.sweeps += 1
        return removed
