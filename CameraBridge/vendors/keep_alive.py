"""
Session Keep-Alive Scheduler

Background asyncio task that periodically runs a "touch" coroutine for
platforms whose sessions decay without activity. The scheduler is an owned
resource of one client: started after a successful login, stopped only by
the client's close().
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class KeepAliveScheduler:
    """
    Idle -> Running -> Idle.

    start() is idempotent while running. stop() cancels the task and waits
    for it to finish so no timer outlives the owning client.
    """

    def __init__(self, touch: Callable[[], Awaitable[Any]], interval_seconds: float, name: str = "keep-alive"):
        self.touch = touch
        self.interval_seconds = interval_seconds
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Start the periodic touch; a no-op when already running"""
        if self.is_running:
            logger.debug(f"{self.name} already running")
            return

        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.info(f"{self.name} started, touching every {self.interval_seconds:.0f}s")

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            logger.debug(f"{self.name} running scheduled touch")
            try:
                await self.touch()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # No caller to report to; the next tick tries again
                logger.error(f"{self.name} touch failed: {e}")

    async def stop(self):
        """Cancel the background task; safe to call when idle"""
        task, self._task = self._task, None
        if task is None:
            return

        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(f"{self.name} stopped")
