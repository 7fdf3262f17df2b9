"""
Fire-and-forget side effects.

Persistence calls made during phase transitions must never hold up the
user. They run as detached asyncio tasks; failures are logged and dropped.
The runner keeps a reference to every task until it finishes so tasks are
not garbage collected mid-flight, and `drain()` lets shutdown code and
tests wait for them.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Tracks best-effort tasks for one owner (a quiz flow)."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()
        self.failures = 0

    def spawn(self, coro: Awaitable[Any], description: str) -> asyncio.Task:
        """Start `coro` without awaiting it. Exceptions are logged, never raised."""
        task = asyncio.ensure_future(self._guard(coro, description))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, coro: Awaitable[Any], description: str) -> Any:
        try:
            return await coro
        except asyncio.CancelledError:
            logger.info(f"Background task cancelled: {description}")
            raise
        except Exception:
            self.failures += 1
            logger.exception(f"Background task failed: {description}")
            return None

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every outstanding task, including ones spawned meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
