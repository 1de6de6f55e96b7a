"""
Concurrency limiter bounding simultaneous upstream calls.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, TypeVar

from shared.logging import get_logger


T = TypeVar("T")


class ConcurrencyLimiter:
    """Run at most ``max_concurrency`` tasks at once, queuing the rest FIFO.

    Built on ``asyncio.Semaphore``, whose waiters are woken in arrival order
    and which does not let newcomers overtake queued waiters.
    """

    def __init__(self, max_concurrency: int):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self.logger = get_logger("traffic.concurrency_limiter")
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._active = 0
        self._pending = 0
        self._peak_active = 0

    @property
    def active(self) -> int:
        return self._active

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def peak_active(self) -> int:
        return self._peak_active

    async def run(self, task: Callable[[], Awaitable[T]]) -> T:
        """Wait for a free slot, then await ``task()`` while holding it."""
        self._pending += 1
        if self._semaphore.locked():
            self.logger.debug(
                "Waiting for upstream slot",
                active=self._active,
                pending=self._pending,
                limit=self.max_concurrency,
            )
        try:
            await self._semaphore.acquire()
        finally:
            self._pending -= 1

        self._active += 1
        self._peak_active = max(self._peak_active, self._active)
        try:
            return await task()
        finally:
            self._active -= 1
            self._semaphore.release()

    def stats(self) -> Dict[str, Any]:
        return {
            "limit": self.max_concurrency,
            "active": self._active,
            "pending": self._pending,
            "peak_active": self._peak_active,
        }
