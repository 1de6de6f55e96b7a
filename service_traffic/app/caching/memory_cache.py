"""
Process-local TTL cache for the traffic proxy.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from shared.logging import get_logger


@dataclass
class CacheEntry:
    """A cached value with its insertion time and lifetime."""

    key: str
    value: Any
    inserted_at: float
    ttl_seconds: float

    @property
    def expires_at(self) -> float:
        return self.inserted_at + self.ttl_seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class MemoryCache:
    """In-memory key/value store with per-entry expiry.

    Expired entries are dropped lazily on read. ``purge_expired`` can be run
    periodically to reclaim memory for keys that are never read again, but
    reads never depend on it having run.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock
        self._hits = 0
        self._misses = 0

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value for ``key`` or ``default``."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return default

        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._misses += 1
            return default

        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Insert or overwrite ``key``, restarting its expiry clock."""
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            inserted_at=self._clock(),
            ttl_seconds=ttl_seconds,
        )

    def purge_expired(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        return {
            "keys": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
        }

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for entry in self._entries.values() if not entry.is_expired(now))


class CacheSweeper:
    """Periodically purges expired entries from a MemoryCache."""

    def __init__(self, cache: MemoryCache, interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.cache = cache
        self.interval_seconds = interval_seconds
        self.logger = get_logger("traffic.cache_sweeper")
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            removed = self.cache.purge_expired()
            if removed:
                self.logger.debug("Purged expired cache entries", removed=removed)
