"""
Two-tier (fresh/stale) cache used by the traffic proxy.
"""

from typing import Any, Dict, Iterable, Tuple
from urllib.parse import urlencode

from shared.logging import get_logger
from .memory_cache import MemoryCache


CACHE_NAMESPACE = "traffic"
STALE_SUFFIX = ":stale"
DEFAULT_STALE_MULTIPLIER = 10


class TieredCache:
    """Fresh and stale tiers for the same logical key, backed by one store.

    Every successful fetch is written to both tiers. The fresh tier serves
    normal hits; the stale tier lives ``stale_multiplier`` times longer and
    is only read when a live fetch fails.
    """

    def __init__(
        self,
        store: MemoryCache,
        fresh_ttl_seconds: float,
        *,
        stale_multiplier: int = DEFAULT_STALE_MULTIPLIER,
    ):
        if fresh_ttl_seconds <= 0:
            raise ValueError("fresh_ttl_seconds must be positive")
        if stale_multiplier < 1:
            raise ValueError("stale_multiplier must be at least 1")
        self.store = store
        self.fresh_ttl_seconds = fresh_ttl_seconds
        self.stale_ttl_seconds = fresh_ttl_seconds * stale_multiplier
        self.logger = get_logger("traffic.cache_manager")

    @staticmethod
    def build_key(resource: str, params: Iterable[Tuple[str, str]]) -> str:
        """Derive the logical cache key for a resource and its query.

        Pairs are stably sorted by name, so caller ordering of distinct
        parameters does not matter while the order of values for a repeated
        parameter still does.
        """
        ordered = sorted(params, key=lambda pair: pair[0])
        return f"{CACHE_NAMESPACE}:{resource}:{urlencode(ordered)}"

    @staticmethod
    def stale_key(key: str) -> str:
        return f"{key}{STALE_SUFFIX}"

    def get_fresh(self, key: str, default: Any = None) -> Any:
        return self.store.get(key, default)

    def get_stale(self, key: str, default: Any = None) -> Any:
        return self.store.get(self.stale_key(key), default)

    def store_value(self, key: str, value: Any) -> None:
        """Write ``value`` to both tiers, restarting both expiry clocks."""
        self.store.set(key, value, self.fresh_ttl_seconds)
        self.store.set(self.stale_key(key), value, self.stale_ttl_seconds)
        self.logger.debug(
            "Cached value",
            key=key,
            fresh_ttl=self.fresh_ttl_seconds,
            stale_ttl=self.stale_ttl_seconds,
        )

    def stats(self) -> Dict[str, Any]:
        stats = self.store.stats()
        stats["fresh_ttl_seconds"] = self.fresh_ttl_seconds
        stats["stale_ttl_seconds"] = self.stale_ttl_seconds
        return stats
