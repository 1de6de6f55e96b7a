"""
Proxy caching package.

Provides the process-local TTL store and the fresh/stale tiering used by the
traffic proxy. Nothing here persists across restarts.
"""

from .cache_manager import TieredCache
from .memory_cache import CacheEntry, CacheSweeper, MemoryCache

__all__ = ["CacheEntry", "CacheSweeper", "MemoryCache", "TieredCache"]
