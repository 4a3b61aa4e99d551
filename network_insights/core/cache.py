"""
In-process TTL cache for spreadsheet snapshots and derived analytics.

One TTLCache instance is constructed per process in the FastAPI lifespan and
handed to request handlers through dependency injection, so there is no
hidden module-level cache state. Entries expire after their TTL and can be
invalidated explicitly (all entries, or every key containing a substring).

Concurrency:
    The service runs on a single asyncio event loop. Cache reads and writes
    never await, so mutations are serialized by the loop and no locking is
    needed. Two requests arriving inside the TTL window share one computed
    value; staleness is bounded by the TTL.

Usage:
    cache = TTLCache(default_ttl_seconds=300)
    cache.set("analytics:kpis", kpis, ttl_seconds=600)
    kpis = cache.get("analytics:kpis")
    cache.invalidate("analytics:")
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached value with its absolute expiry on the cache clock."""
    value: Any
    expires_at: float


class TTLCache:
    """
    Key/value cache with per-entry time-to-live.

    Args:
        default_ttl_seconds: TTL applied when set() is called without one.
        clock: Monotonic time source in seconds. Injected in tests.
    """

    def __init__(
        self,
        default_ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() >= entry.expires_at:
            del self._entries[key]
            self._misses += 1
            return None

        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], Any],
        ttl_seconds: Optional[float] = None,
    ) -> Any:
        """
        Return the cached value for key, computing and storing it on a miss.

        The factory is only called when no live entry exists. None results
        are not cached.
        """
        value = self.get(key)
        if value is not None:
            return value

        value = factory()
        if value is not None:
            self.set(key, value, ttl_seconds)
        return value

    def invalidate(self, pattern: Optional[str] = None) -> int:
        """
        Drop cached entries.

        Args:
            pattern: When given, only keys containing this substring are
                dropped. When None, the whole cache is cleared.

        Returns:
            Number of entries removed.
        """
        if pattern is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            keys = [key for key in self._entries if pattern in key]
            for key in keys:
                del self._entries[key]
            removed = len(keys)

        logger.info(f"Cache invalidated: pattern={pattern!r}, removed={removed}")
        return removed

    def keys(self) -> List[str]:
        """Keys of live (non-expired) entries."""
        now = self._clock()
        return [key for key, entry in self._entries.items() if entry.expires_at > now]

    def stats(self) -> Dict[str, Any]:
        live_keys = self.keys()
        return {
            'size': len(live_keys),
            'keys': live_keys,
            'hits': self._hits,
            'misses': self._misses,
        }
