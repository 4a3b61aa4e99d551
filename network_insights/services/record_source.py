"""
Record source: the cached, normalized snapshot of the licensee spreadsheet.

Every read path (dashboard, analytics, hierarchy, assistant) goes through
RecordSource.get_records(). The normalized list is memoized in the shared
TTLCache under RECORDS_CACHE_KEY, so a burst of dashboard requests costs one
spreadsheet read per TTL window.

Failure semantics:
- Upstream failure or timeout raises DataSourceUnavailableError
- An empty spreadsheet yields an empty list, which is cached like any other
  snapshot

Usage:
    source = RecordSource.from_settings(settings, cache)
    records = await source.get_records()
    await source.refresh()   # drops every cache entry and refetches
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from network_insights.core.cache import TTLCache
from network_insights.core.config import Settings
from network_insights.models.schemas import LicenseeRecord
from network_insights.services.normalization import normalize_rows
from network_insights.services.sheets import DataSourceUnavailableError, SheetsClient

logger = logging.getLogger(__name__)

RECORDS_CACHE_KEY = 'records:all'


class RecordSource:
    """
    Loads raw rows, normalizes them once and caches the result.

    Args:
        loader: Blocking callable returning raw rows
        cache: Shared TTL cache
        ttl_seconds: Lifetime of the cached snapshot
        timeout_seconds: Upper bound on a single load
        normalizer: Converts raw rows into LicenseeRecord objects; runs in the
            same worker thread as the loader
    """

    def __init__(
        self,
        loader: Callable[[], List[Dict[str, Any]]],
        cache: TTLCache,
        ttl_seconds: float = 300,
        timeout_seconds: float = 30,
        normalizer: Callable[[List[Any]], List[LicenseeRecord]] = normalize_rows,
    ):
        self._loader = loader
        self._normalizer = normalizer
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.timeout_seconds = timeout_seconds
        self.last_refresh: Optional[datetime] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, cache: TTLCache) -> "RecordSource":
        client = SheetsClient.from_settings(settings)
        return cls(
            loader=client.fetch_rows,
            cache=cache,
            ttl_seconds=settings.records_cache_ttl_seconds,
            timeout_seconds=settings.sheets_timeout_seconds,
        )

    @classmethod
    def from_records(
        cls,
        records: Sequence[LicenseeRecord],
        cache: Optional[TTLCache] = None,
    ) -> "RecordSource":
        """Source over already-normalized records (fixtures, offline runs)."""
        snapshot = list(records)
        return cls(
            loader=lambda: snapshot,
            cache=cache or TTLCache(),
            normalizer=list,
        )

    def _load(self) -> List[LicenseeRecord]:
        return self._normalizer(self._loader())

    async def get_records(self) -> List[LicenseeRecord]:
        """
        Return the normalized snapshot, loading it on a cache miss.

        Raises:
            DataSourceUnavailableError: If the upstream read fails or times out
        """
        cached = self.cache.get(RECORDS_CACHE_KEY)
        if cached is not None:
            return cached

        async with self._lock:
            # Another request may have filled the cache while we waited
            cached = self.cache.get(RECORDS_CACHE_KEY)
            if cached is not None:
                return cached

            try:
                records = await asyncio.wait_for(
                    asyncio.to_thread(self._load),
                    timeout=self.timeout_seconds,
                )
            except asyncio.TimeoutError as e:
                logger.error(f"Record load timed out after {self.timeout_seconds}s")
                raise DataSourceUnavailableError("Spreadsheet read timed out") from e

            self.cache.set(RECORDS_CACHE_KEY, records, self.ttl_seconds)
            self.last_refresh = datetime.now()

            logger.info(f"Loaded {len(records)} licensee records")
            return records

    async def refresh(self) -> List[LicenseeRecord]:
        """Drop all cached entries (snapshot and derived analytics) and reload."""
        self.cache.invalidate()
        return await self.get_records()
