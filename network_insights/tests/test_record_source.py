"""
Tests for RecordSource: snapshot caching, refresh and failure semantics.
"""

import threading
import time
from unittest.mock import Mock

import pytest

from network_insights.core.cache import TTLCache
from network_insights.services.record_source import RECORDS_CACHE_KEY, RecordSource
from network_insights.services.sheets import DataSourceUnavailableError


RAW_ROWS = [
    {'Codigo': '1', 'Nome': 'Ana', 'Clientes Ativos': '150', 'Uf': 'SP'},
    {'Codigo': '2', 'Nome': 'Bruno', 'Idpatrocinador': '1', 'Uf': 'RJ'},
]


class TestRecordSource:
    """Tests for RecordSource.get_records and refresh."""

    @pytest.mark.asyncio
    async def test_loads_and_normalizes_rows(self, cache):
        source = RecordSource(loader=Mock(return_value=RAW_ROWS), cache=cache)

        records = await source.get_records()

        assert [r.code for r in records] == [1, 2]
        assert records[0].active_clients == 150
        assert records[1].sponsor_code == 1
        assert source.last_refresh is not None

    @pytest.mark.asyncio
    async def test_snapshot_is_cached_within_ttl(self, cache, fake_clock):
        loader = Mock(return_value=RAW_ROWS)
        source = RecordSource(loader=loader, cache=cache, ttl_seconds=300)

        await source.get_records()
        fake_clock.advance(299)
        await source.get_records()

        loader.assert_called_once()

    @pytest.mark.asyncio
    async def test_snapshot_reloaded_after_ttl(self, cache, fake_clock):
        loader = Mock(return_value=RAW_ROWS)
        source = RecordSource(loader=loader, cache=cache, ttl_seconds=300)

        await source.get_records()
        fake_clock.advance(300)
        await source.get_records()

        assert loader.call_count == 2

    @pytest.mark.asyncio
    async def test_refresh_drops_derived_entries(self, cache):
        loader = Mock(return_value=RAW_ROWS)
        source = RecordSource(loader=loader, cache=cache)
        await source.get_records()
        cache.set('analytics:performance-score', {'overall': 80})

        records = await source.refresh()

        assert len(records) == 2
        assert loader.call_count == 2
        assert cache.get('analytics:performance-score') is None
        assert cache.keys() == [RECORDS_CACHE_KEY]

    @pytest.mark.asyncio
    async def test_empty_spreadsheet_is_a_valid_snapshot(self, cache):
        loader = Mock(return_value=[])
        source = RecordSource(loader=loader, cache=cache)

        assert await source.get_records() == []
        assert await source.get_records() == []
        loader.assert_called_once()

    @pytest.mark.asyncio
    async def test_loader_failure_propagates_and_caches_nothing(self, cache):
        loader = Mock(side_effect=DataSourceUnavailableError("quota exceeded"))
        source = RecordSource(loader=loader, cache=cache)

        with pytest.raises(DataSourceUnavailableError, match="quota exceeded"):
            await source.get_records()

        assert cache.get(RECORDS_CACHE_KEY) is None
        assert source.last_refresh is None

    @pytest.mark.asyncio
    @pytest.mark.slow
    async def test_slow_loader_times_out(self, cache):
        def slow_loader():
            time.sleep(0.5)
            return RAW_ROWS

        source = RecordSource(loader=slow_loader, cache=cache, timeout_seconds=0.05)

        with pytest.raises(DataSourceUnavailableError, match="timed out"):
            await source.get_records()

    @pytest.mark.asyncio
    async def test_normalization_runs_off_the_event_loop(self, cache):
        loop_thread = threading.get_ident()
        seen = {}

        def normalizer(rows):
            seen['thread'] = threading.get_ident()
            return []

        source = RecordSource(loader=Mock(return_value=RAW_ROWS), cache=cache, normalizer=normalizer)

        await source.get_records()

        assert seen['thread'] != loop_thread

    @pytest.mark.asyncio
    async def test_from_records_skips_normalization(self, sample_records):
        source = RecordSource.from_records(sample_records, cache=TTLCache())

        records = await source.get_records()

        assert records == sample_records
