"""
Unit tests for licensee listing: search, filters, sorting, pagination, export.
"""

import csv
import io
import json
from datetime import datetime

import pytest

from network_insights.models import ExportFormat, LicenseeStatus, SortDirection
from network_insights.services.licensees import (
    MAX_PAGE_SIZE,
    export_records,
    filter_records,
    find_licensee,
    list_licensees,
    paginate,
    search_records,
    sort_records,
)

from network_insights.tests.factories import make_record


class TestSearch:
    """Tests for search_records ranking."""

    def test_exact_code_ranks_first(self):
        records = [
            make_record(12, name='Carlos'),
            make_record(1, name='Ana'),
            make_record(100, name='Bia'),
        ]

        results = search_records(records, '1')

        assert [r.code for r in results] == [1, 12, 100]

    def test_exact_name_before_partial(self):
        records = [
            make_record(1, name='Ana Paula'),
            make_record(2, name='Ana'),
        ]

        results = search_records(records, 'ana')

        assert [r.code for r in results] == [2, 1]

    def test_search_ignores_accents_and_case(self, sample_records):
        results = search_records(sample_records, 'NITERÓI')

        assert [r.code for r in results] == [3]

    def test_no_match(self, sample_records):
        assert search_records(sample_records, 'zzz') == []

    def test_blank_query_returns_all(self, sample_records):
        assert search_records(sample_records, '  ') == sample_records


class TestFilters:
    """Tests for filter_records and find_licensee."""

    def test_filter_by_status(self, sample_records):
        results = filter_records(sample_records, status=LicenseeStatus.INACTIVE)

        assert [r.code for r in results] == [5]

    def test_filter_by_state_is_case_insensitive(self, sample_records):
        results = filter_records(sample_records, state='rj')

        assert [r.code for r in results] == [3, 4]

    def test_filter_by_graduation(self, sample_records):
        results = filter_records(sample_records, graduation='consultant')

        assert [r.code for r in results] == [3, 5]

    def test_find_licensee(self, sample_records):
        assert find_licensee(sample_records, 4).name == 'Diego'
        assert find_licensee(sample_records, 404) is None


class TestSorting:
    """Tests for sort_records."""

    def test_sort_descending(self, sample_records):
        results = sort_records(sample_records, 'active_clients', SortDirection.DESC)

        assert [r.code for r in results] == [1, 2, 6, 4, 3, 5]

    def test_sort_by_tier_rank(self, sample_records):
        results = sort_records(sample_records, 'graduation_tier', SortDirection.ASC)

        assert [r.code for r in results] == [3, 5, 4, 2, 6, 1]

    def test_missing_values_sort_last(self):
        with_date = make_record(1).model_copy(update={'activation_date': datetime(2024, 1, 1)})
        without_date = make_record(2)

        for direction in SortDirection:
            results = sort_records([without_date, with_date], 'activation_date', direction)
            assert [r.code for r in results] == [1, 2]

    def test_unknown_sort_field_raises(self, sample_records):
        with pytest.raises(ValueError, match="Cannot sort by"):
            sort_records(sample_records, 'sponsor_name')


class TestPagination:
    """Tests for paginate and list_licensees."""

    def test_pages(self, sample_records):
        page = paginate(sample_records, page=2, limit=4)

        assert [r.code for r in page.items] == [5, 6]
        assert page.total == 6
        assert page.total_pages == 2

    def test_page_past_end_is_empty(self, sample_records):
        page = paginate(sample_records, page=3, limit=4)

        assert page.items == []
        assert page.total == 6

    def test_empty_input(self):
        page = paginate([], page=1, limit=20)

        assert page.total == 0
        assert page.total_pages == 0

    @pytest.mark.parametrize("page,limit", [(0, 20), (1, 0), (1, MAX_PAGE_SIZE + 1)])
    def test_invalid_arguments_raise(self, sample_records, page, limit):
        with pytest.raises(ValueError):
            paginate(sample_records, page=page, limit=limit)

    def test_list_combines_search_filter_and_sort(self, sample_records):
        result = list_licensees(
            sample_records,
            state='SP',
            status=LicenseeStatus.ACTIVE,
            sort_by='active_clients',
            sort_order=SortDirection.ASC,
        )

        assert [r.code for r in result.items] == [2, 1]


class TestExport:
    """Tests for export_records."""

    def test_csv_has_camel_case_header_and_one_row_per_licensee(self, sample_records):
        content = export_records(sample_records, ExportFormat.CSV)

        rows = list(csv.DictReader(io.StringIO(content)))

        assert len(rows) == 6
        assert rows[0]['code'] == '1'
        assert rows[0]['activeClients'] == '150'
        assert rows[1]['sponsorCode'] == '1'

    def test_json_export(self, sample_records):
        content = export_records(sample_records, ExportFormat.JSON)

        data = json.loads(content)

        assert len(data) == 6
        assert data[4]['status'] == 'inactive'
        assert data[0]['graduationTier'] == 'DIRECTOR'
