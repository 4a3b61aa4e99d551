"""
Licensee listing: search, filters, sorting, pagination and export.

Search ranks results in three bands: exact code match, then exact name match
(case- and accent-insensitive), then partial matches on name, code or city.
Within a band, source order is kept.
"""

import json
import logging
import math
from typing import List, Optional, Sequence

import pandas as pd
from pydantic.alias_generators import to_camel

from network_insights.models.enums import ExportFormat, LicenseeStatus, SortDirection
from network_insights.models.schemas import LicenseeListResponse, LicenseeRecord
from network_insights.services.normalization import strip_accents

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = (
    'code',
    'name',
    'active_clients',
    'telecom_clients',
    'active_licensees',
    'activation_date',
    'graduation_tier',
)

MAX_PAGE_SIZE = 200


def _fold(text: Optional[str]) -> str:
    return strip_accents(text or '').lower().strip()


def find_licensee(records: Sequence[LicenseeRecord], code: int) -> Optional[LicenseeRecord]:
    """First record with the given code, or None."""
    for record in records:
        if record.code == code:
            return record
    return None


def search_records(records: Sequence[LicenseeRecord], query: str) -> List[LicenseeRecord]:
    """
    Records matching query, ranked exact code > exact name > partial.

    Args:
        records: Licensee records
        query: Free text; a blank query returns every record unchanged
    """
    term = query.strip()
    if not term:
        return list(records)

    folded = _fold(term)
    exact_code: List[LicenseeRecord] = []
    exact_name: List[LicenseeRecord] = []
    partial: List[LicenseeRecord] = []

    for record in records:
        code_text = str(record.code)
        if code_text == term:
            exact_code.append(record)
        elif _fold(record.name) == folded:
            exact_name.append(record)
        elif (
            folded in _fold(record.name)
            or term in code_text
            or folded in _fold(record.city)
        ):
            partial.append(record)

    return exact_code + exact_name + partial


def filter_records(
    records: Sequence[LicenseeRecord],
    status: Optional[LicenseeStatus] = None,
    state: Optional[str] = None,
    graduation: Optional[str] = None,
) -> List[LicenseeRecord]:
    """
    Apply the listing filters.

    state matches the state code exactly (case-insensitive). graduation
    matches the raw label or the tier name by substring.
    """
    selected = list(records)

    if status is not None:
        selected = [r for r in selected if r.status == status]

    if state:
        state_code = state.strip().upper()
        selected = [r for r in selected if r.state_code == state_code]

    if graduation:
        wanted = _fold(graduation)
        selected = [
            r for r in selected
            if wanted in _fold(r.graduation) or wanted in r.graduation_tier.value.lower()
        ]

    return selected


def sort_records(
    records: Sequence[LicenseeRecord],
    sort_by: str,
    sort_order: SortDirection = SortDirection.ASC,
) -> List[LicenseeRecord]:
    """
    Stable sort by one field. Records without a value (no activation date)
    always sort last.

    Raises:
        ValueError: If sort_by is not sortable
    """
    if sort_by not in SORTABLE_FIELDS:
        raise ValueError(
            f"Cannot sort by '{sort_by}'. Expected one of: {', '.join(SORTABLE_FIELDS)}"
        )

    def key(record: LicenseeRecord):
        if sort_by == 'graduation_tier':
            return record.graduation_tier.rank
        if sort_by == 'name':
            return _fold(record.name)
        return getattr(record, sort_by)

    present = [r for r in records if getattr(r, sort_by) is not None]
    missing = [r for r in records if getattr(r, sort_by) is None]

    ordered = sorted(present, key=key, reverse=sort_order == SortDirection.DESC)
    return ordered + missing


def paginate(
    records: Sequence[LicenseeRecord],
    page: int = 1,
    limit: int = 20,
) -> LicenseeListResponse:
    """
    Slice one page. Pages are 1-based; a page past the end is empty.

    Raises:
        ValueError: If page < 1 or limit is outside 1..MAX_PAGE_SIZE
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}, got {limit}")

    total = len(records)
    start = (page - 1) * limit

    return LicenseeListResponse(
        items=list(records[start:start + limit]),
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


def list_licensees(
    records: Sequence[LicenseeRecord],
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    status: Optional[LicenseeStatus] = None,
    state: Optional[str] = None,
    graduation: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: SortDirection = SortDirection.ASC,
) -> LicenseeListResponse:
    """
    Search, filter, optionally sort and paginate.

    Without sort_by, search relevance order (or source order) is kept.
    """
    selected = search_records(records, search) if search else list(records)
    selected = filter_records(selected, status=status, state=state, graduation=graduation)

    if sort_by:
        selected = sort_records(selected, sort_by, sort_order)

    return paginate(selected, page=page, limit=limit)


def export_records(records: Sequence[LicenseeRecord], fmt: ExportFormat) -> str:
    """
    Serialize records for download.

    CSV uses camelCase column headers, one row per licensee. JSON is a list
    of camelCase objects.
    """
    rows = [record.model_dump(mode='json', by_alias=True) for record in records]

    if fmt == ExportFormat.JSON:
        return json.dumps(rows, ensure_ascii=False)

    headers = [to_camel(name) for name in LicenseeRecord.model_fields]
    df = pd.DataFrame(rows, columns=headers)

    logger.info(f"Exporting {len(df)} licensees as CSV")
    return df.to_csv(index=False)
