"""
Metrics Aggregator: descriptive statistics, rankings and dashboard summaries.

All functions are pure over a list of LicenseeRecord objects and recompute
from scratch on each call; memoization is the caller's concern (see the TTL
cache in the API layer).

Key Features:
- Mean, population standard deviation and index-pick quartiles per field
- Stable top-k rankings (ties keep source order)
- Dashboard KPIs, graduation distribution and per-state summaries
- Pearson correlation matrix (numpy) across numeric fields and tier rank
- Compounding growth projection with three scenarios

Statistical Methods:
- std_dev divides by n (population)
- Quartile qp is sorted_values[floor(n * p)], no interpolation
"""

import logging
import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from network_insights.models.enums import GraduationTier, LicenseeStatus, SortDirection
from network_insights.models.schemas import (
    AggregatedMetrics,
    CorrelationMatrix,
    DashboardKPIs,
    GraduationCount,
    GrowthPrediction,
    GrowthProjection,
    LicenseeRecord,
    Quartiles,
    StateSummary,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

NUMERIC_FIELDS = ('active_clients', 'telecom_clients', 'active_licensees')

# Monthly growth of the active base observed historically
DEFAULT_MONTHLY_GROWTH_RATE = 0.058

GROWTH_SCENARIOS: Dict[str, float] = {
    'pessimistic': 0.5,
    'realistic': 1.0,
    'optimistic': 1.5,
}

CORRELATION_FIELDS = ('active_clients', 'telecom_clients', 'active_licensees', 'graduation_rank')

UNKNOWN_STATE = 'N/A'


# =============================================================================
# STATISTICAL HELPERS
# =============================================================================


def mean(values: Sequence[float]) -> float:
    """
    Arithmetic mean.

    Returns:
        Mean, or 0.0 for an empty sequence
    """
    if not values:
        return 0.0
    return sum(values) / len(values)


def std_dev(values: Sequence[float]) -> float:
    """
    Population standard deviation (divides by n).

    Returns:
        Standard deviation, or 0.0 for fewer than 2 values
    """
    if len(values) < 2:
        return 0.0
    avg = mean(values)
    square_diffs = [(v - avg) ** 2 for v in values]
    return math.sqrt(mean(square_diffs))


def quartiles(values: Sequence[float]) -> Quartiles:
    """
    Quartiles by index pick: q_p = sorted[floor(n * p)].

    For [1..8] this yields q1=3, q2=5, q3=7.
    """
    if not values:
        return Quartiles()
    ordered = sorted(values)
    n = len(ordered)
    return Quartiles(
        q1=float(ordered[math.floor(n * 0.25)]),
        q2=float(ordered[math.floor(n * 0.5)]),
        q3=float(ordered[math.floor(n * 0.75)]),
    )


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def validate_field(field: str) -> str:
    """
    Ensure field names a numeric licensee attribute.

    Raises:
        ValueError: If field is not in NUMERIC_FIELDS
    """
    if field not in NUMERIC_FIELDS:
        raise ValueError(
            f"Unknown numeric field '{field}'. Expected one of: {', '.join(NUMERIC_FIELDS)}"
        )
    return field


def filter_by_status(
    records: Sequence[LicenseeRecord],
    status: Optional[LicenseeStatus] = None,
) -> List[LicenseeRecord]:
    if status is None:
        return list(records)
    return [r for r in records if r.status == status]


def activation_rate(active: int, total: int) -> float:
    """Active share in percent, one decimal; 0.0 when total is 0."""
    if total == 0:
        return 0.0
    return round(active / total * 100, 1)


# =============================================================================
# AGGREGATION
# =============================================================================


def compute_metrics(
    records: Sequence[LicenseeRecord],
    field: str,
    status: Optional[LicenseeStatus] = None,
) -> AggregatedMetrics:
    """
    Descriptive statistics of one numeric field.

    Args:
        records: Licensee records
        field: One of NUMERIC_FIELDS
        status: Optional status filter applied before aggregation

    Returns:
        AggregatedMetrics; every figure is 0 when no record passes the filter

    Raises:
        ValueError: If field is not a numeric field
    """
    validate_field(field)
    selected = filter_by_status(records, status)

    if not selected:
        return AggregatedMetrics(field=field)

    values = [getattr(r, field) for r in selected]

    return AggregatedMetrics(
        field=field,
        count=len(selected),
        active_count=sum(1 for r in selected if r.is_active),
        total=float(sum(values)),
        mean=mean(values),
        std_dev=std_dev(values),
        quartiles=quartiles(values),
    )


def rank_records(
    records: Sequence[LicenseeRecord],
    field: str,
    direction: SortDirection = SortDirection.DESC,
    top_k: int = 10,
    status: Optional[LicenseeStatus] = None,
    min_value: Optional[float] = None,
) -> List[LicenseeRecord]:
    """
    Top-k records by a numeric field.

    Sorting is stable: records with equal values keep their source order in
    both directions.

    Raises:
        ValueError: If field is unknown or top_k is negative
    """
    validate_field(field)
    if top_k < 0:
        raise ValueError(f"top_k must be >= 0, got {top_k}")

    selected = filter_by_status(records, status)
    if min_value is not None:
        selected = [r for r in selected if getattr(r, field) > min_value]

    ranked = sorted(
        selected,
        key=lambda r: getattr(r, field),
        reverse=direction == SortDirection.DESC,
    )

    return ranked[:top_k]


def compute_kpis(records: Sequence[LicenseeRecord]) -> DashboardKPIs:
    total = len(records)
    active = sum(1 for r in records if r.is_active)

    return DashboardKPIs(
        total_licensees=total,
        active_licensees=active,
        inactive_licensees=total - active,
        activation_rate=activation_rate(active, total),
        total_clients=sum(r.active_clients for r in records),
        total_telecom_clients=sum(r.telecom_clients for r in records),
    )


def distribution_by_graduation(
    records: Sequence[LicenseeRecord],
    active_only: bool = True,
) -> List[GraduationCount]:
    """
    Licensee count per graduation tier, highest tier first.

    Tiers with no licensees are omitted.
    """
    counts: Dict[GraduationTier, int] = {}
    for record in records:
        if active_only and not record.is_active:
            continue
        counts[record.graduation_tier] = counts.get(record.graduation_tier, 0) + 1

    return [
        GraduationCount(graduation=tier, count=counts[tier])
        for tier in sorted(counts, key=lambda t: t.rank, reverse=True)
    ]


def summarize_by_state(
    records: Sequence[LicenseeRecord],
    top_n: Optional[int] = 10,
) -> List[StateSummary]:
    """
    Per-state totals, averages and activation rate.

    Averages are over every licensee of the state. States are ordered by
    total licensees, descending; equal totals keep first-seen order.

    Args:
        records: Licensee records
        top_n: Number of states to return; None for all
    """
    grouped: Dict[str, List[LicenseeRecord]] = {}
    for record in records:
        grouped.setdefault(record.state_code or UNKNOWN_STATE, []).append(record)

    summaries = []
    for state_code, members in grouped.items():
        total = len(members)
        active = sum(1 for r in members if r.is_active)
        clients = sum(r.active_clients for r in members)
        telecom = sum(r.telecom_clients for r in members)

        summaries.append(StateSummary(
            state_code=state_code,
            total=total,
            active=active,
            total_clients=clients,
            total_telecom=telecom,
            avg_clients=round(clients / total, 1),
            avg_telecom=round(telecom / total, 1),
            activation_rate=activation_rate(active, total),
        ))

    summaries.sort(key=lambda s: -s.total)
    return summaries if top_n is None else summaries[:top_n]


def correlation_matrix(
    records: Sequence[LicenseeRecord],
    active_only: bool = True,
) -> CorrelationMatrix:
    """
    Pearson correlation between client counts, recruits and graduation rank.

    Pairs where either series has zero variance (including fewer than two
    samples) get 0.0. The diagonal is always 1.0.
    """
    selected = [r for r in records if r.is_active] if active_only else list(records)

    columns = {
        'active_clients': np.array([r.active_clients for r in selected], dtype=float),
        'telecom_clients': np.array([r.telecom_clients for r in selected], dtype=float),
        'active_licensees': np.array([r.active_licensees for r in selected], dtype=float),
        'graduation_rank': np.array([r.graduation_tier.rank for r in selected], dtype=float),
    }

    matrix: Dict[str, Dict[str, float]] = {}
    for left in CORRELATION_FIELDS:
        matrix[left] = {}
        for right in CORRELATION_FIELDS:
            if left == right:
                matrix[left][right] = 1.0
                continue

            x, y = columns[left], columns[right]
            if len(x) < 2 or np.std(x) == 0 or np.std(y) == 0:
                matrix[left][right] = 0.0
                continue

            matrix[left][right] = round(float(np.corrcoef(x, y)[0, 1]), 3)

    return CorrelationMatrix(
        fields=list(CORRELATION_FIELDS),
        matrix=matrix,
        sample_size=len(selected),
    )


def project_growth(
    active_count: int,
    months: int = 6,
    monthly_rate: float = DEFAULT_MONTHLY_GROWTH_RATE,
) -> GrowthPrediction:
    """
    Compounding projection of the active base.

    Month i (1-based) of each scenario is active_count * (1 + rate * m) ** i,
    with m in GROWTH_SCENARIOS. Confidence starts at 90 and loses 5 points per
    month, floored at 70.

    Raises:
        ValueError: If months is not positive or active_count is negative
    """
    if months < 1:
        raise ValueError(f"months must be >= 1, got {months}")
    if active_count < 0:
        raise ValueError(f"active_count must be >= 0, got {active_count}")

    projections = []
    for i in range(1, months + 1):
        scenario_values = {
            name: round_half_up(active_count * (1 + monthly_rate * multiplier) ** i)
            for name, multiplier in GROWTH_SCENARIOS.items()
        }
        projections.append(GrowthProjection(
            month=i,
            confidence=max(95 - 5 * i, 70),
            **scenario_values,
        ))

    return GrowthPrediction(
        current_active=active_count,
        monthly_rate=monthly_rate,
        projections=projections,
    )
