"""
Derived-Insight Classifier

Fixed business rules that turn licensee metrics into labels:

- Churn risk: additive rule points per licensee, capped at 95, then banded
  into urgent / monitor / low_risk
- Geographic clusters: each state summary placed in premium / potential /
  growth / development by average clients and activation rate
- Performance score: mean of growth, quality and engagement sub-scores

Every rule is a named constant below; the classifier is deterministic, so the
same record always yields the same score and label.

Churn Rules (points are additive):
- active_clients < 5: +30
- 5 <= active_clients < 10: +15
- telecom_clients == 0: +25
- active_licensees == 0 (no recruits): +20
- entry-level graduation tier: +15

Risk Bands:
- score > 70: urgent
- 40 < score <= 70: monitor
- score <= 40: low_risk
"""

import logging
from typing import Dict, List, Optional, Sequence

from network_insights.models.enums import RiskLabel, StateCluster
from network_insights.models.schemas import (
    ChurnAnalysis,
    ChurnRiskResult,
    ChurnSummary,
    GeographicClusters,
    LicenseeRecord,
    PerformanceScore,
    StateClusterResult,
    StateSummary,
)
from network_insights.services.aggregation import activation_rate, mean

logger = logging.getLogger(__name__)


# =============================================================================
# CHURN RULES
# =============================================================================

LOW_CLIENTS_THRESHOLD = 5
MODERATE_CLIENTS_THRESHOLD = 10

LOW_CLIENTS_POINTS = 30
MODERATE_CLIENTS_POINTS = 15
NO_TELECOM_POINTS = 25
NO_RECRUITS_POINTS = 20
ENTRY_TIER_POINTS = 15

MAX_CHURN_SCORE = 95

URGENT_ABOVE = 70
MONITOR_ABOVE = 40

FACTOR_LOW_CLIENTS = "Low number of active clients"
FACTOR_MODERATE_CLIENTS = "Moderate number of active clients"
FACTOR_NO_TELECOM = "No telecom clients"
FACTOR_NO_RECRUITS = "No active licensees in own network"
FACTOR_ENTRY_TIER = "Entry-level graduation"

RISK_RECOMMENDATIONS: Dict[RiskLabel, str] = {
    RiskLabel.URGENT: "Urgent action required",
    RiskLabel.MONITOR: "Monitor closely",
    RiskLabel.LOW_RISK: "Low risk",
}


# =============================================================================
# STATE CLUSTER RULES
# Each entry: (cluster, min avg clients (exclusive), min activation % (exclusive))
# Checked in order; the first match wins.
# =============================================================================

STATE_CLUSTER_RULES = [
    (StateCluster.PREMIUM, 100.0, 85.0),
    (StateCluster.POTENTIAL, 50.0, 70.0),
    (StateCluster.GROWTH, 25.0, None),
]

NEEDS_ATTENTION_ACTIVATION = 50.0


# =============================================================================
# PERFORMANCE SCORE
# =============================================================================

QUALITY_CLIENTS_TARGET = 50.0
ENGAGEMENT_TELECOM_TARGET = 20.0

PERFORMANCE_BANDS = [
    (70.0, "Urgent action required across multiple areas"),
    (85.0, "Improvement opportunities identified"),
]
PERFORMANCE_TOP_RECOMMENDATION = "Excellent performance - keep the current strategy"


# =============================================================================
# CHURN RISK
# =============================================================================


def risk_label(score: int) -> RiskLabel:
    """Band a churn score into a RiskLabel."""
    if score > URGENT_ABOVE:
        return RiskLabel.URGENT
    if score > MONITOR_ABOVE:
        return RiskLabel.MONITOR
    return RiskLabel.LOW_RISK


def classify_churn_risk(record: LicenseeRecord) -> ChurnRiskResult:
    """
    Score one licensee against the churn rules.

    Args:
        record: Licensee record; missing metrics are already 0 after
            normalization

    Returns:
        ChurnRiskResult with the capped score, label, fired factors,
        recommendation and the metrics the rules looked at
    """
    score = 0
    factors: List[str] = []

    if record.active_clients < LOW_CLIENTS_THRESHOLD:
        score += LOW_CLIENTS_POINTS
        factors.append(FACTOR_LOW_CLIENTS)
    elif record.active_clients < MODERATE_CLIENTS_THRESHOLD:
        score += MODERATE_CLIENTS_POINTS
        factors.append(FACTOR_MODERATE_CLIENTS)

    if record.telecom_clients == 0:
        score += NO_TELECOM_POINTS
        factors.append(FACTOR_NO_TELECOM)

    if record.active_licensees == 0:
        score += NO_RECRUITS_POINTS
        factors.append(FACTOR_NO_RECRUITS)

    if record.graduation_tier.is_entry_level:
        score += ENTRY_TIER_POINTS
        factors.append(FACTOR_ENTRY_TIER)

    score = min(score, MAX_CHURN_SCORE)
    label = risk_label(score)

    return ChurnRiskResult(
        id=record.code,
        name=record.name,
        score=score,
        label=label,
        factors=factors,
        recommendation=RISK_RECOMMENDATIONS[label],
        metrics={
            'active_clients': record.active_clients,
            'telecom_clients': record.telecom_clients,
            'active_licensees': record.active_licensees,
            'graduation': record.graduation or record.graduation_tier.value,
        },
    )


def analyze_churn(records: Sequence[LicenseeRecord], top_n: int = 20) -> ChurnAnalysis:
    """
    Classify every active licensee and return the riskiest top_n.

    Results are sorted by score descending; equal scores keep source order.
    The summary counts labels over the returned slice.
    """
    if top_n < 0:
        raise ValueError(f"top_n must be >= 0, got {top_n}")

    results = [classify_churn_risk(r) for r in records if r.is_active]
    results.sort(key=lambda result: -result.score)
    top = results[:top_n]

    summary = ChurnSummary(
        total_analyzed=len(results),
        urgent=sum(1 for r in top if r.label == RiskLabel.URGENT),
        monitor=sum(1 for r in top if r.label == RiskLabel.MONITOR),
        low_risk=sum(1 for r in top if r.label == RiskLabel.LOW_RISK),
    )

    logger.debug(
        f"Churn analysis: {summary.total_analyzed} analyzed, {summary.urgent} urgent in top {top_n}"
    )
    return ChurnAnalysis(items=top, summary=summary)


# =============================================================================
# GEOGRAPHIC CLUSTERS
# =============================================================================


def classify_state_cluster(summary: StateSummary) -> StateCluster:
    for cluster, min_avg_clients, min_activation in STATE_CLUSTER_RULES:
        if summary.avg_clients <= min_avg_clients:
            continue
        if min_activation is not None and summary.activation_rate <= min_activation:
            continue
        return cluster
    return StateCluster.DEVELOPMENT


def cluster_states(summaries: Sequence[StateSummary]) -> GeographicClusters:
    """
    Assign clusters to state summaries and pick the headline states.

    best_performer has the highest average clients, highest_activation the
    highest activation rate (first in input order on ties). needs_attention
    lists states under 50% activation.
    """
    states = [
        StateClusterResult(
            state_code=s.state_code,
            cluster=classify_state_cluster(s),
            total=s.total,
            active=s.active,
            avg_clients=s.avg_clients,
            activation_rate=s.activation_rate,
        )
        for s in summaries
    ]

    best: Optional[StateSummary] = None
    highest: Optional[StateSummary] = None
    for s in summaries:
        if best is None or s.avg_clients > best.avg_clients:
            best = s
        if highest is None or s.activation_rate > highest.activation_rate:
            highest = s

    return GeographicClusters(
        states=states,
        best_performer=best.state_code if best else None,
        highest_activation=highest.state_code if highest else None,
        needs_attention=[
            s.state_code for s in summaries
            if s.activation_rate < NEEDS_ATTENTION_ACTIVATION
        ],
    )


# =============================================================================
# PERFORMANCE SCORE
# =============================================================================


def performance_recommendation(overall: float) -> str:
    for upper_bound, recommendation in PERFORMANCE_BANDS:
        if overall < upper_bound:
            return recommendation
    return PERFORMANCE_TOP_RECOMMENDATION


def compute_performance_score(records: Sequence[LicenseeRecord]) -> PerformanceScore:
    """
    Network performance score from the active base.

    - growth: activation rate (%)
    - quality: average active clients per active licensee vs a target of 50
    - engagement: average telecom clients per active licensee vs a target of 20

    Each sub-score is capped at 100; overall is their mean, rounded.
    """
    active = [r for r in records if r.is_active]

    growth = min(activation_rate(len(active), len(records)), 100.0)
    quality = min(mean([r.active_clients for r in active]) / QUALITY_CLIENTS_TARGET * 100, 100.0)
    engagement = min(
        mean([r.telecom_clients for r in active]) / ENGAGEMENT_TELECOM_TARGET * 100, 100.0
    )
    overall = round(mean([growth, quality, engagement]), 1)

    return PerformanceScore(
        overall=overall,
        growth=round(growth, 1),
        quality=round(quality, 1),
        engagement=round(engagement, 1),
        recommendation=performance_recommendation(overall),
    )
