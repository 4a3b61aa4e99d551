"""
FastAPI router module for advanced analytics endpoints.

Endpoints:
- GET /analytics/metrics: Descriptive statistics of one numeric field
- GET /analytics/ranking: Top-k licensees by one numeric field
- GET /analytics/churn-analysis: Churn-risk classification of active licensees
- GET /analytics/geographic-clusters: State clusters and headline states
- GET /analytics/correlation-matrix: Pearson correlations
- GET /analytics/growth-prediction: Six-month projection of the active base
- GET /analytics/performance-score: Network performance score

Derived payloads are memoized in the shared TTL cache under "analytics:" keys
for analytics_cache_ttl_seconds (10 minutes by default). /sync/refresh
drops them together with the record snapshot.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from network_insights.core.dependencies import CacheDep, RecordsDep, SettingsDep
from network_insights.models import (
    AggregatedMetrics,
    ChurnAnalysis,
    CorrelationMatrix,
    GeographicClusters,
    GrowthPrediction,
    LicenseeStatus,
    NumericField,
    PerformanceScore,
    RankingResponse,
    SortDirection,
)
from network_insights.services.aggregation import (
    DEFAULT_MONTHLY_GROWTH_RATE,
    compute_metrics,
    correlation_matrix,
    project_growth,
    rank_records,
    summarize_by_state,
)
from network_insights.services.classification import (
    analyze_churn,
    cluster_states,
    compute_performance_score,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/metrics", response_model=AggregatedMetrics)
async def get_metrics(
    records: RecordsDep,
    field: str = Query(default=NumericField.ACTIVE_CLIENTS.value, description="Numeric field"),
    status: Optional[LicenseeStatus] = Query(default=None),
) -> AggregatedMetrics:
    """
    Mean, population standard deviation and quartiles of one field.

    Raises:
        HTTPException 400: If field is not a numeric field
        HTTPException 500: If aggregation fails
    """
    try:
        return compute_metrics(records, field, status=status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error computing metrics for {field}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error computing metrics: {str(e)}",
        )


@router.get("/ranking", response_model=RankingResponse)
async def get_ranking(
    records: RecordsDep,
    field: str = Query(default=NumericField.ACTIVE_CLIENTS.value),
    direction: SortDirection = Query(default=SortDirection.DESC),
    top_k: int = Query(default=10, ge=1, le=500),
    status: Optional[LicenseeStatus] = Query(default=None),
) -> RankingResponse:
    try:
        items = rank_records(records, field, direction=direction, top_k=top_k, status=status)
        return RankingResponse(field=field, direction=direction, top_k=top_k, items=items)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error ranking by {field}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error ranking licensees: {str(e)}",
        )


@router.get("/churn-analysis", response_model=ChurnAnalysis)
async def get_churn_analysis(
    records: RecordsDep,
    cache: CacheDep,
    settings: SettingsDep,
    top_n: int = Query(default=20, ge=1, le=500),
) -> ChurnAnalysis:
    """Riskiest active licensees with a label summary over the returned slice."""
    try:
        return cache.get_or_set(
            f"analytics:churn:{top_n}",
            lambda: analyze_churn(records, top_n=top_n),
            settings.analytics_cache_ttl_seconds,
        )
    except Exception as e:
        logger.error(f"Error analyzing churn: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error analyzing churn: {str(e)}",
        )


@router.get("/geographic-clusters", response_model=GeographicClusters)
async def get_geographic_clusters(
    records: RecordsDep,
    cache: CacheDep,
    settings: SettingsDep,
) -> GeographicClusters:
    try:
        return cache.get_or_set(
            "analytics:geographic-clusters",
            lambda: cluster_states(summarize_by_state(records, top_n=None)),
            settings.analytics_cache_ttl_seconds,
        )
    except Exception as e:
        logger.error(f"Error clustering states: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error clustering states: {str(e)}",
        )


@router.get("/correlation-matrix", response_model=CorrelationMatrix)
async def get_correlation_matrix(
    records: RecordsDep,
    cache: CacheDep,
    settings: SettingsDep,
) -> CorrelationMatrix:
    try:
        return cache.get_or_set(
            "analytics:correlation-matrix",
            lambda: correlation_matrix(records),
            settings.analytics_cache_ttl_seconds,
        )
    except Exception as e:
        logger.error(f"Error computing correlation matrix: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error computing correlation matrix: {str(e)}",
        )


@router.get("/growth-prediction", response_model=GrowthPrediction)
async def get_growth_prediction(
    records: RecordsDep,
    months: int = Query(default=6, ge=1, le=24),
    monthly_rate: float = Query(default=DEFAULT_MONTHLY_GROWTH_RATE, ge=0.0, le=1.0),
) -> GrowthPrediction:
    try:
        active_count = sum(1 for r in records if r.is_active)
        return project_growth(active_count, months=months, monthly_rate=monthly_rate)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error projecting growth: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error projecting growth: {str(e)}",
        )


@router.get("/performance-score", response_model=PerformanceScore)
async def get_performance_score(
    records: RecordsDep,
    cache: CacheDep,
    settings: SettingsDep,
) -> PerformanceScore:
    try:
        return cache.get_or_set(
            "analytics:performance-score",
            lambda: compute_performance_score(records),
            settings.analytics_cache_ttl_seconds,
        )
    except Exception as e:
        logger.error(f"Error computing performance score: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error computing performance score: {str(e)}",
        )
