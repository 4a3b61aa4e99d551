"""
FastAPI router module for the dashboard overview endpoints.

Endpoints:
- GET /dashboard/kpis: Headline counts and activation rate
- GET /dashboard/top-performers: Active licensees with the most active clients
- GET /dashboard/by-graduation: Active licensees per graduation tier
- GET /dashboard/by-state: Per-state summaries, largest states first
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query

from network_insights.core.dependencies import RecordsDep
from network_insights.models import (
    DashboardKPIs,
    GraduationCount,
    LicenseeRecord,
    LicenseeStatus,
    StateSummary,
)
from network_insights.services.aggregation import (
    compute_kpis,
    distribution_by_graduation,
    rank_records,
    summarize_by_state,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/kpis", response_model=DashboardKPIs)
async def get_kpis(records: RecordsDep) -> DashboardKPIs:
    """
    Headline KPIs over the whole licensee base.

    Returns:
        DashboardKPIs with total, active and inactive licensees, activation
        rate (percent, one decimal) and client totals
    """
    try:
        return compute_kpis(records)
    except Exception as e:
        logger.error(f"Error computing dashboard KPIs: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error computing dashboard KPIs: {str(e)}",
        )


@router.get("/top-performers", response_model=List[LicenseeRecord])
async def get_top_performers(
    records: RecordsDep,
    limit: int = Query(default=10, ge=1, le=100, description="Number of licensees"),
) -> List[LicenseeRecord]:
    """Active licensees with at least one client, most active clients first."""
    try:
        return rank_records(
            records,
            'active_clients',
            top_k=limit,
            status=LicenseeStatus.ACTIVE,
            min_value=0,
        )
    except Exception as e:
        logger.error(f"Error ranking top performers: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error ranking top performers: {str(e)}",
        )


@router.get("/by-graduation", response_model=List[GraduationCount])
async def get_by_graduation(records: RecordsDep) -> List[GraduationCount]:
    try:
        return distribution_by_graduation(records, active_only=True)
    except Exception as e:
        logger.error(f"Error computing graduation distribution: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error computing graduation distribution: {str(e)}",
        )


@router.get("/by-state", response_model=List[StateSummary])
async def get_by_state(
    records: RecordsDep,
    limit: int = Query(default=10, ge=1, le=50, description="Number of states"),
) -> List[StateSummary]:
    try:
        return summarize_by_state(records, top_n=limit)
    except Exception as e:
        logger.error(f"Error summarizing states: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error summarizing states: {str(e)}",
        )
