"""
FastAPI router module for spreadsheet synchronization.

Endpoints:
- POST /sync/refresh: Drop every cache entry and reload the spreadsheet
- GET /sync/status: Cache statistics and the size of the current snapshot
"""

import logging

from fastapi import APIRouter, HTTPException

from network_insights.core.dependencies import CacheDep, RecordSourceDep
from network_insights.models import SyncStatus
from network_insights.services.record_source import RECORDS_CACHE_KEY
from network_insights.services.sheets import DataSourceUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("/refresh", response_model=SyncStatus)
async def refresh(source: RecordSourceDep, cache: CacheDep) -> SyncStatus:
    """
    Force a reload from Google Sheets.

    Raises:
        HTTPException 503: If the spreadsheet cannot be read; the cache is
            left empty so the next request retries
    """
    try:
        records = await source.refresh()
    except DataSourceUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Licensee data unavailable: {e}")
    except Exception as e:
        logger.error(f"Error refreshing licensee data: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error refreshing licensee data: {str(e)}",
        )

    logger.info(f"Manual refresh loaded {len(records)} records")
    return SyncStatus(
        record_count=len(records),
        last_refresh=source.last_refresh,
        cache=cache.stats(),
    )


@router.get("/status", response_model=SyncStatus)
async def status(source: RecordSourceDep, cache: CacheDep) -> SyncStatus:
    """Report cache state without touching the spreadsheet."""
    snapshot = cache.get(RECORDS_CACHE_KEY)
    return SyncStatus(
        record_count=len(snapshot) if snapshot is not None else 0,
        last_refresh=source.last_refresh,
        cache=cache.stats(),
    )
