"""
FastAPI dependency injection module for the Network Insights backend.

The cache and the record source are process-wide objects created once in the
application lifespan (see network_insights/main.py) and stored on app.state.
The dependencies below read them back off the request, so handlers never touch
module-level state and tests can swap them with app.dependency_overrides.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_cache: Returns the shared TTLCache
- get_record_source: Returns the shared RecordSource
- get_records: Awaits the record snapshot, mapping upstream failure to HTTP 503
- SettingsDep, CacheDep, RecordSourceDep, RecordsDep: Annotated aliases for handlers

Usage Examples:
    @router.get("/kpis")
    async def get_kpis(source: RecordSourceDep, cache: CacheDep):
        records = await source.get_records()
        ...

    # In tests
    app.dependency_overrides[get_record_source] = lambda: fake_source
"""

from typing import Annotated, List

from fastapi import Depends, HTTPException, Request

from network_insights.core.cache import TTLCache
from network_insights.core.config import Settings, get_settings
from network_insights.models.schemas import LicenseeRecord
from network_insights.services.record_source import RecordSource
from network_insights.services.sheets import DataSourceUnavailableError


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so the settings can be overridden in
    tests:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# =============================================================================
# Shared Runtime Objects
# =============================================================================

def get_cache(request: Request) -> TTLCache:
    """Return the TTLCache built during application startup."""
    return request.app.state.cache


def get_record_source(request: Request) -> RecordSource:
    """
    Return the RecordSource built during application startup.

    The record source owns the spreadsheet snapshot and its cache entry;
    handlers call ``await source.get_records()`` for normalized records.
    """
    return request.app.state.record_source


async def get_records(source: Annotated[RecordSource, Depends(get_record_source)]) -> List[LicenseeRecord]:
    """
    Return the current normalized snapshot.

    Raises:
        HTTPException 503: If the spreadsheet cannot be read
    """
    try:
        return await source.get_records()
    except DataSourceUnavailableError as e:
        raise HTTPException(
            status_code=503,
            detail=f"Licensee data unavailable: {e}",
        ) from e


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

CacheDep = Annotated[TTLCache, Depends(get_cache)]

RecordSourceDep = Annotated[RecordSource, Depends(get_record_source)]

RecordsDep = Annotated[List[LicenseeRecord], Depends(get_records)]
