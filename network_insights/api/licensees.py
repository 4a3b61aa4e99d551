"""
FastAPI router module for licensee listing, lookup and export.

Endpoints:
- GET /licensees: Searchable, filterable, paginated list
- GET /licensees/export: Full filtered list as CSV or JSON
- GET /licensees/{code}: One licensee, 404 when absent

Search ordering: exact code match first, then exact name match, then partial
matches on name, code or city.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from network_insights.core.dependencies import RecordsDep
from network_insights.models import (
    ExportFormat,
    LicenseeListResponse,
    LicenseeRecord,
    LicenseeStatus,
    SortDirection,
)
from network_insights.services.licensees import (
    MAX_PAGE_SIZE,
    export_records,
    filter_records,
    find_licensee,
    list_licensees,
    search_records,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/licensees", tags=["licensees"])

EXPORT_MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv; charset=utf-8",
    ExportFormat.JSON: "application/json",
}


@router.get("", response_model=LicenseeListResponse)
async def list_licensees_endpoint(
    records: RecordsDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(default=None, description="Code, name or city"),
    status: Optional[LicenseeStatus] = Query(default=None),
    state: Optional[str] = Query(default=None, description="State code (UF)"),
    graduation: Optional[str] = Query(default=None, description="Graduation label or tier"),
    sort_by: Optional[str] = Query(default=None),
    sort_order: SortDirection = Query(default=SortDirection.ASC),
) -> LicenseeListResponse:
    """
    List licensees.

    Raises:
        HTTPException 400: If sort_by is not a sortable field
        HTTPException 500: If listing fails
    """
    try:
        return list_licensees(
            records,
            page=page,
            limit=limit,
            search=search,
            status=status,
            state=state,
            graduation=graduation,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error listing licensees: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error listing licensees: {str(e)}",
        )


@router.get("/export")
async def export_licensees(
    records: RecordsDep,
    format: ExportFormat = Query(default=ExportFormat.CSV),
    search: Optional[str] = Query(default=None),
    status: Optional[LicenseeStatus] = Query(default=None),
    state: Optional[str] = Query(default=None),
    graduation: Optional[str] = Query(default=None),
) -> Response:
    """Download the filtered licensee list."""
    try:
        selected = search_records(records, search) if search else records
        selected = filter_records(selected, status=status, state=state, graduation=graduation)
        body = export_records(selected, format)
    except Exception as e:
        logger.error(f"Error exporting licensees: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error exporting licensees: {str(e)}",
        )

    return Response(
        content=body,
        media_type=EXPORT_MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="licensees.{format.value}"'},
    )


@router.get("/{code}", response_model=LicenseeRecord)
async def get_licensee(code: int, records: RecordsDep) -> LicenseeRecord:
    record = find_licensee(records, code)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Licensee {code} not found")
    return record
