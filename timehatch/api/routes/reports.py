"""
Time-entry report endpoints: paginated listing, CSV export and trend series.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

import pydantic
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from ...core.auth.fastapi_users import current_active_user
from ...core.auth.tortoise_models import User
from ...core.config import get_config
from ...core.errors import ValidationError
from ...core.reporting import (
    TrendService,
    export_time_entries_csv,
    fetch_time_entries,
)
from ...core.reporting.schemas import (
    Bucket,
    Metric,
    ReportFilters,
    SortOrder,
    TimeEntriesPage,
    TimeEntriesQuery,
    TrendQuery,
    TrendResponse,
)
from ..dependencies import get_trend_service

router = APIRouter(prefix="/reports", tags=["reports"])


def _build(model: Any, **values: Any) -> Any:
    """Validate query parameters into a report model, answering 400 on failure."""
    try:
        return model(**values)
    except pydantic.ValidationError as e:
        raise ValidationError(
            "Invalid report parameters",
            {"errors": [error["msg"] for error in e.errors()]},
        ) from e


def report_filters(
    from_: datetime = Query(..., alias="from"),
    to: datetime = Query(...),
    client_id: Optional[UUID] = Query(None, alias="clientId"),
    project_id: Optional[UUID] = Query(None, alias="projectId"),
    tag: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
) -> Dict[str, Any]:
    return {
        "from_": from_,
        "to": to,
        "client_id": client_id,
        "project_id": project_id,
        "tag": tag or None,
        "search": search or None,
    }


def time_entries_query(
    filters: Dict[str, Any] = Depends(report_filters),
    sort: SortOrder = Query(SortOrder.STARTED_AT_DESC),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    cursor: Optional[str] = Query(None),
) -> TimeEntriesQuery:
    reports = get_config().reports
    size = min(page_size or reports.default_page_size, reports.max_page_size)
    return _build(
        TimeEntriesQuery, sort=sort, page_size=size, cursor=cursor, **filters
    )


def trend_query(
    from_: datetime = Query(..., alias="from"),
    to: datetime = Query(...),
    client_id: Optional[UUID] = Query(None, alias="clientId"),
    project_id: Optional[UUID] = Query(None, alias="projectId"),
    bucket: Bucket = Query(Bucket.WEEK),
    metric: Metric = Query(Metric.HOURS),
    tz: str = Query("UTC"),
    skip_prev_totals: bool = Query(False, alias="skipPrevTotals"),
) -> TrendQuery:
    return _build(
        TrendQuery,
        from_=from_,
        to=to,
        client_id=client_id,
        project_id=project_id,
        bucket=bucket,
        metric=metric,
        tz=tz,
        skip_prev_totals=skip_prev_totals,
    )


@router.get("/time-entries", response_model=TimeEntriesPage)
async def get_time_entries(
    query: TimeEntriesQuery = Depends(time_entries_query),
    user: User = Depends(current_active_user),
) -> TimeEntriesPage:
    """Completed time entries, newest first by default, with keyset paging."""
    return await fetch_time_entries(user.id, query)


@router.get("/time-entries/export")
async def export_time_entries(
    filters: Dict[str, Any] = Depends(report_filters),
    user: User = Depends(current_active_user),
) -> Response:
    """Download the filtered report as CSV."""
    report = _build(ReportFilters, **filters)
    content = await export_time_entries_csv(user.id, report)
    filename = (
        f"time-entries-{report.from_.date().isoformat()}"
        f"-to-{report.to.date().isoformat()}.csv"
    )
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/trend", response_model=TrendResponse, response_model_exclude_none=True
)
async def get_trend(
    query: TrendQuery = Depends(trend_query),
    user: User = Depends(current_active_user),
    service: TrendService = Depends(get_trend_service),
) -> TrendResponse:
    """Hours and value per day, week or month, with previous-period totals."""
    return await service.fetch_trend(user.id, query)
