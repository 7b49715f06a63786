"""
Paginated time-entry report.

Pages are addressed with keyset cursors over ``(started_at, id)`` so that
rows inserted while a user pages through the report never shift later pages.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from tortoise.expressions import Q
from tortoise.queryset import QuerySet

from ..logging import get_logger
from ..models.tortoise_models import TimeEntry
from ..timeutils import duration_ms
from .cursor import decode_cursor, encode_cursor
from .schemas import (
    NamedRef,
    PageInfo,
    ReportFilters,
    SortOrder,
    TimeEntriesPage,
    TimeEntriesQuery,
    TimeEntryRow,
)

logger = get_logger(__name__)


def supports_json_contains() -> bool:
    return TimeEntry._meta.db.capabilities.dialect == "postgres"


async def filtered_entries(
    user_id: UUID, filters: ReportFilters
) -> QuerySet[TimeEntry]:
    """
    Completed entries of a user inside ``[from, to)`` matching the filters.

    Entries whose project has no client are excluded from reports. The tag
    filter uses JSON containment on PostgreSQL; other backends match tags of
    the already narrowed rows.
    """
    queryset = TimeEntry.filter(
        user_id=user_id,
        started_at__gte=filters.from_,
        started_at__lt=filters.to,
        stopped_at__isnull=False,
        project__client_id__isnull=False,
    )

    if filters.client_id:
        queryset = queryset.filter(project__client_id=filters.client_id)
    if filters.project_id:
        queryset = queryset.filter(project_id=filters.project_id)
    if filters.search:
        queryset = queryset.filter(notes__icontains=filters.search)
    if filters.tag:
        if supports_json_contains():
            queryset = queryset.filter(tags__contains=[filters.tag])
        else:
            rows = await queryset.values_list("id", "tags")
            matching = [
                entry_id for entry_id, tags in rows if filters.tag in (tags or [])
            ]
            queryset = queryset.filter(id__in=matching)

    return queryset


def entry_value(hours: float, rate: Optional[Decimal]) -> float:
    """Billable value of an entry, 0 when the project has no rate."""
    if rate is None:
        return 0.0
    return hours * float(rate)


def to_row(entry: TimeEntry) -> TimeEntryRow:
    """Shape a fetched entry (with project and client loaded) as a report row."""
    project = entry.project
    client = project.client
    ms = duration_ms(entry.started_at, entry.stopped_at)
    rate = float(project.rate_hour) if project.rate_hour is not None else None

    return TimeEntryRow(
        id=entry.id,
        date=entry.started_at.date().isoformat(),
        project=NamedRef(id=project.id, name=project.name),
        client=NamedRef(id=client.id, name=client.name),
        duration_ms=ms,
        rate=rate,
        value=entry_value(ms / 3_600_000, project.rate_hour),
        tags=entry.tags or [],
        notes=entry.notes,
    )


async def fetch_time_entries(user_id: UUID, query: TimeEntriesQuery) -> TimeEntriesPage:
    """
    Fetch one page of the time-entry report.

    Args:
        user_id: Owner of the entries
        query: Filters, ordering and pagination parameters

    Returns:
        The rows of the page and its pagination info

    Raises:
        ValidationError: If the cursor cannot be decoded
    """
    base = await filtered_entries(user_id, query)
    descending = query.sort == SortOrder.STARTED_AT_DESC

    page_query = base
    if query.cursor:
        started_at, entry_id = decode_cursor(query.cursor)
        if descending:
            page_query = page_query.filter(
                Q(started_at__lt=started_at)
                | Q(started_at=started_at, id__lt=entry_id)
            )
        else:
            page_query = page_query.filter(
                Q(started_at__gt=started_at)
                | Q(started_at=started_at, id__gt=entry_id)
            )

    ordering = ("-started_at", "-id") if descending else ("started_at", "id")
    entries = (
        await page_query.select_related("project", "project__client")
        .order_by(*ordering)
        .limit(query.page_size + 1)
    )

    has_next_page = len(entries) > query.page_size
    entries = entries[: query.page_size]

    next_cursor = None
    if has_next_page and entries:
        last = entries[-1]
        next_cursor = encode_cursor(last.started_at, last.id)

    total_count: Optional[int] = None
    try:
        total_count = await base.count()
    except Exception as e:
        logger.warning("Failed to count report entries", error=str(e))

    return TimeEntriesPage(
        rows=[to_row(entry) for entry in entries],
        page_info=PageInfo(
            next_cursor=next_cursor,
            prev_cursor=None,
            has_next_page=has_next_page,
            has_prev_page=bool(query.cursor),
            total_count=total_count,
        ),
    )
