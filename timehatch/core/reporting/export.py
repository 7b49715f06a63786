"""
CSV exports of tracked time.

Two layouts are produced: the report export mirrors the filtered report
table, the date-range export is the simpler per-day download offered on the
dashboard. Dates and times are rendered in UTC.
"""

import csv
import io
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional
from uuid import UUID

from ..models.tortoise_models import TimeEntry
from ..timeutils import duration_ms, format_time_for_csv
from .schemas import ReportFilters
from .time_entries import filtered_entries

REPORT_HEADERS = [
    "Date",
    "Project",
    "Client",
    "Start Time",
    "End Time",
    "Duration (H:M)",
    "Duration (Decimal Hours)",
    "Rate",
    "Value",
    "Tags",
    "Notes",
]

DATE_RANGE_HEADERS = [
    "Date",
    "Project",
    "Client",
    "Start Time",
    "End Time",
    "Duration (Hours)",
    "Rate",
    "Value",
    "Notes",
]


def _render(headers: List[str], rows: Iterable[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def _clock(moment: Optional[datetime]) -> str:
    if moment is None:
        return ""
    return moment.astimezone(timezone.utc).strftime("%H:%M:%S")


def report_csv_row(entry: TimeEntry) -> List[str]:
    """Render one entry for the report export."""
    project = entry.project
    client = project.client
    minutes = duration_ms(entry.started_at, entry.stopped_at) // 60000
    rate = float(project.rate_hour or 0)
    duration = format_time_for_csv(minutes)

    return [
        entry.started_at.astimezone(timezone.utc).date().isoformat(),
        project.name,
        client.name if client else "",
        _clock(entry.started_at),
        _clock(entry.stopped_at),
        duration.hours_minutes,
        duration.decimal_hours,
        f"{rate:.2f}",
        f"{minutes / 60 * rate:.2f}",
        ", ".join(entry.tags or []),
        entry.notes or "",
    ]


def date_range_csv_row(entry: TimeEntry) -> List[str]:
    """Render one entry for the date-range export."""
    project = entry.project
    client = project.client
    hours = duration_ms(entry.started_at, entry.stopped_at) / 3_600_000
    rate = float(project.rate_hour or 0)

    return [
        entry.started_at.astimezone(timezone.utc).date().isoformat(),
        project.name,
        client.name if client else "No Client",
        _clock(entry.started_at),
        _clock(entry.stopped_at),
        f"{hours:.2f}",
        f"{rate:.2f}",
        f"{hours * rate:.2f}",
        entry.notes or "",
    ]


async def export_time_entries_csv(user_id: UUID, filters: ReportFilters) -> str:
    """Export every report row matching the filters, newest first."""
    entries = await (
        (await filtered_entries(user_id, filters))
        .select_related("project", "project__client")
        .order_by("-started_at", "-id")
    )
    return _render(REPORT_HEADERS, (report_csv_row(entry) for entry in entries))


async def export_date_range_csv(
    user_id: UUID,
    start_date: date,
    end_date: date,
    client_id: Optional[UUID] = None,
    project_id: Optional[UUID] = None,
) -> str:
    """Export completed entries started on any day from start to end inclusive."""
    range_start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    range_end = datetime.combine(end_date, time.min, tzinfo=timezone.utc) + timedelta(
        days=1
    )

    queryset = TimeEntry.filter(
        user_id=user_id,
        started_at__gte=range_start,
        started_at__lt=range_end,
        stopped_at__isnull=False,
    )
    if project_id:
        queryset = queryset.filter(project_id=project_id)
    if client_id:
        queryset = queryset.filter(project__client_id=client_id)

    entries = await queryset.select_related("project", "project__client").order_by(
        "-started_at"
    )
    return _render(DATE_RANGE_HEADERS, (date_range_csv_row(e) for e in entries))


def date_range_filename(start_date: date, end_date: date) -> str:
    return f"time-report-{start_date.isoformat()}-to-{end_date.isoformat()}.csv"
