"""Request and response models for time-entry reports."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ReportModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SortOrder(str, Enum):
    """Supported report orderings."""

    STARTED_AT_DESC = "started_at_desc"
    STARTED_AT_ASC = "started_at_asc"


class Bucket(str, Enum):
    """Trend aggregation granularity."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Metric(str, Enum):
    """Trend metric highlighted by the client."""

    HOURS = "hours"
    VALUE = "value"


class ReportFilters(ReportModel):
    """Filters shared by the listing and the CSV export."""

    from_: datetime = Field(alias="from")
    to: datetime
    client_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    tag: Optional[str] = None
    search: Optional[str] = None

    @field_validator("from_", "to")
    @classmethod
    def normalize_range(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def check_range(self) -> "ReportFilters":
        if self.to <= self.from_:
            raise ValueError("'to' must be after 'from'")
        return self


class TimeEntriesQuery(ReportFilters):
    """Parameters of a paginated time-entry report."""

    sort: SortOrder = SortOrder.STARTED_AT_DESC
    page_size: int = Field(default=50, ge=1, le=200)
    cursor: Optional[str] = None


class NamedRef(ReportModel):
    id: UUID
    name: str


class TimeEntryRow(ReportModel):
    """One completed entry as shown in the report table."""

    id: UUID
    date: str
    project: NamedRef
    client: NamedRef
    duration_ms: int
    rate: Optional[float] = None
    value: float
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class PageInfo(ReportModel):
    next_cursor: Optional[str] = None
    prev_cursor: Optional[str] = None
    has_next_page: bool
    has_prev_page: bool
    total_count: Optional[int] = None


class TimeEntriesPage(ReportModel):
    rows: List[TimeEntryRow]
    page_info: PageInfo


class TrendQuery(ReportModel):
    """Parameters of a trend report."""

    from_: datetime = Field(alias="from")
    to: datetime
    client_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    bucket: Bucket = Bucket.WEEK
    metric: Metric = Metric.HOURS
    tz: str = "UTC"
    skip_prev_totals: bool = False

    @field_validator("from_", "to")
    @classmethod
    def normalize_range(cls, value: datetime) -> datetime:
        return as_utc(value)


class TrendDataPoint(ReportModel):
    bucket: str
    hours: float
    value: float


class TrendTotals(ReportModel):
    hours: float = 0.0
    value: float = 0.0


class TrendResponse(ReportModel):
    series: List[TrendDataPoint] = Field(default_factory=list)
    totals: TrendTotals = Field(default_factory=TrendTotals)
    prev_totals: Optional[TrendTotals] = None
