"""
Bucketed hours/value trend for the reports dashboard.

All buckets are computed in UTC. Results are cached in Redis for a short
time; the cache is an optimization only and any Redis failure falls through
to a fresh computation. The synchronous Redis client runs in the threadpool.
"""

import json
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from fastapi.concurrency import run_in_threadpool

from ..cache import RedisCache
from ..logging import get_logger
from ..models.tortoise_models import Project, TimeEntry
from .schemas import Bucket, TrendDataPoint, TrendQuery, TrendResponse, TrendTotals

logger = get_logger(__name__)

CACHE_NAMESPACE = "trend:"


def bucket_start(moment: datetime, bucket: Bucket) -> datetime:
    """Start of the UTC bucket containing ``moment``. Weeks start on Sunday."""
    moment = moment.astimezone(timezone.utc)
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)

    if bucket == Bucket.DAY:
        return midnight
    if bucket == Bucket.WEEK:
        days_since_sunday = (midnight.weekday() + 1) % 7
        return midnight - timedelta(days=days_since_sunday)
    return midnight.replace(day=1)


def next_bucket(start: datetime, bucket: Bucket) -> datetime:
    """Start of the bucket following the one starting at ``start``."""
    if bucket == Bucket.DAY:
        return start + timedelta(days=1)
    if bucket == Bucket.WEEK:
        return start + timedelta(days=7)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def bucket_key(start: datetime) -> str:
    """Serialize a bucket start the way clients expect (ms precision, Z)."""
    return start.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def fill_missing_buckets(
    series: List[TrendDataPoint], start: datetime, end: datetime, bucket: Bucket
) -> List[TrendDataPoint]:
    """Add zero points for every bucket overlapping ``[start, end)``."""
    existing = {point.bucket: point for point in series}

    current = bucket_start(start, bucket)
    while current < end:
        key = bucket_key(current)
        if key not in existing:
            existing[key] = TrendDataPoint(bucket=key, hours=0.0, value=0.0)
        current = next_bucket(current, bucket)

    return sorted(existing.values(), key=lambda point: point.bucket)


def aggregate_entries(
    entries: List[TimeEntry], bucket: Bucket
) -> List[TrendDataPoint]:
    """Sum hours and value of completed entries per bucket."""
    sums: Dict[str, Tuple[float, float]] = defaultdict(lambda: (0.0, 0.0))

    for entry in entries:
        if entry.stopped_at is None:
            continue
        hours = (entry.stopped_at - entry.started_at).total_seconds() / 3600
        rate = float(entry.project.rate_hour or 0)
        key = bucket_key(bucket_start(entry.started_at, bucket))
        total_hours, total_value = sums[key]
        sums[key] = (total_hours + hours, total_value + hours * rate)

    return [
        TrendDataPoint(bucket=key, hours=hours, value=value)
        for key, (hours, value) in sums.items()
    ]


class TrendService:
    """Compute trend series with a short-lived Redis cache in front."""

    def __init__(self, cache: Optional[RedisCache], ttl_seconds: int = 60) -> None:
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def _cache_key(self, user_id: UUID, query: TrendQuery) -> str:
        params = {
            "user": str(user_id),
            "from": query.from_.isoformat(),
            "to": query.to.isoformat(),
            "clientId": str(query.client_id) if query.client_id else None,
            "projectId": str(query.project_id) if query.project_id else None,
            "bucket": query.bucket.value,
            "metric": query.metric.value,
            "tz": query.tz,
            "skipPrevTotals": query.skip_prev_totals,
        }
        return CACHE_NAMESPACE + json.dumps(params, sort_keys=True)

    async def _project_scope(
        self, user_id: UUID, query: TrendQuery
    ) -> Optional[List[UUID]]:
        """Project ids to restrict to, or None for every project."""
        if query.project_id:
            return [query.project_id]
        if query.client_id:
            return await Project.filter(
                user_id=user_id, client_id=query.client_id
            ).values_list("id", flat=True)
        return None

    async def fetch_trend(self, user_id: UUID, query: TrendQuery) -> TrendResponse:
        """
        Fetch the trend series for a period.

        Query failures are logged and reported as an empty series so the
        dashboard keeps rendering.
        """
        key = self._cache_key(user_id, query)
        if self.cache is not None:
            cached = await run_in_threadpool(self.cache.get, key)
            if isinstance(cached, dict):
                return TrendResponse.model_validate(cached)

        try:
            result = await self._compute(user_id, query)
        except Exception as e:
            logger.error("Trend query failed", user_id=str(user_id), error=str(e))
            return TrendResponse()

        if self.cache is not None:
            await run_in_threadpool(
                self.cache.set,
                key,
                result.model_dump(mode="json", by_alias=True, exclude_none=True),
                ttl=self.ttl_seconds,
            )
        return result

    async def _compute(self, user_id: UUID, query: TrendQuery) -> TrendResponse:
        project_ids = await self._project_scope(user_id, query)
        if project_ids is not None and not project_ids:
            return TrendResponse()

        entries_query = TimeEntry.filter(
            user_id=user_id,
            started_at__gte=query.from_,
            started_at__lt=query.to,
            stopped_at__isnull=False,
        )
        if project_ids is not None:
            entries_query = entries_query.filter(project_id__in=project_ids)

        entries = await entries_query.select_related("project")
        series = fill_missing_buckets(
            aggregate_entries(entries, query.bucket),
            query.from_,
            query.to,
            query.bucket,
        )
        result = TrendResponse(
            series=series,
            totals=TrendTotals(
                hours=sum(point.hours for point in series),
                value=sum(point.value for point in series),
            ),
        )

        if not query.skip_prev_totals:
            try:
                result.prev_totals = await self._previous_totals(user_id, query)
            except Exception as e:
                logger.warning(
                    "Failed to calculate previous totals",
                    user_id=str(user_id),
                    error=str(e),
                )

        return result

    async def _previous_totals(self, user_id: UUID, query: TrendQuery) -> TrendTotals:
        """Totals over the equally long period right before ``from``."""
        length = query.to - query.from_
        previous = query.model_copy(
            update={
                "from_": query.from_ - length,
                "to": query.from_,
                "skip_prev_totals": True,
            }
        )
        return (await self._compute(user_id, previous)).totals
