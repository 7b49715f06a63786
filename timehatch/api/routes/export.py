"""
Date-range CSV export.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from ...core.auth.fastapi_users import current_active_user
from ...core.auth.tortoise_models import User
from ...core.logging import get_logger
from ...core.reporting import export_date_range_csv
from ...core.reporting.export import date_range_filename

router = APIRouter(prefix="/export", tags=["export"])
logger = get_logger(__name__)


class DateRangeExport(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    start_date: date
    end_date: date
    client_id: Optional[UUID] = None
    project_id: Optional[UUID] = None

    @model_validator(mode="after")
    def check_range(self) -> "DateRangeExport":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


@router.post("/csv")
async def export_csv(
    data: DateRangeExport, user: User = Depends(current_active_user)
) -> Response:
    """Download completed entries of whole days as CSV."""
    content = await export_date_range_csv(
        user.id,
        data.start_date,
        data.end_date,
        client_id=data.client_id,
        project_id=data.project_id,
    )
    logger.info(
        "CSV export generated",
        user_id=str(user.id),
        start_date=data.start_date.isoformat(),
        end_date=data.end_date.isoformat(),
    )
    filename = date_range_filename(data.start_date, data.end_date)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
