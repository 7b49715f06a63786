"""
Audit trail endpoints for the signed-in user.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ...core.auth.fastapi_users import current_active_user
from ...core.auth.tortoise_models import User
from ...core.security import list_audit_events

router = APIRouter(prefix="/audit", tags=["audit"])


class AuditEventResponse(BaseModel):
    """Schema for audit event responses."""

    id: UUID
    event_type: str
    details: Dict[str, Any]
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


@router.get("/events", response_model=List[AuditEventResponse])
async def get_audit_events(
    event_type: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(current_active_user),
) -> List[AuditEventResponse]:
    """The user's own security events, newest first."""
    events = await list_audit_events(user.id, event_type, limit, offset)
    return [AuditEventResponse.model_validate(event) for event in events]
