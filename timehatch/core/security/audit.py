"""
Security audit trail.

Each event is persisted to ``audit_logs`` and mirrored to the structured
security logger.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from ..logging import SecurityEventType, get_logger, security_logger
from ..models.tortoise_models import AuditLog
from .client_info import ClientInfo

logger = get_logger(__name__)


async def record_audit_event(
    user_id: Optional[UUID],
    event_type: SecurityEventType,
    details: Optional[Dict[str, Any]] = None,
    client: Optional[ClientInfo] = None,
) -> AuditLog:
    """
    Persist an audit event and log it.

    Args:
        user_id: Account the event concerns, if any
        event_type: Kind of security event
        details: Event specific data
        client: Caller IP address and user agent

    Returns:
        The stored audit log row
    """
    ip_address = client.ip_address if client else None
    user_agent = client.user_agent if client else None

    entry = await AuditLog.create(
        user_id=user_id,
        event_type=event_type.value,
        details=details or {},
        ip_address=ip_address,
        user_agent=user_agent,
    )
    security_logger.log_security_event(
        event_type,
        user_id=str(user_id) if user_id else None,
        ip_address=ip_address,
        user_agent=user_agent,
        details=details,
    )
    return entry


async def list_audit_events(
    user_id: UUID,
    event_type: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[AuditLog]:
    """Return a user's own audit events, newest first."""
    queryset = AuditLog.filter(user_id=user_id)
    if event_type:
        queryset = queryset.filter(event_type=event_type)
    return await queryset.order_by("-created_at").offset(offset).limit(limit)
