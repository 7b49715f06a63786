"""
Public waitlist signup endpoint.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from ...core.security import get_client_ip
from ...core.services import WaitlistService
from ..dependencies import get_waitlist_service

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


class WaitlistRequest(BaseModel):
    email: Optional[str] = None
    honeypot: Optional[str] = None


@router.post("")
async def join_waitlist(
    data: WaitlistRequest,
    request: Request,
    service: WaitlistService = Depends(get_waitlist_service),
) -> Dict[str, Any]:
    """Add an email to the waitlist (public, rate limited per IP and email)."""
    ip_address = get_client_ip(request, default="127.0.0.1")
    result = await service.signup(data.email, data.honeypot, ip_address)
    return result.model_dump(by_alias=True, exclude_none=True)
