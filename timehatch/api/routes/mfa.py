"""
Second factor endpoints: TOTP enrollment, verification and recovery codes.
"""

from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ...core.auth.fastapi_users import current_active_user
from ...core.auth.tortoise_models import User
from ...core.security import ClientInfo, MFAService, VerificationType, get_client_info
from ...core.security.mfa import TotpEnrollment, VerificationResult
from ..dependencies import get_mfa_service

router = APIRouter(prefix="/mfa", tags=["mfa"])


class MFAVerifyRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    code: str = Field(..., min_length=1, max_length=64)
    type: VerificationType = VerificationType.TOTP
    factor_id: Optional[UUID] = None
    remember_device: bool = False


@router.post("/totp/enroll", response_model=TotpEnrollment)
async def enroll_totp(
    user: User = Depends(current_active_user),
    service: MFAService = Depends(get_mfa_service),
) -> TotpEnrollment:
    """Create an authenticator secret; it is verified by the first valid code."""
    return await service.enroll_totp(user.id, user.email)


@router.post("/verify", response_model=VerificationResult)
async def verify(
    data: MFAVerifyRequest,
    user: User = Depends(current_active_user),
    client: ClientInfo = Depends(get_client_info),
    service: MFAService = Depends(get_mfa_service),
) -> VerificationResult:
    """
    Verify a TOTP or recovery code.

    Rejected codes answer 401 and a missing authenticator 400. Exhausted
    attempt windows answer 429 with ``retry_after``.
    """
    return await service.verify(
        user.id,
        data.code,
        data.type,
        client,
        factor_id=data.factor_id,
        remember_device=data.remember_device,
    )


@router.post("/recovery-codes")
async def generate_recovery_codes(
    user: User = Depends(current_active_user),
    client: ClientInfo = Depends(get_client_info),
    service: MFAService = Depends(get_mfa_service),
) -> Dict[str, List[str]]:
    """Replace all recovery codes. The plain codes are only shown once."""
    return {"codes": await service.generate_recovery_codes(user.id, client)}
