"""
Trusted device endpoints.

Signed cookie devices live under ``/trusted-devices``; fingerprint devices
remembered after MFA live under ``/trusted-devices/fingerprint``.
"""

from datetime import datetime
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request, Response

from ...core.auth.fastapi_users import current_active_user
from ...core.auth.tortoise_models import User
from ...core.config import get_config
from ...core.security import ClientInfo, TrustedDeviceService, get_client_info
from ...core.security.trusted_devices import DeviceCheckResult, DeviceSummary
from ..cookies import clear_trusted_device_cookie, set_trusted_device_cookie
from ..dependencies import get_trusted_device_service

router = APIRouter(prefix="/trusted-devices", tags=["trusted-devices"])


@router.post("/check", response_model=DeviceCheckResult)
async def check_device(
    request: Request,
    user: User = Depends(current_active_user),
    client: ClientInfo = Depends(get_client_info),
    service: TrustedDeviceService = Depends(get_trusted_device_service),
) -> DeviceCheckResult:
    """Whether the caller's ``td`` cookie marks a trusted device."""
    cookie = request.cookies.get(get_config().trusted_device.cookie_name)
    return await service.check(user.id, cookie, client)


@router.post("")
async def add_device(
    response: Response,
    user: User = Depends(current_active_user),
    client: ClientInfo = Depends(get_client_info),
    service: TrustedDeviceService = Depends(get_trusted_device_service),
) -> Dict[str, Any]:
    """Trust the calling device for 30 days and set its cookie."""
    issued = await service.add(user.id, client)
    set_trusted_device_cookie(response, issued.cookie_value)
    return {
        "success": True,
        "device_id": issued.device_id,
        "expires_at": issued.expires_at.isoformat(),
    }


@router.get("", response_model=List[DeviceSummary])
async def list_devices(
    user: User = Depends(current_active_user),
    service: TrustedDeviceService = Depends(get_trusted_device_service),
) -> List[DeviceSummary]:
    return await service.list_active(user.id)


@router.delete("/{device_id}")
async def revoke_device(
    device_id: str,
    response: Response,
    user: User = Depends(current_active_user),
    client: ClientInfo = Depends(get_client_info),
    service: TrustedDeviceService = Depends(get_trusted_device_service),
) -> Dict[str, Any]:
    await service.revoke(user.id, device_id, client)
    clear_trusted_device_cookie(response)
    return {"success": True}


@router.delete("")
async def revoke_all_devices(
    response: Response,
    user: User = Depends(current_active_user),
    client: ClientInfo = Depends(get_client_info),
    service: TrustedDeviceService = Depends(get_trusted_device_service),
) -> Dict[str, Any]:
    revoked = await service.revoke_all(user.id, client)
    clear_trusted_device_cookie(response)
    return {"success": True, "revoked": revoked}


@router.post("/fingerprint/check", response_model=DeviceCheckResult)
async def check_fingerprint(
    user: User = Depends(current_active_user),
    client: ClientInfo = Depends(get_client_info),
    service: TrustedDeviceService = Depends(get_trusted_device_service),
) -> DeviceCheckResult:
    """Whether the caller's user agent and IP were remembered after MFA."""
    return await service.check_fingerprint(user.id, client)


@router.post("/fingerprint")
async def remember_fingerprint(
    user: User = Depends(current_active_user),
    client: ClientInfo = Depends(get_client_info),
    service: TrustedDeviceService = Depends(get_trusted_device_service),
) -> Dict[str, Any]:
    expires_at: datetime = await service.remember_fingerprint(user.id, client)
    return {
        "success": True,
        "message": "Device added as trusted",
        "expires_at": expires_at.isoformat(),
    }
