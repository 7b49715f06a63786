"""
Trusted devices that may skip the second authentication factor.

Two mechanisms coexist:

* signed cookie devices: the browser holds ``device_id.hmac`` in the ``td``
  cookie and the server keeps the device row with its expiry;
* fingerprint devices: a hash of the normalized user agent and client IP,
  remembered for a fixed period.
"""

import hashlib
import hmac
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel

from ..config import TrustedDeviceConfig, get_config
from ..logging import SecurityEventType, get_logger
from ..models.tortoise_models import MfaTrustedDevice, TrustedDevice
from .audit import record_audit_event
from .client_info import ClientInfo

logger = get_logger(__name__)

HMAC_LENGTH = 16


class DeviceCheckResult(BaseModel):
    is_trusted: bool
    device_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class IssuedDevice(BaseModel):
    device_id: str
    expires_at: datetime
    cookie_value: str


class DeviceSummary(BaseModel):
    device_id: str
    ip_prefix: str
    created_at: datetime
    expires_at: datetime
    last_seen_at: Optional[datetime] = None


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def get_ip_prefix(ip: str) -> str:
    """Coarse network prefix: /24 for IPv4, first four groups for IPv6."""
    if ":" in ip:
        return ":".join(ip.split(":")[:4]) + "::"
    return ".".join(ip.split(".")[:3]) + ".0"


def expiry_token(expires_at: datetime) -> str:
    """Canonical expiry string covered by the cookie signature."""
    return expires_at.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def sign_device(
    secret: str, device_id: str, user_id: UUID, expires_at: datetime
) -> str:
    """Truncated HMAC-SHA256 binding a device to a user and an expiry."""
    message = f"{device_id}|{user_id}|{expiry_token(expires_at)}"
    digest = hmac.new(
        secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return digest[:HMAC_LENGTH]


def parse_device_cookie(value: Optional[str]) -> Optional[Tuple[str, str]]:
    """Split a ``device_id.hmac`` cookie, None when malformed."""
    if not value:
        return None
    device_id, _, signature = value.partition(".")
    if not device_id or not signature:
        return None
    return device_id, signature


def generate_device_hash(user_agent: str, ip: str) -> str:
    """Fingerprint of a device from its normalized user agent and first IP."""
    clean_user_agent = re.sub(r"\s+", " ", user_agent).strip()
    clean_ip = ip.split(",")[0].strip()
    return sha256_hex(f"{clean_user_agent}-{clean_ip}")


class TrustedDeviceService:
    """Issue, verify and revoke trusted devices."""

    def __init__(self, config: Optional[TrustedDeviceConfig] = None) -> None:
        self.config = config or get_config().trusted_device

    async def check(
        self, user_id: UUID, cookie_value: Optional[str], client: ClientInfo
    ) -> DeviceCheckResult:
        """
        Verify the ``td`` cookie of the caller.

        User agent and network changes are logged but do not invalidate the
        device.
        """
        parsed = parse_device_cookie(cookie_value)
        if parsed is None:
            return DeviceCheckResult(is_trusted=False)
        device_id, signature = parsed

        device = await TrustedDevice.get_or_none(
            user_id=user_id,
            device_id=device_id,
            revoked_at__isnull=True,
            expires_at__gt=datetime.now(timezone.utc),
        )
        if device is None:
            return DeviceCheckResult(is_trusted=False)

        expected = sign_device(
            self.config.secret, device_id, user_id, device.expires_at
        )
        if not hmac.compare_digest(signature, expected):
            logger.warning("Trusted device signature mismatch", device_id=device_id)
            return DeviceCheckResult(is_trusted=False)

        if device.ua_hash != sha256_hex(client.user_agent):
            logger.info("User agent changed for trusted device", device_id=device_id)
        current_prefix = get_ip_prefix(client.ip_address)
        if device.ip_prefix and device.ip_prefix != current_prefix:
            logger.info(
                "IP prefix changed for trusted device",
                device_id=device_id,
                previous=device.ip_prefix,
                current=current_prefix,
            )

        device.last_seen_at = datetime.now(timezone.utc)
        await device.save(update_fields=["last_seen_at"])

        return DeviceCheckResult(
            is_trusted=True, device_id=device_id, expires_at=device.expires_at
        )

    async def add(self, user_id: UUID, client: ClientInfo) -> IssuedDevice:
        """Register the caller's device and return the cookie value to set."""
        device_id = secrets.token_hex(16)
        expires_at = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(
            days=self.config.lifetime_days
        )

        await TrustedDevice.create(
            user_id=user_id,
            device_id=device_id,
            ua_hash=sha256_hex(client.user_agent),
            ip_prefix=get_ip_prefix(client.ip_address),
            expires_at=expires_at,
        )
        await record_audit_event(
            user_id,
            SecurityEventType.TRUSTED_DEVICE_ADDED,
            {"device_id": device_id, "ip": client.ip_address},
            client,
        )

        signature = sign_device(self.config.secret, device_id, user_id, expires_at)
        return IssuedDevice(
            device_id=device_id,
            expires_at=expires_at,
            cookie_value=f"{device_id}.{signature}",
        )

    async def revoke(
        self, user_id: UUID, device_id: str, client: Optional[ClientInfo] = None
    ) -> int:
        """Revoke one device. Returns the number of rows updated."""
        updated = await TrustedDevice.filter(
            user_id=user_id, device_id=device_id
        ).update(revoked_at=datetime.now(timezone.utc))
        await record_audit_event(
            user_id,
            SecurityEventType.TRUSTED_DEVICE_REVOKED,
            {"device_id": device_id},
            client,
        )
        return updated

    async def revoke_all(
        self, user_id: UUID, client: Optional[ClientInfo] = None
    ) -> int:
        """Revoke every active device of a user."""
        updated = await TrustedDevice.filter(
            user_id=user_id, revoked_at__isnull=True
        ).update(revoked_at=datetime.now(timezone.utc))
        await record_audit_event(
            user_id, SecurityEventType.ALL_TRUSTED_DEVICES_REVOKED, {}, client
        )
        return updated

    async def list_active(self, user_id: UUID) -> List[DeviceSummary]:
        devices = await TrustedDevice.filter(
            user_id=user_id,
            revoked_at__isnull=True,
            expires_at__gt=datetime.now(timezone.utc),
        ).order_by("-created_at")
        return [
            DeviceSummary(
                device_id=device.device_id,
                ip_prefix=device.ip_prefix,
                created_at=device.created_at,
                expires_at=device.expires_at,
                last_seen_at=device.last_seen_at,
            )
            for device in devices
        ]

    async def check_fingerprint(
        self, user_id: UUID, client: ClientInfo
    ) -> DeviceCheckResult:
        """Look up the caller's fingerprint among unexpired remembered devices."""
        device_hash = generate_device_hash(client.user_agent, client.ip_address)
        device = await MfaTrustedDevice.get_or_none(
            user_id=user_id,
            device_hash=device_hash,
            expires_at__gt=datetime.now(timezone.utc),
        )
        if device is None:
            return DeviceCheckResult(is_trusted=False)

        device.last_used_at = datetime.now(timezone.utc)
        await device.save(update_fields=["last_used_at"])
        await record_audit_event(
            user_id,
            SecurityEventType.TRUSTED_DEVICE_USED,
            {"device_hash": device_hash[:8] + "..."},
            client,
        )
        return DeviceCheckResult(is_trusted=True, expires_at=device.expires_at)

    async def remember_fingerprint(
        self, user_id: UUID, client: ClientInfo, device_name: Optional[str] = None
    ) -> datetime:
        """Remember the caller's fingerprint, refreshing an existing entry."""
        device_hash = generate_device_hash(client.user_agent, client.ip_address)
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(days=self.config.lifetime_days)
        default_name = f"Device - {now.date().isoformat()}"

        await MfaTrustedDevice.update_or_create(
            defaults={
                "device_name": device_name or default_name,
                "expires_at": expires_at,
                "last_used_at": now,
            },
            user_id=user_id,
            device_hash=device_hash,
        )
        await record_audit_event(
            user_id,
            SecurityEventType.TRUSTED_DEVICE_ADDED,
            {
                "device_hash": device_hash[:8] + "...",
                "expires_at": expires_at.isoformat(),
            },
            client,
        )
        return expires_at
