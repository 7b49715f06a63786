"""
Multi-factor authentication: TOTP enrollment, verification and recovery codes.

Verification attempts are rate limited per user in a fixed window. Every
outcome is written to the audit trail.
"""

import hashlib
import math
import secrets
import string
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional
from uuid import UUID

import pyotp
from pydantic import BaseModel

from ..config import MFAConfig, get_config
from ..errors import AuthenticationError, RateLimitError, ValidationError
from ..logging import SecurityEventType, get_logger, security_logger
from ..models.tortoise_models import MfaFactor, MfaRateLimit, MfaRecoveryCode
from .audit import record_audit_event
from .client_info import ClientInfo, device_name_from_user_agent
from .trusted_devices import TrustedDeviceService

logger = get_logger(__name__)

RECOVERY_CODE_ALPHABET = string.ascii_uppercase + string.digits


class VerificationType(str, Enum):
    TOTP = "totp"
    RECOVERY = "recovery"


class TotpEnrollment(BaseModel):
    factor_id: UUID
    secret: str
    provisioning_uri: str


class VerificationResult(BaseModel):
    success: bool
    remaining_recovery_codes: Optional[int] = None
    trusted_device_expires_at: Optional[datetime] = None


def hash_recovery_code(code: str) -> str:
    """Recovery codes are stored as SHA-256 of their uppercase form."""
    return hashlib.sha256(code.strip().upper().encode("utf-8")).hexdigest()


def generate_recovery_code(length: int = 8) -> str:
    return "".join(secrets.choice(RECOVERY_CODE_ALPHABET) for _ in range(length))


class MFAService:
    """Verify second factors for authenticated users."""

    def __init__(
        self,
        config: Optional[MFAConfig] = None,
        devices: Optional[TrustedDeviceService] = None,
    ) -> None:
        self.config = config or get_config().mfa
        self.devices = devices or TrustedDeviceService()

    async def enroll_totp(self, user_id: UUID, account_name: str) -> TotpEnrollment:
        """Create an unverified TOTP factor; it becomes verified on first use."""
        secret = pyotp.random_base32()
        factor = await MfaFactor.create(user_id=user_id, secret=secret)
        uri = pyotp.TOTP(secret).provisioning_uri(
            name=account_name, issuer_name=self.config.issuer
        )
        logger.info("TOTP factor enrolled", user_id=str(user_id))
        return TotpEnrollment(
            factor_id=factor.id, secret=secret, provisioning_uri=uri
        )

    async def _check_rate_limit(
        self, user_id: UUID, verification_type: VerificationType, client: ClientInfo
    ) -> None:
        """Count this attempt, raising when the window is exhausted."""
        now = datetime.now(timezone.utc)
        window = timedelta(minutes=self.config.window_minutes)
        limit = await MfaRateLimit.get_or_none(user_id=user_id)

        if limit is None:
            await MfaRateLimit.create(user_id=user_id, attempts=1, window_start=now)
            return

        if limit.window_start > now - window:
            if limit.attempts >= self.config.max_attempts:
                await record_audit_event(
                    user_id,
                    SecurityEventType.MFA_FAILURE,
                    {"reason": "rate_limited", "type": verification_type.value},
                    client,
                )
                security_logger.log_rate_limit_exceeded(
                    ip_address=client.ip_address,
                    endpoint="mfa_verify",
                    user_id=str(user_id),
                )
                retry_after = math.ceil(
                    (limit.window_start + window - now).total_seconds()
                )
                raise RateLimitError(
                    "Too many failed attempts. Please wait before trying again.",
                    retry_after=max(retry_after, 1),
                )
            limit.attempts += 1
        else:
            limit.attempts = 1
            limit.window_start = now
        await limit.save(update_fields=["attempts", "window_start"])

    async def _verify_recovery_code(self, user_id: UUID, code: str) -> int:
        record = await MfaRecoveryCode.get_or_none(
            user_id=user_id, code_hash=hash_recovery_code(code), used=False
        )
        if record is None:
            raise AuthenticationError("Invalid or used recovery code")

        record.used = True
        record.used_at = datetime.now(timezone.utc)
        await record.save(update_fields=["used", "used_at"])
        return await MfaRecoveryCode.filter(user_id=user_id, used=False).count()

    async def _verify_totp(
        self, user_id: UUID, code: str, factor_id: Optional[UUID]
    ) -> None:
        queryset = MfaFactor.filter(user_id=user_id)
        if factor_id:
            queryset = queryset.filter(id=factor_id)
        factor = await queryset.order_by("-created_at").first()
        if factor is None:
            raise ValidationError("No authenticator enrolled")

        # One step of clock drift either way
        if not pyotp.TOTP(factor.secret).verify(code, valid_window=1):
            raise AuthenticationError("Invalid verification code")

        if not factor.verified:
            factor.verified = True
            await factor.save(update_fields=["verified"])

    async def verify(
        self,
        user_id: UUID,
        code: str,
        verification_type: VerificationType,
        client: ClientInfo,
        factor_id: Optional[UUID] = None,
        remember_device: bool = False,
    ) -> VerificationResult:
        """
        Verify a TOTP or recovery code.

        Raises:
            RateLimitError: If the attempt window is exhausted
            AuthenticationError: If the code is rejected
            ValidationError: If no authenticator is enrolled
        """
        await self._check_rate_limit(user_id, verification_type, client)

        details = {"type": verification_type.value, "ip_address": client.ip_address}
        result = VerificationResult(success=True)

        try:
            if verification_type == VerificationType.RECOVERY:
                remaining = await self._verify_recovery_code(user_id, code)
                details["remaining_recovery_codes"] = remaining
                result.remaining_recovery_codes = remaining
            else:
                await self._verify_totp(user_id, code, factor_id)
        except (AuthenticationError, ValidationError) as e:
            await record_audit_event(
                user_id,
                SecurityEventType.MFA_FAILURE,
                {**details, "error": e.message},
                client,
            )
            raise

        await record_audit_event(
            user_id, SecurityEventType.MFA_SUCCESS, details, client
        )
        await MfaRateLimit.filter(user_id=user_id).delete()

        if remember_device:
            expires_at = await self.devices.remember_fingerprint(
                user_id,
                client,
                device_name=device_name_from_user_agent(client.user_agent),
            )
            result.trusted_device_expires_at = expires_at

        return result

    async def generate_recovery_codes(
        self, user_id: UUID, client: Optional[ClientInfo] = None
    ) -> List[str]:
        """Replace the user's recovery codes. Plain codes are only returned here."""
        codes = [
            generate_recovery_code(self.config.recovery_code_length)
            for _ in range(self.config.recovery_code_count)
        ]

        await MfaRecoveryCode.filter(user_id=user_id).delete()
        await MfaRecoveryCode.bulk_create(
            [
                MfaRecoveryCode(user_id=user_id, code_hash=hash_recovery_code(code))
                for code in codes
            ]
        )
        await record_audit_event(
            user_id,
            SecurityEventType.RECOVERY_CODES_REGENERATED,
            {"codes_count": len(codes)},
            client,
        )
        return codes
