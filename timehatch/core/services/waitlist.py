"""
Public waitlist signup with honeypot and per-IP/per-email rate limits.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from tortoise.exceptions import IntegrityError

from ..config import WaitlistConfig, get_config
from ..errors import RateLimitError, ValidationError
from ..logging import SecurityEventType, get_logger, security_logger
from ..models.tortoise_models import Lead, WaitlistRateLimit

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ADDED_MESSAGE = (
    "Successfully added to waitlist! We'll notify you when TimeHatch is ready."
)
EXISTS_MESSAGE = (
    "You're already on our waitlist! We'll notify you when TimeHatch is ready."
)
IP_LIMIT_MESSAGE = "Too many attempts from this IP address. Please try again later."
EMAIL_LIMIT_MESSAGE = "Too many attempts for this email. Please try again later."


class SignupResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    message: str
    already_exists: Optional[bool] = None


class WaitlistService:
    def __init__(self, config: Optional[WaitlistConfig] = None) -> None:
        self.config = config or get_config().waitlist

    async def _sum_attempts(self, since: datetime, **filters: str) -> int:
        attempts = await WaitlistRateLimit.filter(
            window_start__gt=since, **filters
        ).values_list("attempts", flat=True)
        return sum(attempts)

    async def _check_rate_limit(self, ip_address: str, email: str) -> None:
        """Count the attempt or raise when the IP or the email is over its limit."""
        now = datetime.now(timezone.utc)
        since = now - timedelta(minutes=self.config.window_minutes)
        await WaitlistRateLimit.filter(window_start__lt=since).delete()

        ip_attempts = await self._sum_attempts(since, ip_address=ip_address)
        email_attempts = await self._sum_attempts(since, email=email)

        reason = None
        if ip_attempts >= self.config.ip_limit:
            reason = IP_LIMIT_MESSAGE
        elif email_attempts >= self.config.email_limit:
            reason = EMAIL_LIMIT_MESSAGE

        if reason:
            logger.info("Waitlist rate limit exceeded", reason=reason)
            security_logger.log_rate_limit_exceeded(
                ip_address=ip_address, endpoint="waitlist_signup"
            )
            raise RateLimitError(reason)

        record = await WaitlistRateLimit.get_or_none(ip_address=ip_address)
        if record is None:
            await WaitlistRateLimit.create(
                ip_address=ip_address, email=email, attempts=1, window_start=now
            )
        else:
            record.attempts += 1
            record.email = email
            await record.save(update_fields=["attempts", "email"])

    async def signup(
        self, email: Optional[str], honeypot: Optional[str], ip_address: str
    ) -> SignupResult:
        """
        Add an email to the waitlist.

        Raises:
            ValidationError: If the email is missing or malformed
            RateLimitError: If the IP or the email made too many attempts
        """
        if honeypot and honeypot.strip():
            logger.info("Honeypot triggered", ip_address=ip_address)
            return SignupResult(message="Added to waitlist")

        if not email or not email.strip():
            raise ValidationError("Email is required")
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email format")

        normalized = email.lower().strip()
        await self._check_rate_limit(ip_address, normalized)

        if await Lead.exists(email=normalized):
            return SignupResult(message=EXISTS_MESSAGE, already_exists=True)

        try:
            await Lead.create(email=normalized)
        except IntegrityError:
            # Concurrent signup for the same address
            return SignupResult(message=EXISTS_MESSAGE, already_exists=True)

        security_logger.log_security_event(
            SecurityEventType.WAITLIST_SIGNUP,
            ip_address=ip_address,
            details={"email_domain": normalized.split("@")[-1]},
        )
        return SignupResult(message=ADDED_MESSAGE)
