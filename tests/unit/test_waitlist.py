"""
Test cases for the waitlist signup.
"""

from datetime import datetime, timedelta, timezone

import pytest

from timehatch.core.config import WaitlistConfig
from timehatch.core.errors import RateLimitError, ValidationError
from timehatch.core.models.tortoise_models import Lead, WaitlistRateLimit
from timehatch.core.services.waitlist import (
    ADDED_MESSAGE,
    EMAIL_LIMIT_MESSAGE,
    EXISTS_MESSAGE,
    IP_LIMIT_MESSAGE,
    WaitlistService,
)


@pytest.fixture
def service():
    return WaitlistService(WaitlistConfig(ip_limit=3, email_limit=2, window_minutes=60))


class TestSignupValidation:
    """Test input checks."""

    async def test_honeypot_pretends_success(self, db, service):
        result = await service.signup("bot@example.com", "http://spam", "10.0.0.1")

        assert result.success
        assert result.message == "Added to waitlist"
        assert await Lead.all().count() == 0

    @pytest.mark.parametrize("email", [None, "", "   "])
    async def test_email_required(self, db, service, email):
        with pytest.raises(ValidationError, match="Email is required"):
            await service.signup(email, None, "10.0.0.1")

    @pytest.mark.parametrize("email", ["plainaddress", "a@b", "a b@c.de"])
    async def test_invalid_email(self, db, service, email):
        with pytest.raises(ValidationError, match="Invalid email format"):
            await service.signup(email, None, "10.0.0.1")


class TestSignup:
    """Test adding leads."""

    async def test_new_signup(self, db, service):
        result = await service.signup("Jane@Example.com ", None, "10.0.0.1")

        assert result.message == ADDED_MESSAGE
        assert result.already_exists is None
        assert await Lead.exists(email="jane@example.com")

    async def test_existing_signup(self, db, service):
        await service.signup("jane@example.com", None, "10.0.0.1")

        result = await service.signup("JANE@example.com", None, "10.0.0.2")

        assert result.success
        assert result.already_exists is True
        assert result.message == EXISTS_MESSAGE
        assert await Lead.all().count() == 1

    async def test_result_serializes_camel_case(self, db, service):
        await service.signup("jane@example.com", None, "10.0.0.1")
        result = await service.signup("jane@example.com", None, "10.0.0.1")

        data = result.model_dump(by_alias=True, exclude_none=True)
        assert data["alreadyExists"] is True


class TestSignupRateLimit:
    """Test the per-IP and per-email limits."""

    async def test_ip_limit(self, db, service):
        for i in range(3):
            await service.signup(f"user{i}@example.com", None, "10.0.0.1")

        with pytest.raises(RateLimitError) as exc_info:
            await service.signup("user9@example.com", None, "10.0.0.1")

        assert exc_info.value.message == IP_LIMIT_MESSAGE

    async def test_other_ip_unaffected(self, db, service):
        for i in range(3):
            await service.signup(f"user{i}@example.com", None, "10.0.0.1")

        result = await service.signup("user9@example.com", None, "10.0.0.2")

        assert result.message == ADDED_MESSAGE

    async def test_email_limit(self, db, service):
        await service.signup("jane@example.com", None, "10.0.0.1")
        await service.signup("jane@example.com", None, "10.0.0.2")

        with pytest.raises(RateLimitError) as exc_info:
            await service.signup("jane@example.com", None, "10.0.0.3")

        assert exc_info.value.message == EMAIL_LIMIT_MESSAGE

    async def test_expired_window_is_purged(self, db, service):
        await WaitlistRateLimit.create(
            ip_address="10.0.0.1",
            email="old@example.com",
            attempts=10,
            window_start=datetime.now(timezone.utc) - timedelta(hours=2),
        )

        result = await service.signup("new@example.com", None, "10.0.0.1")

        assert result.message == ADDED_MESSAGE
        record = await WaitlistRateLimit.get(ip_address="10.0.0.1")
        assert record.attempts == 1
