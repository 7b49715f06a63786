"""
Test cases for trusted devices.

This module tests signed cookie devices, fingerprint devices and the
helpers they are built from.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from timehatch.core.config import TrustedDeviceConfig
from timehatch.core.models.tortoise_models import (
    AuditLog,
    MfaTrustedDevice,
    TrustedDevice,
)
from timehatch.core.security.trusted_devices import (
    TrustedDeviceService,
    expiry_token,
    generate_device_hash,
    get_ip_prefix,
    parse_device_cookie,
    sign_device,
)

SECRET = "0123456789abcdef0123456789abcdef"


@pytest.fixture
def service():
    return TrustedDeviceService(TrustedDeviceConfig(secret=SECRET, lifetime_days=30))


class TestHelpers:
    """Test the pure helper functions."""

    def test_ipv4_prefix(self):
        assert get_ip_prefix("203.0.113.42") == "203.0.113.0"

    def test_ipv6_prefix(self):
        assert get_ip_prefix("2001:db8:85a3:8d3:1319:8a2e:370:7348") == (
            "2001:db8:85a3:8d3::"
        )

    def test_expiry_token(self):
        moment = datetime(2024, 5, 1, 8, 30, 15, 123456, tzinfo=timezone.utc)
        assert expiry_token(moment) == "2024-05-01T08:30:15.000Z"

    def test_signature_is_truncated_hmac(self, user):
        expires_at = datetime(2024, 5, 1, tzinfo=timezone.utc)

        signature = sign_device(SECRET, "abc", user.id, expires_at)

        assert len(signature) == 16
        assert signature == sign_device(SECRET, "abc", user.id, expires_at)
        assert signature != sign_device(SECRET, "abd", user.id, expires_at)

    @pytest.mark.parametrize("value", [None, "", "nodot", ".sig", "dev."])
    def test_malformed_cookie(self, value):
        assert parse_device_cookie(value) is None

    def test_cookie_parts(self):
        assert parse_device_cookie("dev123.abcdef") == ("dev123", "abcdef")

    def test_device_hash_normalizes_input(self):
        assert generate_device_hash("Agent  1.0 ", "1.2.3.4, 10.0.0.1") == (
            generate_device_hash("Agent 1.0", "1.2.3.4")
        )


class TestCookieDevices:
    """Test devices remembered through the signed cookie."""

    async def test_add_then_check(self, user, service, client_info):
        issued = await service.add(user.id, client_info)

        result = await service.check(user.id, issued.cookie_value, client_info)

        assert result.is_trusted
        assert result.device_id == issued.device_id
        assert issued.cookie_value.startswith(f"{issued.device_id}.")
        device = await TrustedDevice.get(device_id=issued.device_id)
        assert device.ip_prefix == "203.0.113.0"
        assert device.last_seen_at is not None

    async def test_add_is_audited(self, user, service, client_info):
        await service.add(user.id, client_info)

        log = await AuditLog.get(user_id=user.id)
        assert log.event_type == "trusted_device_added"
        assert log.ip_address == client_info.ip_address

    async def test_expiry_follows_lifetime(self, user, service, client_info):
        issued = await service.add(user.id, client_info)

        remaining = issued.expires_at - datetime.now(timezone.utc)
        assert timedelta(days=29) < remaining <= timedelta(days=30)

    async def test_tampered_signature(self, user, service, client_info):
        issued = await service.add(user.id, client_info)

        result = await service.check(
            user.id, f"{issued.device_id}.0000000000000000", client_info
        )

        assert not result.is_trusted

    async def test_cookie_of_other_user(
        self, user, other_user, service, client_info
    ):
        issued = await service.add(user.id, client_info)

        result = await service.check(other_user.id, issued.cookie_value, client_info)

        assert not result.is_trusted

    async def test_expired_device(self, user, service, client_info):
        issued = await service.add(user.id, client_info)
        await TrustedDevice.filter(device_id=issued.device_id).update(
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1)
        )

        result = await service.check(user.id, issued.cookie_value, client_info)

        assert not result.is_trusted

    async def test_network_change_keeps_device(self, user, service, client_info):
        issued = await service.add(user.id, client_info)
        moved = replace(client_info, ip_address="198.51.100.7", user_agent="curl")

        result = await service.check(user.id, issued.cookie_value, moved)

        assert result.is_trusted

    async def test_revoke(self, user, service, client_info):
        issued = await service.add(user.id, client_info)

        assert await service.revoke(user.id, issued.device_id, client_info) == 1

        result = await service.check(user.id, issued.cookie_value, client_info)
        assert not result.is_trusted
        assert await AuditLog.filter(event_type="trusted_device_revoked").exists()

    async def test_revoke_all(self, user, service, client_info):
        await service.add(user.id, client_info)
        await service.add(user.id, client_info)

        assert await service.revoke_all(user.id) == 2
        assert await service.list_active(user.id) == []

    async def test_list_active(self, user, other_user, service, client_info):
        first = await service.add(user.id, client_info)
        await service.add(other_user.id, client_info)

        devices = await service.list_active(user.id)

        assert [device.device_id for device in devices] == [first.device_id]
        assert devices[0].ip_prefix == "203.0.113.0"


class TestFingerprintDevices:
    """Test devices remembered through the user agent and IP fingerprint."""

    async def test_unknown_fingerprint(self, user, service, client_info):
        result = await service.check_fingerprint(user.id, client_info)
        assert not result.is_trusted

    async def test_remember_then_check(self, user, service, client_info):
        expires_at = await service.remember_fingerprint(
            user.id, client_info, "Chrome Browser"
        )

        result = await service.check_fingerprint(user.id, client_info)

        assert result.is_trusted
        assert result.expires_at == expires_at
        device = await MfaTrustedDevice.get(user_id=user.id)
        assert device.device_name == "Chrome Browser"
        assert device.last_used_at is not None

    async def test_remember_twice_refreshes(self, user, service, client_info):
        await service.remember_fingerprint(user.id, client_info)
        await service.remember_fingerprint(user.id, client_info)

        assert await MfaTrustedDevice.filter(user_id=user.id).count() == 1

    async def test_default_device_name(self, user, service, client_info):
        await service.remember_fingerprint(user.id, client_info)

        device = await MfaTrustedDevice.get(user_id=user.id)
        assert device.device_name.startswith("Device - ")

    async def test_other_network_is_not_trusted(self, user, service, client_info):
        await service.remember_fingerprint(user.id, client_info)

        result = await service.check_fingerprint(
            user.id, replace(client_info, ip_address="198.51.100.7")
        )

        assert not result.is_trusted

    async def test_expired_fingerprint(self, user, service, client_info):
        await service.remember_fingerprint(user.id, client_info)
        await MfaTrustedDevice.filter(user_id=user.id).update(
            expires_at=datetime.now(timezone.utc) - timedelta(seconds=1)
        )

        result = await service.check_fingerprint(user.id, client_info)

        assert not result.is_trusted
