"""
Test cases for the unified configuration.

This module tests environment handling, secret validation and the
environment-specific CORS origins.
"""

import pytest
from pydantic import ValidationError

from timehatch.core.config.settings import (
    APIConfig,
    DatabaseConfig,
    Environment,
    SecurityConfig,
    TimeHatchConfig,
    TrustedDeviceConfig,
)


class TestEnvironment:
    """Test environment parsing."""

    def test_environment_from_string(self):
        """Environment names are case insensitive."""
        config = TimeHatchConfig(environment="STAGING")
        assert config.environment == Environment.STAGING

    def test_invalid_environment(self):
        """Unknown environments are rejected."""
        with pytest.raises(ValidationError):
            TimeHatchConfig(environment="qa")

    def test_testing_environment_from_env(self, fresh_config):
        """The test run is configured as testing."""
        assert fresh_config.is_testing()
        assert not fresh_config.is_production()

    def test_debug_not_allowed_in_production(self):
        """Debug mode cannot be combined with production."""
        with pytest.raises(ValidationError):
            TimeHatchConfig(environment=Environment.PRODUCTION, debug=True)


class TestSecrets:
    """Test secret validation."""

    def test_generated_secret_in_testing(self):
        """A secure secret is generated when none is configured."""
        config = SecurityConfig()
        assert len(config.secret_key) >= 32

    def test_short_secret_rejected(self):
        """Secrets shorter than 32 characters are rejected."""
        with pytest.raises(ValidationError):
            SecurityConfig(secret_key="too-short")

    def test_weak_secret_rejected(self):
        """Secrets containing weak patterns are rejected."""
        with pytest.raises(ValidationError):
            SecurityConfig(secret_key="change-me" + "x" * 40)

    def test_trusted_device_secret_length(self):
        """The trusted device HMAC secret needs 32 characters."""
        with pytest.raises(ValidationError):
            TrustedDeviceConfig(secret="short")

    def test_trusted_device_cookie_lifetime(self):
        """Cookie max age follows the lifetime in days."""
        config = TrustedDeviceConfig(secret="a" * 32, lifetime_days=30)
        assert config.max_age_seconds == 30 * 24 * 60 * 60


class TestDatabaseConfig:
    """Test database URL building."""

    def test_dsn_overrides_parts(self):
        """A full DSN wins over host and port."""
        config = DatabaseConfig(dsn="sqlite://:memory:", host="db.internal")
        assert config.url == "sqlite://:memory:"

    def test_url_with_password(self):
        """Credentials are embedded in the Tortoise URL."""
        config = DatabaseConfig(
            dsn=None,
            host="db",
            port=5433,
            username="app",
            password="pw",
            database="hatch",
        )
        assert config.url == "postgres://app:pw@db:5433/hatch"

    def test_url_without_password(self):
        """The password segment is omitted when empty."""
        config = DatabaseConfig(dsn=None, host="db", username="app", database="x")
        assert config.url == "postgres://app@db:5432/x"


class TestCORSOrigins:
    """Test environment-specific CORS origins."""

    def test_development_defaults(self):
        """Local front-end origins are allowed in development."""
        config = TimeHatchConfig(environment=Environment.DEVELOPMENT)
        assert "http://localhost:3000" in config.cors_origins_resolved

    def test_production_defaults(self):
        """Production only allows the public site."""
        config = TimeHatchConfig(environment=Environment.PRODUCTION)
        assert config.cors_origins_resolved == [
            "https://timehatch.app",
            "https://www.timehatch.app",
        ]

    def test_custom_origins_override_defaults(self):
        """Explicit origins replace the defaults."""
        config = APIConfig(cors_origins=["https://custom.example.com"])
        assert config.cors_origins_resolved("development") == [
            "https://custom.example.com"
        ]

    def test_production_rejects_wildcard(self):
        """Production cannot allow every origin."""
        with pytest.raises(ValueError):
            TimeHatchConfig(
                environment=Environment.PRODUCTION,
                api=APIConfig(cors_origins=["*"]),
            )

    def test_production_requires_https(self):
        """Production origins must use HTTPS."""
        with pytest.raises(ValueError):
            TimeHatchConfig(
                environment=Environment.PRODUCTION,
                api=APIConfig(cors_origins=["http://timehatch.app"]),
            )
