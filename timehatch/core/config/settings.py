"""
Unified configuration management for TimeHatch.

This module provides a single, environment-aware configuration system that
consolidates all configuration sources into a clean, validated approach.
"""

import os
import secrets
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported environments."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


def generate_secure_secret() -> str:
    """Generate a cryptographically secure secret key for development."""
    return secrets.token_hex(32)


def _secret_from_env(name: str) -> str:
    if os.getenv("ENVIRONMENT", "development") in ("development", "testing"):
        return os.getenv(name) or generate_secure_secret()
    return os.getenv(name, "")


class LoggingConfig(BaseSettings):
    """Configuration for logging system."""

    level: str = Field(default="INFO", description="Logging level")
    json_output: bool = Field(default=True, description="Output logs in JSON format")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    model_config = SettingsConfigDict(env_prefix="LOG_")


class DatabaseConfig(BaseSettings):
    """Configuration for database connection."""

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    username: str = Field(default="postgres", description="Database username")
    password: str = Field(default="", description="Database password")
    database: str = Field(default="timehatch", description="Database name")
    dsn: Optional[str] = Field(
        default=None,
        description="Full connection URL, overrides the individual settings",
    )
    generate_schemas: bool = Field(
        default=False, description="Create missing tables on startup"
    )

    model_config = SettingsConfigDict(env_prefix="DB_")

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate database password is not empty in production."""
        if not v and os.getenv("ENVIRONMENT", "development") == "production":
            raise ValueError("Database password is required in production")
        return v

    @property
    def url(self) -> str:
        """Get database connection URL in Tortoise format."""
        if self.dsn:
            return self.dsn
        if self.password:
            return (
                f"postgres://{self.username}:{self.password}@"
                f"{self.host}:{self.port}/{self.database}"
            )
        return f"postgres://{self.username}@{self.host}:{self.port}/{self.database}"


class SecurityConfig(BaseSettings):
    """Configuration for security settings."""

    secret_key: str = Field(
        default_factory=lambda: _secret_from_env("SECURITY_SECRET_KEY"),
        description="Secret key for JWT tokens (required in production)",
    )
    jwt_lifetime_seconds: int = Field(
        default=3600, description="JWT lifetime in seconds"
    )
    auth_rate_limit_requests: int = Field(
        default=10, description="Requests per window allowed on auth endpoints"
    )
    auth_rate_limit_window_seconds: int = Field(
        default=60, description="Auth rate limit window in seconds"
    )

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Validate secret key meets security requirements."""
        if not v:
            raise ValueError("Secret key is required")

        if len(v) < 32:
            raise ValueError("Secret key must be at least 32 characters long")

        weak_patterns = [
            "change-me",
            "secret",
            "password",
            "admin",
            "test",
        ]

        if any(pattern in v.lower() for pattern in weak_patterns):
            raise ValueError("Secret key contains weak patterns and is not secure")

        return v


class APIConfig(BaseSettings):
    """Configuration for the API server."""

    host: str = Field(default="127.0.0.1", description="API server host")
    port: int = Field(default=8000, description="API server port")
    reload: bool = Field(default=True, description="Enable auto-reload in development")
    public_origin: str = Field(
        default="http://localhost:3000",
        description="Front-end origin used for billing redirects",
    )
    cors_origins: List[str] = Field(
        default_factory=list, description="Allowed CORS origins"
    )
    cors_credentials: bool = Field(default=True, description="Allow CORS credentials")
    cors_max_age: int = Field(
        default=600, description="CORS preflight cache time in seconds"
    )

    model_config = SettingsConfigDict(env_prefix="API_")

    def cors_origins_resolved(self, environment: str = "development") -> List[str]:
        """Get CORS origins based on environment."""
        if self.cors_origins:
            return self.cors_origins

        if environment == "development":
            return [
                "http://localhost:3000",
                "http://127.0.0.1:3000",
                "http://localhost:8080",
                "http://127.0.0.1:8080",
            ]
        elif environment == "staging":
            return ["https://staging.timehatch.app"]
        elif environment == "production":
            return ["https://timehatch.app", "https://www.timehatch.app"]
        return []


class RedisConfig(BaseSettings):
    """Configuration for Redis connection."""

    host: str = Field(default="127.0.0.1", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: Optional[str] = Field(default=None, description="Redis password")
    db: int = Field(default=0, description="Redis database number")
    max_connections: int = Field(default=10, description="Maximum Redis connections")
    socket_timeout: float = Field(default=5.0, description="Redis socket timeout")
    socket_connect_timeout: float = Field(
        default=5.0, description="Redis connection timeout"
    )
    retry_on_timeout: bool = Field(default=True, description="Retry on Redis timeout")

    model_config = SettingsConfigDict(env_prefix="REDIS_")


class StripeConfig(BaseSettings):
    """Configuration for Stripe billing."""

    secret_key: Optional[str] = Field(default=None, description="Stripe secret key")
    webhook_secret: Optional[str] = Field(
        default=None, description="Signing secret for the billing webhook"
    )
    api_version: str = Field(default="2023-10-16", description="Stripe API version")
    price_solo: Optional[str] = Field(default=None, description="Solo plan price id")
    price_team: Optional[str] = Field(default=None, description="Team plan price id")
    price_team_yearly: Optional[str] = Field(
        default=None, description="Yearly team plan price id"
    )

    model_config = SettingsConfigDict(env_prefix="STRIPE_")


class TrustedDeviceConfig(BaseSettings):
    """Configuration for remembered MFA devices."""

    secret: str = Field(
        default_factory=lambda: _secret_from_env("TRUSTED_DEVICE_SECRET"),
        description="HMAC secret for trusted device cookies",
    )
    lifetime_days: int = Field(default=30, description="Trusted device lifetime")
    cookie_name: str = Field(default="td", description="Trusted device cookie name")
    cookie_domain: str = Field(
        default=".timehatch.app", description="Cookie domain used in production"
    )

    model_config = SettingsConfigDict(env_prefix="TRUSTED_DEVICE_")

    @field_validator("secret")
    @classmethod
    def validate_secret(cls, v: str) -> str:
        """Validate the HMAC secret is long enough."""
        if len(v) < 32:
            raise ValueError("Trusted device secret must be at least 32 characters")
        return v

    @property
    def max_age_seconds(self) -> int:
        """Cookie lifetime in seconds."""
        return self.lifetime_days * 24 * 60 * 60


class MFAConfig(BaseSettings):
    """Configuration for multi-factor authentication."""

    issuer: str = Field(default="TimeHatch", description="TOTP issuer name")
    max_attempts: int = Field(default=5, description="Attempts allowed per window")
    window_minutes: int = Field(default=1, description="Rate limit window")
    recovery_code_count: int = Field(default=10, description="Recovery codes issued")
    recovery_code_length: int = Field(default=8, description="Recovery code length")

    model_config = SettingsConfigDict(env_prefix="MFA_")


class WaitlistConfig(BaseSettings):
    """Configuration for waitlist signups."""

    ip_limit: int = Field(default=5, description="Signups per IP per window")
    email_limit: int = Field(default=3, description="Signups per email per window")
    window_minutes: int = Field(default=60, description="Rate limit window")

    model_config = SettingsConfigDict(env_prefix="WAITLIST_")


class ReportsConfig(BaseSettings):
    """Configuration for time-entry reports."""

    default_page_size: int = Field(default=50, description="Default report page size")
    max_page_size: int = Field(default=200, description="Maximum report page size")
    trend_cache_ttl: int = Field(
        default=60, description="Trend response cache TTL in seconds"
    )

    model_config = SettingsConfigDict(env_prefix="REPORTS_")


class BuildConfig(BaseSettings):
    """Build metadata exposed by the version endpoint."""

    app_version: Optional[str] = Field(default=None, description="Release version")
    git_sha: Optional[str] = Field(default=None, description="Full commit sha")
    git_branch: Optional[str] = Field(default=None, description="Source branch")
    build_time: Optional[str] = Field(default=None, description="Build timestamp")
    build_id: Optional[str] = Field(default=None, description="CI build id")

    model_config = SettingsConfigDict(env_prefix="BUILD_")


class TimeHatchConfig(BaseSettings):
    """Main unified configuration class for TimeHatch."""

    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Current environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    stripe: StripeConfig = Field(default_factory=StripeConfig)
    trusted_device: TrustedDeviceConfig = Field(default_factory=TrustedDeviceConfig)
    mfa: MFAConfig = Field(default_factory=MFAConfig)
    waitlist: WaitlistConfig = Field(default_factory=WaitlistConfig)
    reports: ReportsConfig = Field(default_factory=ReportsConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: Union[str, Environment]) -> Environment:
        """Validate and convert environment string to enum."""
        if isinstance(v, Environment):
            return v
        if isinstance(v, str):
            try:
                return Environment(v.lower())
            except ValueError:
                raise ValueError(
                    f"Invalid environment: {v}. "
                    f"Must be one of: {[e.value for e in Environment]}"
                )
        raise ValueError(f"Invalid environment type: {type(v)}")

    @field_validator("debug")
    @classmethod
    def validate_debug(cls, v: bool, info: Any) -> bool:
        """Ensure debug is False in production."""
        if v and info.data.get("environment") == Environment.PRODUCTION:
            raise ValueError("Debug mode cannot be enabled in production")
        return v

    def model_post_init(self, __context: Any) -> None:
        """Post-initialization validation."""
        super().model_post_init(__context)
        self._validate_production_cors_config()

    @property
    def cors_origins_resolved(self) -> List[str]:
        """Get resolved CORS origins for this environment."""
        return self.api.cors_origins_resolved(self.environment.value)

    def _validate_production_cors_config(self) -> None:
        """Validate production CORS configuration security."""
        if self.environment != Environment.PRODUCTION:
            return

        for origin in self.api.cors_origins:
            if origin == "*":
                raise ValueError(
                    "Production environment cannot allow all CORS origins (*). "
                    "Please specify allowed origins explicitly."
                )
            if not origin.startswith("https://"):
                raise ValueError(
                    f"Production CORS origin must use HTTPS: {origin}. "
                    "All production origins must be secure."
                )

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == Environment.TESTING


# Global configuration instance
_config: Optional[TimeHatchConfig] = None


def get_config() -> TimeHatchConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = TimeHatchConfig()
    return _config


def set_config(config: TimeHatchConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reload_config() -> TimeHatchConfig:
    """Reload configuration from environment variables."""
    global _config
    _config = TimeHatchConfig()
    return _config


def get_environment() -> Environment:
    """Get the current environment."""
    return get_config().environment


def is_production() -> bool:
    """Check if running in production environment."""
    return get_config().is_production()
