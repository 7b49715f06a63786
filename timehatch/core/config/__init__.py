"""
Configuration package for TimeHatch.

This package provides centralized configuration management for all
TimeHatch components including API, database, Redis, billing and logging.
"""

from .settings import (
    APIConfig,
    BuildConfig,
    DatabaseConfig,
    Environment,
    LoggingConfig,
    MFAConfig,
    RedisConfig,
    ReportsConfig,
    SecurityConfig,
    StripeConfig,
    TimeHatchConfig,
    TrustedDeviceConfig,
    WaitlistConfig,
    get_config,
    get_environment,
    is_production,
    reload_config,
    set_config,
)

__all__ = [
    # Main configuration classes
    "TimeHatchConfig",
    "Environment",
    # Component configurations
    "APIConfig",
    "BuildConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "MFAConfig",
    "RedisConfig",
    "ReportsConfig",
    "SecurityConfig",
    "StripeConfig",
    "TrustedDeviceConfig",
    "WaitlistConfig",
    # Configuration functions
    "get_config",
    "get_environment",
    "is_production",
    "reload_config",
    "set_config",
]
