"""
Core models for TimeHatch.

This package contains data models used throughout the system.
"""

from ..auth.tortoise_models import User
from .tortoise_models import (
    AuditLog,
    Client,
    Lead,
    MfaFactor,
    MfaRateLimit,
    MfaRecoveryCode,
    MfaTrustedDevice,
    Profile,
    Project,
    TimeEntry,
    TrustedDevice,
    WaitlistRateLimit,
)

__all__ = [
    "User",
    "AuditLog",
    "Client",
    "Lead",
    "MfaFactor",
    "MfaRateLimit",
    "MfaRecoveryCode",
    "MfaTrustedDevice",
    "Profile",
    "Project",
    "TimeEntry",
    "TrustedDevice",
    "WaitlistRateLimit",
]
