"""
Authentication module for TimeHatch.

This module provides the user model and password strength scoring. The
FastAPI Users wiring lives in `fastapi_users` and is imported by the API.
"""

from .password import (
    PasswordStrength,
    get_password_strength_label,
    validate_password_strength,
)
from .tortoise_models import User

__all__ = [
    "User",
    "PasswordStrength",
    "get_password_strength_label",
    "validate_password_strength",
]
