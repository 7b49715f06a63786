"""
Database package for TimeHatch.

This package provides Tortoise ORM configuration and utilities.
"""

from .tortoise_config import (
    MODEL_MODULES,
    TORTOISE_ORM,
    close_tortoise,
    init_tortoise,
)

__all__ = [
    "MODEL_MODULES",
    "TORTOISE_ORM",
    "init_tortoise",
    "close_tortoise",
]
