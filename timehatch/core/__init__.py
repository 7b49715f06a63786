"""
Core module for TimeHatch.

This module contains configuration management, logging setup, errors and the
domain services used by the API.
"""

from .config import TimeHatchConfig
from .errors import ErrorType, TimeHatchError, create_error_response
from .logging import get_logger, setup_logging

__all__ = [
    "TimeHatchConfig",
    "setup_logging",
    "get_logger",
    "ErrorType",
    "TimeHatchError",
    "create_error_response",
]
