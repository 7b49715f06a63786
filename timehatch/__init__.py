"""
TimeHatch - time tracking and invoicing backend

Reporting, subscription billing, second-factor authentication and onboarding
services behind a FastAPI application.
"""

__version__ = "0.1.0"
__description__ = "Time tracking, reporting and billing backend for TimeHatch"

# Core imports
from .core.config import TimeHatchConfig
from .core.logging import setup_logging

# Initialize logging
setup_logging()

__all__ = [
    "__version__",
    "__description__",
    "TimeHatchConfig",
    "setup_logging",
]
