"""
Logging configuration for TimeHatch using structlog.

This module provides structured logging configuration for production
environments, plus a security event logger used by the audit trail.
"""

import logging
import socket
import sys
import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from .config import get_config


def _add_service_metadata(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Add service metadata for log filtering."""
    config = get_config()

    event_dict.update(
        {
            "service_name": "timehatch",
            "service_version": config.build.app_version or "0.1.0",
            "environment": config.environment.value,
            "hostname": _get_hostname(),
        }
    )

    return event_dict


def _get_hostname() -> str:
    """Get hostname for logging."""
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Set up structured logging for TimeHatch.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        json_output: Whether to output JSON logs (defaults to LOG_JSON_OUTPUT)
    """
    config = get_config()

    log_level = level or config.logging.level
    if json_output is None:
        json_output = config.logging.json_output
    if log_file is None and config.logging.log_file:
        log_file = Path(config.logging.log_file)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_service_metadata,
    ]

    if json_output or config.is_production():
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(file_handler)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging initialized",
        level=log_level,
        json_output=json_output,
        log_file=str(log_file) if log_file else None,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


# Security Logging Components


class SecurityEventType(Enum):
    """Types of security events to log."""

    MFA_SUCCESS = "mfa_success"
    MFA_FAILURE = "mfa_failure"
    TRUSTED_DEVICE_ADDED = "trusted_device_added"
    TRUSTED_DEVICE_USED = "trusted_device_used"
    TRUSTED_DEVICE_REVOKED = "trusted_device_revoked"
    ALL_TRUSTED_DEVICES_REVOKED = "all_trusted_devices_revoked"
    RECOVERY_CODES_REGENERATED = "recovery_codes_regenerated"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    WAITLIST_SIGNUP = "waitlist_signup"


class SecuritySeverity(Enum):
    """Security event severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


EVENT_SEVERITY: Dict[SecurityEventType, SecuritySeverity] = {
    SecurityEventType.MFA_FAILURE: SecuritySeverity.MEDIUM,
    SecurityEventType.RATE_LIMIT_EXCEEDED: SecuritySeverity.MEDIUM,
    SecurityEventType.ALL_TRUSTED_DEVICES_REVOKED: SecuritySeverity.MEDIUM,
    SecurityEventType.RECOVERY_CODES_REGENERATED: SecuritySeverity.MEDIUM,
}


class SecurityLogger:
    """Specialized logger for security events with structured data."""

    def __init__(self) -> None:
        """Initialize security logger."""
        self.logger = structlog.get_logger("security")

    def log_security_event(
        self,
        event_type: SecurityEventType,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[SecuritySeverity] = None,
    ) -> str:
        """
        Log a security event with structured data.

        Returns:
            str: Event ID for tracking
        """
        event_id = str(uuid.uuid4())
        severity = severity or EVENT_SEVERITY.get(event_type, SecuritySeverity.LOW)

        log_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "severity": severity.value,
            "user_id": user_id,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "details": details or {},
        }

        if severity == SecuritySeverity.CRITICAL:
            self.logger.critical("Security event", **log_data)
        elif severity == SecuritySeverity.HIGH:
            self.logger.error("Security event", **log_data)
        elif severity == SecuritySeverity.MEDIUM:
            self.logger.warning("Security event", **log_data)
        else:
            self.logger.info("Security event", **log_data)

        return event_id

    def log_rate_limit_exceeded(
        self,
        ip_address: Optional[str] = None,
        endpoint: str = "unknown",
        user_id: Optional[str] = None,
        additional_details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Log rate limit violations."""
        details = {"endpoint": endpoint, **(additional_details or {})}

        return self.log_security_event(
            SecurityEventType.RATE_LIMIT_EXCEEDED,
            user_id=user_id,
            ip_address=ip_address,
            details=details,
        )


# Global security logger instance
security_logger = SecurityLogger()
