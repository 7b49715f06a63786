"""Trusted device cookie handling."""

from typing import Optional

from starlette.responses import Response

from ..core.config import TimeHatchConfig, get_config


def set_trusted_device_cookie(
    response: Response, value: str, config: Optional[TimeHatchConfig] = None
) -> None:
    """Set the ``td`` cookie; Secure and scoped to the app domain in production."""
    config = config or get_config()
    production = config.is_production()
    response.set_cookie(
        key=config.trusted_device.cookie_name,
        value=value,
        max_age=config.trusted_device.max_age_seconds,
        path="/",
        domain=config.trusted_device.cookie_domain if production else None,
        secure=production,
        httponly=True,
        samesite="lax",
    )


def clear_trusted_device_cookie(
    response: Response, config: Optional[TimeHatchConfig] = None
) -> None:
    config = config or get_config()
    production = config.is_production()
    response.delete_cookie(
        key=config.trusted_device.cookie_name,
        path="/",
        domain=config.trusted_device.cookie_domain if production else None,
        secure=production,
        httponly=True,
        samesite="lax",
    )
