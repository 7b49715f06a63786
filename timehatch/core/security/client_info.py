"""Caller address and user agent extracted from proxied requests."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request


@dataclass(frozen=True)
class ClientInfo:
    """Network identity of the caller."""

    ip_address: str
    user_agent: str


def get_client_ip(request: Request, default: str = "unknown") -> str:
    """
    Resolve the originating client IP.

    The first ``X-Forwarded-For`` hop wins, then ``X-Real-IP``, then the
    socket peer address.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return default


def get_client_info(request: Request) -> ClientInfo:
    """FastAPI dependency returning the caller's IP address and user agent."""
    return ClientInfo(
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent", ""),
    )


def device_name_from_user_agent(user_agent: Optional[str]) -> str:
    """Short human label for a device."""
    if not user_agent:
        return "Unknown Device"
    if "Mobile" in user_agent:
        return "Mobile Device"
    if "Chrome" in user_agent:
        return "Chrome Browser"
    if "Firefox" in user_agent:
        return "Firefox Browser"
    if "Safari" in user_agent:
        return "Safari Browser"
    return "Unknown Device"
