"""Account security: audit trail, trusted devices and second factors."""

from .audit import list_audit_events, record_audit_event
from .client_info import ClientInfo, get_client_info, get_client_ip
from .mfa import MFAService, VerificationType
from .trusted_devices import TrustedDeviceService

__all__ = [
    "ClientInfo",
    "MFAService",
    "TrustedDeviceService",
    "VerificationType",
    "get_client_info",
    "get_client_ip",
    "list_audit_events",
    "record_audit_event",
]
