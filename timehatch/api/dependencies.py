"""
FastAPI dependencies that build services.

Tests replace these through ``app.dependency_overrides``.
"""

from fastapi import Depends

from ..core.auth.fastapi_users import current_active_user
from ..core.auth.tortoise_models import User
from ..core.billing import BillingService, StripeWebhookProcessor
from ..core.cache import get_cache
from ..core.config import get_config
from ..core.reporting import TrendService
from ..core.security import MFAService, TrustedDeviceService
from ..core.services import ExpenseService, TrackingService, WaitlistService


def get_trend_service() -> TrendService:
    return TrendService(get_cache(), ttl_seconds=get_config().reports.trend_cache_ttl)


def get_billing_service() -> BillingService:
    return BillingService()


def get_webhook_processor() -> StripeWebhookProcessor:
    return StripeWebhookProcessor()


def get_trusted_device_service() -> TrustedDeviceService:
    return TrustedDeviceService()


def get_mfa_service(
    devices: TrustedDeviceService = Depends(get_trusted_device_service),
) -> MFAService:
    return MFAService(devices=devices)


def get_waitlist_service() -> WaitlistService:
    return WaitlistService()


def get_tracking_service(
    user: User = Depends(current_active_user),
) -> TrackingService:
    return TrackingService(user.id)


def get_expense_service(
    user: User = Depends(current_active_user),
) -> ExpenseService:
    return ExpenseService(user.id)
