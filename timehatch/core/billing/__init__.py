"""Subscription billing through Stripe."""

from .plans import (
    PLAN_LIMITS,
    Plan,
    PlanLimits,
    get_plan_limits,
    get_plans,
    plan_from_profile,
)
from .service import BillingService, BillingSummary
from .stripe_client import StripeBilling
from .webhook import StripeWebhookProcessor

__all__ = [
    "BillingService",
    "BillingSummary",
    "PLAN_LIMITS",
    "Plan",
    "PlanLimits",
    "StripeBilling",
    "StripeWebhookProcessor",
    "get_plan_limits",
    "get_plans",
    "plan_from_profile",
]
