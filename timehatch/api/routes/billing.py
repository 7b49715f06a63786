"""
Billing endpoints: plans, checkout, subscription management and the Stripe
webhook.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...core.auth.fastapi_users import current_active_user
from ...core.auth.tortoise_models import User
from ...core.billing import BillingService, StripeWebhookProcessor, get_plans
from ...core.billing.plans import Plan, PlanInfo
from ...core.billing.service import (
    BillingSummary,
    CancelResult,
    CheckoutResult,
    SyncResult,
)
from ...core.config import get_config
from ...core.errors import TimeHatchError
from ...core.logging import get_logger
from ..dependencies import get_billing_service, get_webhook_processor

router = APIRouter(prefix="/billing", tags=["billing"])
logger = get_logger(__name__)


class CheckoutRequest(BaseModel):
    plan: Plan = Plan.SOLO


class SyncRequest(BaseModel):
    session_id: str


@router.get("/plans", response_model=List[PlanInfo])
async def list_plans() -> List[PlanInfo]:
    """Plan catalog (public endpoint)."""
    return list(get_plans().values())


@router.post("/checkout", response_model=CheckoutResult)
async def create_checkout(
    data: CheckoutRequest,
    origin: Optional[str] = Header(None),
    user: User = Depends(current_active_user),
    service: BillingService = Depends(get_billing_service),
) -> CheckoutResult:
    """Start a Stripe Checkout session and return its URL."""
    return await service.create_checkout(
        user, data.plan.value, origin or get_config().api.public_origin
    )


@router.get("/summary", response_model=BillingSummary)
async def billing_summary(
    user: User = Depends(current_active_user),
    service: BillingService = Depends(get_billing_service),
) -> BillingSummary:
    return await service.get_billing_summary(user)


@router.post("/cancel", response_model=CancelResult)
async def cancel_subscription(
    user: User = Depends(current_active_user),
    service: BillingService = Depends(get_billing_service),
) -> CancelResult:
    """Cancel at the end of the current billing period."""
    return await service.cancel_subscription(user)


@router.post("/sync", response_model=SyncResult)
async def sync_from_session(
    data: SyncRequest,
    user: User = Depends(current_active_user),
    service: BillingService = Depends(get_billing_service),
) -> SyncResult:
    """Copy the subscription of a completed checkout onto the profile."""
    return await service.sync_from_session(user, data.session_id)


@router.post("/webhook", response_model=None)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    processor: StripeWebhookProcessor = Depends(get_webhook_processor),
) -> Any:
    """
    Receive Stripe events.

    Every rejected delivery answers 400 with ``{"error": message}``.
    """
    payload = await request.body()
    try:
        result: Dict[str, Any] = await processor.process(payload, stripe_signature)
    except TimeHatchError as e:
        logger.error("Stripe webhook rejected", error=e.message)
        return JSONResponse(status_code=400, content={"error": e.message})
    return result
