"""
Billing use cases: checkout, summary, cancellation and post-checkout sync.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..auth.tortoise_models import User
from ..config import StripeConfig, get_config
from ..errors import ConfigurationError, NotFoundError, ValidationError
from ..logging import SecurityEventType, get_logger
from ..models.tortoise_models import Profile
from ..security.audit import record_audit_event
from .plans import Plan, get_plans, plan_from_price_id, plan_from_profile
from .stripe_client import StripeBilling
from .webhook import from_timestamp

logger = get_logger(__name__)

DEFAULT_ORIGIN = "http://localhost:3000"
SESSION_EXPAND = ["subscription", "subscription.items.data.price"]


class BillingModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckoutResult(BillingModel):
    url: str


class BillingSummary(BillingModel):
    plan: str = "free"
    status: str = "none"
    renews_at: Optional[datetime] = None
    cancel_at: Optional[datetime] = None
    seats: Optional[int] = None
    price_id: Optional[str] = None


class CancelResult(BillingModel):
    success: bool
    cancel_at: Optional[datetime] = None


class SyncResult(BillingModel):
    plan: str
    status: str
    renews_at: Optional[datetime] = None
    seats: Optional[int] = None
    price_id: str


class BillingService:
    """Subscription management for the signed-in user."""

    def __init__(
        self,
        config: Optional[StripeConfig] = None,
        client: Optional[StripeBilling] = None,
    ) -> None:
        self.config = config or get_config().stripe
        self._client = client

    @property
    def client(self) -> StripeBilling:
        # Created lazily so that the summary works without Stripe credentials
        if self._client is None:
            self._client = StripeBilling(self.config)
        return self._client

    async def create_checkout(
        self, user: User, plan: str = Plan.SOLO.value, origin: Optional[str] = None
    ) -> CheckoutResult:
        """
        Start a Stripe Checkout subscription session.

        Raises:
            ConfigurationError: If Stripe or the plan price is not configured
            ValidationError: If the plan cannot be purchased
        """
        if not self.config.secret_key:
            raise ConfigurationError("STRIPE_SECRET_KEY is not configured")

        try:
            plan_info = get_plans(self.config)[Plan(plan)]
        except ValueError as e:
            raise ValidationError(f"Unknown plan: {plan}", {"plan": plan}) from e
        if plan_info.id == Plan.FREE:
            raise ValidationError("The free plan does not require checkout")
        if not plan_info.price_id:
            raise ConfigurationError(
                f"Price for plan {plan} is not configured", {"plan": plan}
            )

        origin = origin or DEFAULT_ORIGIN
        customer_id = self.client.find_customer_id(user.email)
        session = self.client.create_checkout_session(
            price_id=plan_info.price_id,
            email=user.email,
            customer_id=customer_id,
            success_url=(
                f"{origin}/subscription-success?session_id={{CHECKOUT_SESSION_ID}}"
            ),
            cancel_url=f"{origin}/dashboard",
            metadata={"user_id": str(user.id), "plan": plan},
        )
        logger.info(
            "Checkout session created",
            session_id=session["id"],
            plan=plan,
            price_id=plan_info.price_id,
        )
        return CheckoutResult(url=session["url"])

    async def get_billing_summary(self, user: User) -> BillingSummary:
        profile = await Profile.get_or_none(user_id=user.id)
        if profile is None:
            return BillingSummary()

        plan = plan_from_profile(
            profile.stripe_subscription_status, profile.stripe_price_id
        )
        status = (profile.stripe_subscription_status or "").lower() or "none"
        return BillingSummary(
            plan=plan,
            status=status,
            renews_at=profile.stripe_current_period_end,
            cancel_at=(
                profile.stripe_canceled_at
                if profile.stripe_cancel_at_period_end
                else None
            ),
            seats=(profile.stripe_seat_quantity or 1) if plan == "team" else None,
            price_id=profile.stripe_price_id,
        )

    async def cancel_subscription(self, user: User) -> CancelResult:
        """
        Cancel the subscription at the end of the current period.

        Raises:
            NotFoundError: If the user has no subscription
        """
        profile = await Profile.get_or_none(user_id=user.id)
        if profile is None or not profile.stripe_subscription_id:
            raise NotFoundError("No active subscription found")

        subscription = self.client.cancel_at_period_end(
            profile.stripe_subscription_id
        )
        cancel_at = from_timestamp(subscription["current_period_end"])

        profile.stripe_cancel_at_period_end = True
        profile.stripe_canceled_at = cancel_at
        await profile.save(
            update_fields=[
                "stripe_cancel_at_period_end",
                "stripe_canceled_at",
                "updated_at",
            ]
        )
        await record_audit_event(
            user.id,
            SecurityEventType.SUBSCRIPTION_UPDATED,
            {
                "subscription_id": profile.stripe_subscription_id,
                "cancel_at_period_end": True,
            },
        )
        logger.info("Subscription cancelled", subscription_id=subscription["id"])
        return CancelResult(success=True, cancel_at=cancel_at)

    async def sync_from_session(self, user: User, session_id: str) -> SyncResult:
        """
        Copy the subscription of a finished checkout session to the profile.

        Raises:
            ValidationError: If the session id is empty or has no subscription
        """
        if not session_id:
            raise ValidationError("session_id is required")

        session = self.client.retrieve_checkout_session(
            session_id, expand=SESSION_EXPAND
        )
        subscription = session["subscription"]
        if not subscription:
            raise ValidationError(
                "No subscription found in checkout session",
                {"session_id": session_id},
            )

        item = subscription["items"]["data"][0]
        price_id = item["price"]["id"]
        quantity = item["quantity"] or 1
        period_end = from_timestamp(subscription["current_period_end"])

        values: Dict[str, Any] = {
            "stripe_customer_id": session["customer"],
            "stripe_subscription_id": subscription["id"],
            "stripe_subscription_status": subscription["status"],
            "stripe_price_id": price_id,
            "stripe_current_period_end": period_end,
            "stripe_seat_quantity": quantity,
        }
        profile, _ = await Profile.get_or_create(user_id=user.id)
        profile.update_from_dict(values)
        profile.updated_at = datetime.now(timezone.utc)
        await profile.save()

        plan = plan_from_price_id(price_id)
        logger.info(
            "Subscription synced from session",
            user_id=str(user.id),
            subscription_id=subscription["id"],
            status=subscription["status"],
        )
        return SyncResult(
            plan=plan,
            status=subscription["status"],
            renews_at=period_end,
            seats=quantity if plan == "team" else None,
            price_id=price_id,
        )
