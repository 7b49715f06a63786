"""
Stripe webhook processing.

Events are routed by type to handlers that mirror the subscription state onto
the subscriber's profile. Handlers are idempotent: replaying an event writes
the same values again.
"""

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional
from uuid import UUID

from ..errors import ValidationError
from ..logging import SecurityEventType, get_logger
from ..models.tortoise_models import Profile
from ..security.audit import record_audit_event
from .stripe_client import StripeBilling

logger = get_logger(__name__)

EventHandler = Callable[[Dict[str, Any]], Awaitable[None]]


def from_timestamp(value: Optional[int]) -> Optional[datetime]:
    """Stripe sends epoch seconds."""
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


class StripeWebhookProcessor:
    """Verify and dispatch Stripe webhook events."""

    def __init__(self, client: Optional[StripeBilling] = None) -> None:
        self._client = client
        self.handlers: Dict[str, EventHandler] = {
            "checkout.session.completed": self.handle_checkout_completed,
            "invoice.payment_succeeded": self.handle_payment_succeeded,
            "invoice.payment_failed": self.handle_payment_failed,
            "customer.subscription.deleted": self.handle_subscription_deleted,
        }

    @property
    def client(self) -> StripeBilling:
        if self._client is None:
            self._client = StripeBilling()
        return self._client

    async def process(
        self, payload: bytes, signature: Optional[str]
    ) -> Dict[str, Any]:
        """
        Handle one webhook delivery.

        Args:
            payload: Raw request body
            signature: ``Stripe-Signature`` header value

        Returns:
            ``{"received": True}`` once the event is handled

        Raises:
            ValidationError: If the signature or payload is rejected
            ConfigurationError: If Stripe is not configured
        """
        event = self.client.construct_event(payload, signature)
        event_type = event["type"]
        logger.info(
            "Processing event", event_type=event_type, event_id=event.get("id")
        )

        handler = self.handlers.get(event_type)
        if handler is None:
            logger.info("Unhandled event type", event_type=event_type)
        else:
            data = event.get("data")
            obj = data.get("object") if isinstance(data, dict) else None
            if not isinstance(obj, dict):
                raise ValidationError("Invalid webhook payload: missing data.object")
            await handler(obj)

        return {"received": True}

    async def _update_by_subscription(
        self, subscription_id: Optional[str], **values: Any
    ) -> int:
        if not subscription_id:
            logger.warning("Event without subscription id", values=list(values))
            return 0

        updated = await Profile.filter(
            stripe_subscription_id=subscription_id
        ).update(updated_at=datetime.now(timezone.utc), **values)
        if not updated:
            logger.warning(
                "No profile for subscription", subscription_id=subscription_id
            )
            return 0

        for user_id in await Profile.filter(
            stripe_subscription_id=subscription_id
        ).values_list("user_id", flat=True):
            await record_audit_event(
                user_id,
                SecurityEventType.SUBSCRIPTION_UPDATED,
                {
                    "subscription_id": subscription_id,
                    "status": values.get("stripe_subscription_status"),
                },
            )
        return updated

    async def handle_checkout_completed(self, session: Dict[str, Any]) -> None:
        metadata = session.get("metadata") or {}
        user_id = metadata.get("user_id")
        if not user_id:
            logger.warning(
                "No user_id in session metadata", session_id=session.get("id")
            )
            return

        try:
            user_uuid = UUID(str(user_id))
        except ValueError as e:
            raise ValidationError(
                "Invalid user_id in session metadata", {"user_id": user_id}
            ) from e

        plan = metadata.get("plan") or "solo"
        profile, _ = await Profile.get_or_create(user_id=user_uuid)
        profile.stripe_customer_id = session.get("customer")
        profile.stripe_subscription_id = session.get("subscription")
        profile.stripe_subscription_status = "active"
        profile.subscription_plan = plan
        await profile.save()

        await record_audit_event(
            profile.user_id,
            SecurityEventType.SUBSCRIPTION_UPDATED,
            {
                "session_id": session.get("id"),
                "subscription_id": profile.stripe_subscription_id,
                "status": "active",
                "plan": plan,
            },
        )
        logger.info("Checkout session completed", user_id=user_id, plan=plan)

    async def handle_payment_succeeded(self, invoice: Dict[str, Any]) -> None:
        subscription_id = invoice.get("subscription")
        logger.info(
            "Payment succeeded",
            invoice_id=invoice.get("id"),
            subscription_id=subscription_id,
        )
        if not subscription_id:
            return

        subscription = self.client.retrieve_subscription(subscription_id)
        await self._update_by_subscription(
            subscription_id,
            stripe_subscription_status="active",
            stripe_current_period_end=from_timestamp(
                subscription["current_period_end"]
            ),
        )

    async def handle_payment_failed(self, invoice: Dict[str, Any]) -> None:
        subscription_id = invoice.get("subscription")
        logger.info(
            "Payment failed",
            invoice_id=invoice.get("id"),
            subscription_id=subscription_id,
        )
        await self._update_by_subscription(
            subscription_id, stripe_subscription_status="past_due"
        )

    async def handle_subscription_deleted(self, subscription: Dict[str, Any]) -> None:
        logger.info("Subscription deleted", subscription_id=subscription.get("id"))
        await self._update_by_subscription(
            subscription.get("id"), stripe_subscription_status="canceled"
        )
