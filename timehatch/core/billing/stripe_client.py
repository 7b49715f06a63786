"""
Thin Stripe API client.

All calls go through the official ``stripe`` library with the pinned API
version. Stripe failures are logged and re-raised as
``ExternalServiceError`` so the API layer answers with 502.
"""

import json
from typing import Any, Dict, List, Optional

import stripe

from ..config import StripeConfig, get_config
from ..errors import ConfigurationError, ExternalServiceError, ValidationError
from ..logging import get_logger

logger = get_logger(__name__)


class StripeBilling:
    """Stripe operations used by checkout, subscription sync and webhooks."""

    def __init__(self, config: Optional[StripeConfig] = None) -> None:
        self.config = config or get_config().stripe
        if not self.config.secret_key:
            raise ConfigurationError("STRIPE_SECRET_KEY is not configured")

        stripe.api_key = self.config.secret_key
        stripe.api_version = self.config.api_version

    def _call(self, operation: str, func: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except stripe.StripeError as e:
            logger.error("Stripe call failed", operation=operation, error=str(e))
            raise ExternalServiceError(
                f"Stripe {operation} failed: {e}", {"operation": operation}
            ) from e

    def find_customer_id(self, email: str) -> Optional[str]:
        """Return the id of an existing customer with this email, if any."""
        customers = self._call(
            "customer_lookup", stripe.Customer.list, email=email, limit=1
        )
        data = customers["data"]
        if data:
            logger.info("Found existing customer", customer_id=data[0]["id"])
            return data[0]["id"]
        return None

    def create_checkout_session(
        self,
        price_id: str,
        email: str,
        customer_id: Optional[str],
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> Any:
        params: Dict[str, Any] = {
            "line_items": [{"price": price_id, "quantity": 1}],
            "mode": "subscription",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        }
        if customer_id:
            params["customer"] = customer_id
        else:
            params["customer_email"] = email
        return self._call("checkout_create", stripe.checkout.Session.create, **params)

    def retrieve_checkout_session(
        self, session_id: str, expand: Optional[List[str]] = None
    ) -> Any:
        return self._call(
            "checkout_retrieve",
            stripe.checkout.Session.retrieve,
            session_id,
            expand=expand or [],
        )

    def retrieve_subscription(self, subscription_id: str) -> Any:
        return self._call(
            "subscription_retrieve", stripe.Subscription.retrieve, subscription_id
        )

    def cancel_at_period_end(self, subscription_id: str) -> Any:
        return self._call(
            "subscription_cancel",
            stripe.Subscription.modify,
            subscription_id,
            cancel_at_period_end=True,
        )

    def construct_event(
        self, payload: bytes, signature: Optional[str]
    ) -> Dict[str, Any]:
        """
        Parse a webhook payload into a plain event dict.

        With a webhook secret configured the ``Stripe-Signature`` header is
        mandatory and verified against the raw body. Without one the payload
        is accepted unsigned (test mode).

        Raises:
            ValidationError: If the signature or the JSON body is invalid
        """
        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError("Invalid webhook payload: body is not UTF-8") from e
        secret = self.config.webhook_secret

        if secret:
            if not signature:
                raise ValidationError("Missing Stripe-Signature header")
            # Handlers work on the plain dict parsed below
            try:
                stripe.Webhook.construct_event(body, signature, secret)
            except ValueError as e:
                raise ValidationError(f"Invalid webhook payload: {e}") from e
            except stripe.SignatureVerificationError as e:
                logger.error("Webhook signature verification failed", error=str(e))
                raise ValidationError(f"Invalid webhook signature: {e}") from e
            logger.info("Webhook signature verified")
        else:
            logger.warning(
                "Webhook processed without signature verification (test mode)"
            )

        try:
            event = json.loads(body)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid webhook payload: {e}") from e
        if not isinstance(event, dict) or "type" not in event:
            raise ValidationError("Invalid webhook payload: missing event type")
        return event
