"""
Tests for the billing endpoints and the Stripe webhook route.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from timehatch.api.dependencies import get_billing_service, get_webhook_processor
from timehatch.core.billing import BillingService, StripeWebhookProcessor
from timehatch.core.billing.stripe_client import StripeBilling
from timehatch.core.config import StripeConfig, reload_config
from timehatch.core.errors import ValidationError
from timehatch.core.models.tortoise_models import Profile


@pytest.fixture
def without_stripe(app, monkeypatch):
    monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
    monkeypatch.delenv("STRIPE_WEBHOOK_SECRET", raising=False)
    reload_config()
    config = StripeConfig()
    app.dependency_overrides[get_billing_service] = lambda: BillingService(config)
    app.dependency_overrides[get_webhook_processor] = lambda: StripeWebhookProcessor()


class TestPlans:
    async def test_catalog_is_public(self, client):
        response = await client.get("/api/v1/billing/plans")

        assert response.status_code == 200
        assert [plan["id"] for plan in response.json()] == [
            "free",
            "solo",
            "team",
            "team_yearly",
        ]


class TestSubscription:
    """Test summary, checkout and cancellation."""

    async def test_summary_without_profile(self, client, authenticated):
        response = await client.get("/api/v1/billing/summary")

        assert response.status_code == 200
        body = response.json()
        assert body["plan"] == "free"
        assert body["status"] == "none"

    async def test_summary_for_active_subscription(self, client, authenticated):
        await Profile.create(
            user=authenticated,
            stripe_subscription_id="sub_123",
            stripe_subscription_status="active",
            stripe_price_id="price_solo_monthly",
        )

        body = (await client.get("/api/v1/billing/summary")).json()

        assert body["plan"] == "solo"
        assert body["status"] == "active"
        assert body["priceId"] == "price_solo_monthly"

    async def test_cancel_without_subscription(self, client, authenticated):
        response = await client.post("/api/v1/billing/cancel")

        assert response.status_code == 404
        assert response.json()["detail"] == "No active subscription found"

    async def test_checkout_without_stripe_key(
        self, client, authenticated, without_stripe
    ):
        response = await client.post("/api/v1/billing/checkout", json={"plan": "solo"})

        assert response.status_code == 500
        assert response.json()["error_type"] == "configuration_error"

    async def test_checkout_returns_url(self, app, client, authenticated):
        service = MagicMock(spec=BillingService)
        service.create_checkout = AsyncMock(
            return_value={"url": "https://checkout.stripe.test/s"}
        )
        app.dependency_overrides[get_billing_service] = lambda: service

        response = await client.post(
            "/api/v1/billing/checkout",
            json={"plan": "team"},
            headers={"Origin": "https://app.example.com"},
        )

        assert response.status_code == 200
        assert response.json() == {"url": "https://checkout.stripe.test/s"}
        service.create_checkout.assert_awaited_once_with(
            authenticated, "team", "https://app.example.com"
        )

    async def test_unknown_plan(self, client, authenticated):
        response = await client.post("/api/v1/billing/checkout", json={"plan": "gold"})

        assert response.status_code == 422


class TestWebhookRoute:
    """Test POST /billing/webhook."""

    @pytest.fixture
    def processor(self, app):
        processor = MagicMock(spec=StripeWebhookProcessor)
        processor.process = AsyncMock(return_value={"received": True})
        app.dependency_overrides[get_webhook_processor] = lambda: processor
        return processor

    async def test_received(self, client, processor):
        response = await client.post(
            "/api/v1/billing/webhook",
            content=b'{"type": "invoice.payment_succeeded"}',
            headers={"Stripe-Signature": "t=1,v1=abc"},
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        processor.process.assert_awaited_once_with(
            b'{"type": "invoice.payment_succeeded"}', "t=1,v1=abc"
        )

    async def test_rejected_delivery(self, client, processor):
        processor.process.side_effect = ValidationError("Invalid webhook signature")

        response = await client.post("/api/v1/billing/webhook", content=b"{}")

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid webhook signature"}

    async def test_missing_configuration(self, client, without_stripe):
        response = await client.post("/api/v1/billing/webhook", content=b"{}")

        assert response.status_code == 400
        assert response.json() == {"error": "STRIPE_SECRET_KEY is not configured"}

    @pytest.mark.parametrize(
        "body",
        [
            b"\xff\xfe not utf8",
            b'{"type": "invoice.payment_failed"}',
            b'{"type": "checkout.session.completed", "data": {"object": '
            b'{"id": "cs_1", "metadata": {"user_id": "not-a-uuid"}}}}',
        ],
    )
    async def test_malformed_deliveries(self, app, client, body):
        stripe_client = StripeBilling(
            StripeConfig(secret_key="sk_test_unit", webhook_secret=None)
        )
        app.dependency_overrides[get_webhook_processor] = (
            lambda: StripeWebhookProcessor(stripe_client)
        )

        response = await client.post("/api/v1/billing/webhook", content=body)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid")
