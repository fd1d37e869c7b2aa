"""Unit tests for the Stripe checkout adapter; network calls are patched out."""

import time
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import stripe

from workshop_enrollment_ms.features.checkout.application.ports import (
    CheckoutLineItem,
    CheckoutSessionRequest,
)
from workshop_enrollment_ms.features.checkout.infrastructure.adapters.stripe_adapter import (
    StripeCheckoutAdapter,
    to_minor_units,
)
from workshop_enrollment_ms.features.webhooks.domain.signature import sign_payload
from workshop_enrollment_ms.shared.core.settings import Settings
from workshop_enrollment_ms.shared.domain.exceptions import (
    CheckoutProviderError,
    UpstreamUnavailableError,
    WebhookVerificationError,
)
from workshop_enrollment_ms.shared.infrastructure.http_clients import RetryPolicy


async def no_sleep(delay: float) -> None:
    return None


@pytest.fixture
def adapter() -> StripeCheckoutAdapter:
    return StripeCheckoutAdapter(retry=RetryPolicy(sleep=no_sleep, jitter=lambda a, b: 0))


def session_request(**overrides) -> CheckoutSessionRequest:
    values = {
        "line_items": [
            CheckoutLineItem(name="Pottery Basics - Adult", amount=Decimal("75")),
            CheckoutLineItem(name="Bookbinding", amount=Decimal("40.50")),
        ],
        "metadata": {"kind": "cart", "workshop_ids": "5,9"},
        "success_url": "https://workshops.org/checkout/success?session_id={CHECKOUT_SESSION_ID}",
        "cancel_url": "https://workshops.org/cart",
    }
    values.update(overrides)
    return CheckoutSessionRequest(**values)


class TestMinorUnits:
    @pytest.mark.parametrize(
        ("amount", "cents"),
        [(Decimal("75"), 7500), (Decimal("40.50"), 4050), (Decimal("19.995"), 2000)],
    )
    def test_to_minor_units(self, amount, cents):
        assert to_minor_units(amount) == cents


# ============================================================================
# Checkout sessions
# ============================================================================


class TestCreateCheckoutSession:
    """Tests for StripeCheckoutAdapter.create_checkout_session."""

    async def test_builds_payment_mode_session(self, adapter):
        """Lines are sent in cents with quantity 1 and the customer settings."""
        with patch.object(stripe.checkout.Session, "create") as create:
            create.return_value = MagicMock(id="cs_live_1", url="https://checkout.stripe.com/c/1")

            result = await adapter.create_checkout_session(
                session_request(customer_email="ada@workshops.org")
            )

        assert result.session_id == "cs_live_1"
        assert result.redirect_url == "https://checkout.stripe.com/c/1"

        params = create.call_args.kwargs
        assert params["mode"] == "payment"
        assert [line["price_data"]["unit_amount"] for line in params["line_items"]] == [
            7500,
            4050,
        ]
        assert all(line["quantity"] == 1 for line in params["line_items"])
        assert params["metadata"] == {"kind": "cart", "workshop_ids": "5,9"}
        assert params["customer_email"] == "ada@workshops.org"
        assert params["customer_creation"] == "always"
        assert params["phone_number_collection"] == {"enabled": True}

    async def test_email_omitted_when_unknown(self, adapter):
        with patch.object(stripe.checkout.Session, "create") as create:
            create.return_value = MagicMock(id="cs_live_2", url="https://checkout.stripe.com/c/2")

            await adapter.create_checkout_session(session_request())

        assert "customer_email" not in create.call_args.kwargs

    async def test_connection_errors_are_retried(self, adapter):
        """A dropped connection is retried; the second attempt succeeds."""
        with patch.object(stripe.checkout.Session, "create") as create:
            create.side_effect = [
                stripe.APIConnectionError("connection reset"),
                MagicMock(id="cs_live_3", url="https://checkout.stripe.com/c/3"),
            ]

            result = await adapter.create_checkout_session(session_request())

        assert result.session_id == "cs_live_3"
        assert create.call_count == 2

    async def test_outage_exhausts_retries(self, adapter):
        with patch.object(stripe.checkout.Session, "create") as create:
            create.side_effect = stripe.APIConnectionError("connection reset")

            with pytest.raises(UpstreamUnavailableError):
                await adapter.create_checkout_session(session_request())

        assert create.call_count == 3

    async def test_rejection_is_not_retried(self, adapter):
        """Invalid requests fail at once as CheckoutProviderError."""
        with patch.object(stripe.checkout.Session, "create") as create:
            create.side_effect = stripe.InvalidRequestError(
                "Invalid currency", "currency", http_status=400
            )

            with pytest.raises(CheckoutProviderError) as exc:
                await adapter.create_checkout_session(session_request())

        assert exc.value.provider == "stripe"
        assert create.call_count == 1


# ============================================================================
# Refunds
# ============================================================================


class TestCreateRefund:
    """Tests for StripeCheckoutAdapter.create_refund."""

    async def test_full_refund(self, adapter):
        with patch.object(stripe.Refund, "create") as create:
            create.return_value = MagicMock(id="re_live_1", status="succeeded")

            result = await adapter.create_refund("pi_live_1")

        assert result.refund_id == "re_live_1"
        assert result.status == "succeeded"
        assert create.call_args.kwargs == {
            "payment_intent": "pi_live_1",
            "reason": "requested_by_customer",
        }

    async def test_partial_refund_with_reason(self, adapter):
        """Amounts go in cents; long reasons are cut to 500 characters."""
        with patch.object(stripe.Refund, "create") as create:
            create.return_value = MagicMock(id="re_live_2", status=None)

            result = await adapter.create_refund(
                "pi_live_1", amount=Decimal("40"), reason="x" * 600
            )

        params = create.call_args.kwargs
        assert params["amount"] == 4000
        assert len(params["metadata"]["admin_reason"]) == 500
        assert result.status == "pending"


# ============================================================================
# Webhook verification
# ============================================================================


class TestVerifyWebhook:
    """Tests for StripeCheckoutAdapter.verify_webhook against the SDK's header check."""

    SECRET = "whsec_stripe_unit"
    BODY = b'{"id":"evt_1","type":"checkout.session.completed"}'

    @pytest.fixture
    def verifying_adapter(self) -> StripeCheckoutAdapter:
        return StripeCheckoutAdapter(settings=Settings(stripe_webhook_secret=self.SECRET))

    def test_accepts_processor_signature(self, verifying_adapter):
        """A header signed with the endpoint secret passes."""
        verifying_adapter.verify_webhook(self.BODY, sign_payload(self.BODY, self.SECRET))

    def test_rejects_wrong_secret(self, verifying_adapter):
        header = sign_payload(self.BODY, "whsec_other")

        with pytest.raises(WebhookVerificationError):
            verifying_adapter.verify_webhook(self.BODY, header)

    def test_rejects_tampered_body(self, verifying_adapter):
        header = sign_payload(self.BODY, self.SECRET)

        with pytest.raises(WebhookVerificationError):
            verifying_adapter.verify_webhook(b'{"id":"evt_2"}', header)

    def test_rejects_stale_timestamp(self, verifying_adapter):
        """Deliveries older than the tolerance window are replays."""
        header = sign_payload(self.BODY, self.SECRET, timestamp=int(time.time()) - 3600)

        with pytest.raises(WebhookVerificationError):
            verifying_adapter.verify_webhook(self.BODY, header)

    def test_rejects_missing_header(self, verifying_adapter):
        with pytest.raises(WebhookVerificationError) as exc:
            verifying_adapter.verify_webhook(self.BODY, None)

        assert exc.value.reason == "Missing signature header"

    def test_rejects_when_secret_unset(self):
        adapter = StripeCheckoutAdapter(settings=Settings(stripe_webhook_secret=""))

        with pytest.raises(WebhookVerificationError) as exc:
            adapter.verify_webhook(self.BODY, sign_payload(self.BODY, ""))

        assert exc.value.reason == "Webhook secret not configured"
