"""Stripe Checkout Adapter."""

import logging
from decimal import ROUND_HALF_UP, Decimal

import stripe

from workshop_enrollment_ms.features.checkout.application.ports import (
    CheckoutGatewayPort,
    CheckoutSessionRequest,
    CheckoutSessionResult,
    RefundResult,
)
from workshop_enrollment_ms.shared.core.settings import Settings, get_settings
from workshop_enrollment_ms.shared.domain.exceptions import (
    CheckoutProviderError,
    WebhookVerificationError,
)
from workshop_enrollment_ms.shared.infrastructure.http_clients.retry import RetryPolicy

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 500


def to_minor_units(amount: Decimal) -> int:
    """Dollars to cents."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeCheckoutAdapter(CheckoutGatewayPort):
    """
    Stripe checkout adapter.

    SDK retries are disabled; every call goes through our RetryPolicy so
    that the retry budget and classification are the same for all
    outbound calls.
    """

    def __init__(
        self, retry: RetryPolicy | None = None, settings: Settings | None = None
    ) -> None:
        self._settings = settings or get_settings()
        stripe.api_key = self._settings.stripe_secret_key
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(
            timeout=self._settings.stripe_timeout_seconds
        )
        self._retry = retry or RetryPolicy.from_settings(self._settings)

    @property
    def provider_name(self) -> str:
        return "stripe"

    async def create_checkout_session(
        self, request: CheckoutSessionRequest
    ) -> CheckoutSessionResult:
        """Create a Stripe Checkout Session in payment mode."""
        params: dict = {
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": request.currency,
                        "unit_amount": to_minor_units(item.amount),
                        "product_data": {
                            "name": item.name,
                            **({"description": item.description} if item.description else {}),
                        },
                    },
                    "quantity": item.quantity,
                }
                for item in request.line_items
            ],
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": request.metadata,
            "phone_number_collection": {"enabled": True},
            "billing_address_collection": "auto",
            "customer_creation": "always",
        }
        if request.customer_email:
            params["customer_email"] = request.customer_email

        try:
            session = await self._retry.call(
                stripe.checkout.Session.create, service="stripe", **params
            )
        except stripe.StripeError as e:
            raise CheckoutProviderError("stripe", e.user_message or str(e)) from e

        logger.info("Stripe checkout session created", extra={"session_id": session.id})
        return CheckoutSessionResult(session_id=session.id, redirect_url=session.url)

    async def create_refund(
        self,
        payment_reference: str,
        amount: Decimal | None = None,
        reason: str | None = None,
    ) -> RefundResult:
        """Refund a payment intent, fully or for ``amount``."""
        params: dict = {
            "payment_intent": payment_reference,
            "reason": "requested_by_customer",
        }
        if amount is not None:
            params["amount"] = to_minor_units(amount)
        if reason:
            params["metadata"] = {"admin_reason": reason[:MAX_REASON_LENGTH]}

        try:
            refund = await self._retry.call(stripe.Refund.create, service="stripe", **params)
        except stripe.StripeError as e:
            raise CheckoutProviderError("stripe", e.user_message or str(e)) from e

        return RefundResult(refund_id=refund.id, status=refund.status or "pending")

    def verify_webhook(self, payload: bytes, signature: str | None) -> None:
        """Verify a delivery with the SDK's Stripe-Signature check."""
        if not signature:
            raise WebhookVerificationError("Missing signature header")
        secret = self._settings.stripe_webhook_secret
        if not secret:
            raise WebhookVerificationError("Webhook secret not configured")

        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                secret,
                tolerance=self._settings.webhook_tolerance_seconds,
            )
        except stripe.SignatureVerificationError as e:
            raise WebhookVerificationError(str(e)) from e
        except UnicodeDecodeError as e:
            raise WebhookVerificationError("Payload is not valid UTF-8") from e
