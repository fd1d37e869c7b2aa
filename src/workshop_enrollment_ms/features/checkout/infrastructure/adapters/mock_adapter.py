"""Mock Checkout Adapter - For development and testing."""

import logging
import secrets
import time
from decimal import Decimal
from typing import Any

from workshop_enrollment_ms.features.checkout.application.ports import (
    CheckoutGatewayPort,
    CheckoutSessionRequest,
    CheckoutSessionResult,
    RefundResult,
)
from workshop_enrollment_ms.features.webhooks.domain.signature import (
    WebhookSignatureVerifier,
)
from workshop_enrollment_ms.shared.core.settings import get_settings

logger = logging.getLogger(__name__)


class MockCheckoutAdapter(CheckoutGatewayPort):
    """
    Mock processor for development.

    Sessions are kept in memory; completion webhooks are simulated by
    posting a payload signed with ``mock_webhook_secret`` to the webhook
    endpoint.
    """

    def __init__(self) -> None:
        self._settings = get_settings()
        self._verifier = WebhookSignatureVerifier(
            self._settings.mock_webhook_secret,
            tolerance=self._settings.webhook_tolerance_seconds,
        )
        self.sessions: dict[str, dict[str, Any]] = {}
        self.refunds: dict[str, dict[str, Any]] = {}

    @property
    def provider_name(self) -> str:
        return "mock"

    async def create_checkout_session(
        self, request: CheckoutSessionRequest
    ) -> CheckoutSessionResult:
        session_id = f"mock_cs_{secrets.token_hex(12)}"
        total = sum((item.amount * item.quantity for item in request.line_items), Decimal("0"))

        self.sessions[session_id] = {
            "amount_total": str(total),
            "currency": request.currency,
            "metadata": dict(request.metadata),
            "customer_email": request.customer_email,
            "payment_intent": f"mock_pi_{secrets.token_hex(12)}",
            "created_at": time.time(),
        }

        redirect_url = (
            f"{self._settings.site_url}/checkout/mock"
            f"?session_id={session_id}&amount={total}&currency={request.currency}"
        )
        logger.info("Mock checkout session created", extra={"session_id": session_id})
        return CheckoutSessionResult(session_id=session_id, redirect_url=redirect_url)

    async def create_refund(
        self,
        payment_reference: str,
        amount: Decimal | None = None,
        reason: str | None = None,
    ) -> RefundResult:
        refund_id = f"mock_re_{secrets.token_hex(8)}"
        self.refunds[refund_id] = {
            "payment_intent": payment_reference,
            "amount": str(amount) if amount is not None else None,
            "reason": reason,
        }
        return RefundResult(refund_id=refund_id)

    def verify_webhook(self, payload: bytes, signature: str | None) -> None:
        self._verifier.verify(payload, signature)
