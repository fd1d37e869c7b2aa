"""Checkout application ports."""

from workshop_enrollment_ms.features.checkout.application.ports.checkout_gateway_port import (
    CheckoutGatewayPort,
    CheckoutLineItem,
    CheckoutSessionRequest,
    CheckoutSessionResult,
    RefundResult,
)

__all__ = [
    "CheckoutGatewayPort",
    "CheckoutLineItem",
    "CheckoutSessionRequest",
    "CheckoutSessionResult",
    "RefundResult",
]
