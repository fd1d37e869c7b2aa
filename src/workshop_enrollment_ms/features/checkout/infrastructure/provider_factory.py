"""Checkout gateway factory - Dependency injection."""

from functools import lru_cache

from workshop_enrollment_ms.features.checkout.application.ports import CheckoutGatewayPort
from workshop_enrollment_ms.features.checkout.infrastructure.adapters import (
    MockCheckoutAdapter,
    StripeCheckoutAdapter,
)
from workshop_enrollment_ms.shared.core.settings import get_settings


@lru_cache
def get_checkout_gateway() -> CheckoutGatewayPort:
    """Get the checkout gateway configured for this deployment."""
    settings = get_settings()

    match settings.payment_provider:
        case "stripe":
            return StripeCheckoutAdapter()
        case _:
            return MockCheckoutAdapter()
