"""Checkout gateway adapters."""

from workshop_enrollment_ms.features.checkout.infrastructure.adapters.mock_adapter import (
    MockCheckoutAdapter,
)
from workshop_enrollment_ms.features.checkout.infrastructure.adapters.stripe_adapter import (
    StripeCheckoutAdapter,
)

__all__ = ["MockCheckoutAdapter", "StripeCheckoutAdapter"]
