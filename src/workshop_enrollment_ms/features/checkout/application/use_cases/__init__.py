"""Checkout use cases."""

from workshop_enrollment_ms.features.checkout.application.use_cases.session_builder import (
    CheckoutOutcome,
    CheckoutSessionBuilder,
)
from workshop_enrollment_ms.features.checkout.application.use_cases.start_checkout import (
    SingleCheckoutRequest,
    StartSingleCheckoutUseCase,
)

__all__ = [
    "CheckoutOutcome",
    "CheckoutSessionBuilder",
    "SingleCheckoutRequest",
    "StartSingleCheckoutUseCase",
]
