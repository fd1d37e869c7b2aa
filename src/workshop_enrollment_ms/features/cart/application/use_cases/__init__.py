"""Cart use cases."""

from workshop_enrollment_ms.features.cart.application.use_cases.cart_store import (
    CartLineProblem,
    CartResult,
    CartStore,
    CartValidation,
    PriceChange,
)
from workshop_enrollment_ms.features.cart.application.use_cases.checkout_cart import (
    CartCheckoutResult,
    CheckoutCartUseCase,
)

__all__ = [
    "CartLineProblem",
    "CartResult",
    "CartStore",
    "CartValidation",
    "PriceChange",
    "CartCheckoutResult",
    "CheckoutCartUseCase",
]
