"""Use case - check out the whole cart."""

import logging
from dataclasses import dataclass

from workshop_enrollment_ms.features.cart.application.use_cases.cart_store import (
    CartStore,
    CartValidation,
)
from workshop_enrollment_ms.features.checkout.application.use_cases.session_builder import (
    EMPTY_CART_MESSAGE,
    CheckoutOutcome,
    CheckoutSessionBuilder,
)
from workshop_enrollment_ms.features.enrollments.application.use_cases.admission_gate import (
    AdmissionGate,
)

logger = logging.getLogger(__name__)

ITEMS_UNAVAILABLE_MESSAGE = (
    "Some workshops in your cart are no longer available. Please review your cart."
)
PRICES_CHANGED_MESSAGE = (
    "Prices in your cart have changed. Please review your cart before checking out."
)


@dataclass
class CartCheckoutResult:
    outcome: CheckoutOutcome
    validation: CartValidation


class CheckoutCartUseCase:
    """
    Validate the cart, then open one checkout session for all its lines.

    A cart whose lines changed during validation (dropped or repriced) is
    not sent to the processor; the visitor sees the corrected cart first.
    """

    def __init__(
        self,
        carts: CartStore,
        gate: AdmissionGate,
        builder: CheckoutSessionBuilder,
    ) -> None:
        self._carts = carts
        self._gate = gate
        self._builder = builder

    async def execute(self, key: str, customer_email: str | None = None) -> CartCheckoutResult:
        validation = await self._carts.validate(key)
        cart = validation.cart

        if not validation.valid:
            return CartCheckoutResult(CheckoutOutcome.failed(ITEMS_UNAVAILABLE_MESSAGE), validation)
        if validation.price_changes:
            return CartCheckoutResult(CheckoutOutcome.failed(PRICES_CHANGED_MESSAGE), validation)
        if cart.is_empty:
            return CartCheckoutResult(CheckoutOutcome.failed(EMPTY_CART_MESSAGE), validation)

        entry_id = await self._gate.claimed_entry(key, [item.workshop_id for item in cart.items])
        outcome = await self._builder.build_for_cart(
            cart.items, customer_email=customer_email, waitlist_entry_id=entry_id
        )

        if outcome.success:
            await self._carts.attach_checkout_session(key, outcome.session_id)

        return CartCheckoutResult(outcome, validation)
