"""Cart store - session or account scoped selections awaiting checkout."""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Any

from workshop_enrollment_ms.features.cart.application.ports import CartStoragePort
from workshop_enrollment_ms.features.cart.domain.entities import (
    Cart,
    CartItem,
    cart_key_for,
    format_money,
)
from workshop_enrollment_ms.features.catalog.application.ports import (
    WorkshopRepositoryPort,
)
from workshop_enrollment_ms.features.catalog.domain.entities import Workshop
from workshop_enrollment_ms.features.enrollments.application.use_cases.admission_gate import (
    AdmissionGate,
)
from workshop_enrollment_ms.features.enrollments.domain.capacity import SOLD_OUT
from workshop_enrollment_ms.shared.domain.clock import Clock, utc_now

logger = logging.getLogger(__name__)

UNAVAILABLE = "This workshop is no longer available."
CHECKOUT_DISABLED = "Online checkout is not available for this workshop."
NO_PRICE = "This workshop has no valid price configured."
NOT_IN_CART = "This workshop is not in your cart."


@dataclass
class CartResult:
    """Envelope returned by every cart mutation."""

    success: bool
    message: str
    cart: Cart
    waitlist: bool = False


@dataclass
class CartLineProblem:
    workshop_id: int
    workshop_title: str
    error: str
    waitlist: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "workshop_id": self.workshop_id,
            "workshop_title": self.workshop_title,
            "error": self.error,
            "waitlist": self.waitlist,
        }


@dataclass
class PriceChange:
    workshop_id: int
    workshop_title: str
    old_price: Decimal
    new_price: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "workshop_id": self.workshop_id,
            "workshop_title": self.workshop_title,
            "old_price": format_money(self.old_price),
            "new_price": format_money(self.new_price),
        }


@dataclass
class CartValidation:
    """Result of re-checking a cart right before checkout."""

    valid: bool
    cart: Cart
    errors: list[CartLineProblem] = field(default_factory=list)
    price_changes: list[PriceChange] = field(default_factory=list)


class CartStore:
    """
    Cart operations with admission checks.

    One line per workshop. Every save renews the storage TTL.
    """

    def __init__(
        self,
        storage: CartStoragePort,
        workshops: WorkshopRepositoryPort,
        gate: AdmissionGate,
        ttl: timedelta = timedelta(days=30),
        clock: Clock = utc_now,
    ) -> None:
        self._storage = storage
        self._workshops = workshops
        self._gate = gate
        self._ttl = ttl
        self._clock = clock

    async def get(self, key: str) -> Cart:
        cart = await self._storage.load(key)
        return cart if cart is not None else Cart(key=key)

    async def _save(self, cart: Cart) -> None:
        cart.checkout_session_id = None
        cart.updated_at = self._clock()
        await self._storage.save(cart, self._ttl)

    async def _line_problem(
        self,
        workshop: Workshop | None,
        workshop_id: int,
        key: str,
        title: str = "",
        pricing_option: str = "",
    ) -> CartLineProblem | None:
        """Why this workshop cannot be bought now, or None."""
        if workshop is None:
            return CartLineProblem(workshop_id, title, UNAVAILABLE)
        if not workshop.checkout_enabled:
            return CartLineProblem(workshop_id, workshop.title, CHECKOUT_DISABLED)

        decision = await self._gate.check(workshop, key)
        if not decision.allowed:
            return CartLineProblem(
                workshop_id,
                workshop.title,
                decision.reason or SOLD_OUT,
                waitlist=decision.waitlist,
            )

        if workshop.effective_price(pricing_option) <= 0:
            return CartLineProblem(workshop_id, workshop.title, NO_PRICE)
        return None

    async def add(self, key: str, workshop_id: int, pricing_option: str = "") -> CartResult:
        cart = await self.get(key)

        if cart.find(workshop_id) is not None:
            return CartResult(False, "This workshop is already in your cart.", cart)

        workshop = await self._workshops.get_published(workshop_id)
        problem = await self._line_problem(
            workshop, workshop_id, key, pricing_option=pricing_option
        )
        if problem is not None:
            return CartResult(False, problem.error, cart, waitlist=problem.waitlist)

        option = workshop.find_option(pricing_option)
        option_id = option.id if option else ""
        cart.items.append(
            CartItem(
                workshop_id=workshop.id,
                workshop_title=workshop.title,
                pricing_option=option_id,
                price=workshop.effective_price(option_id),
                added_at=self._clock(),
            )
        )
        await self._save(cart)
        logger.info(f"Workshop {workshop_id} added to cart", extra={"workshop_id": workshop_id})
        return CartResult(True, "Workshop added to cart.", cart)

    async def remove(self, key: str, workshop_id: int) -> CartResult:
        cart = await self.get(key)
        if not cart.remove(workshop_id):
            return CartResult(False, NOT_IN_CART, cart)
        await self._save(cart)
        return CartResult(True, "Workshop removed from cart.", cart)

    async def update_pricing_option(
        self, key: str, workshop_id: int, pricing_option: str
    ) -> CartResult:
        cart = await self.get(key)
        item = cart.find(workshop_id)
        if item is None:
            return CartResult(False, NOT_IN_CART, cart)

        workshop = await self._workshops.get_published(workshop_id)
        if workshop is None:
            cart.remove(workshop_id)
            await self._save(cart)
            return CartResult(False, UNAVAILABLE, cart)

        option = workshop.find_option(pricing_option)
        item.pricing_option = option.id if option else ""
        item.price = workshop.effective_price(item.pricing_option)
        item.workshop_title = workshop.title
        await self._save(cart)
        return CartResult(True, "Cart updated.", cart)

    async def clear(self, key: str) -> CartResult:
        await self._storage.delete(key)
        return CartResult(True, "Cart cleared.", Cart(key=key))

    async def validate(self, key: str) -> CartValidation:
        """
        Re-resolve availability and price of every line.

        Lines that can no longer be bought are dropped; prices are updated
        to the current value and the change is reported.
        """
        cart = await self.get(key)
        errors: list[CartLineProblem] = []
        changes: list[PriceChange] = []
        kept: list[CartItem] = []

        for item in cart.items:
            workshop = await self._workshops.get_published(item.workshop_id)
            problem = await self._line_problem(
                workshop,
                item.workshop_id,
                key,
                title=item.workshop_title,
                pricing_option=item.pricing_option,
            )
            if problem is not None:
                errors.append(problem)
                continue

            current = workshop.effective_price(item.pricing_option)
            if current != item.price:
                changes.append(
                    PriceChange(item.workshop_id, workshop.title, item.price, current)
                )
                item.price = current
            item.workshop_title = workshop.title
            kept.append(item)

        if errors or changes:
            cart.items = kept
            await self._save(cart)
            logger.info(
                f"Cart validation dropped {len(errors)} line(s), repriced {len(changes)}"
            )

        return CartValidation(valid=not errors, cart=cart, errors=errors, price_changes=changes)

    async def attach_checkout_session(self, key: str, session_id: str) -> None:
        """Remember which processor session this cart was checked out as."""
        cart = await self.get(key)
        cart.checkout_session_id = session_id
        cart.updated_at = self._clock()
        await self._storage.save(cart, self._ttl)

    async def merge_on_login(self, session_key: str, user_id: str) -> Cart:
        """
        Fold the anonymous cart into the account cart, then drop it.

        Account lines win when both carts hold the same workshop.
        """
        account_key = cart_key_for(user_id=user_id)
        account = await self.get(account_key)

        anonymous = await self._storage.load(session_key)
        if anonymous is None or anonymous.is_empty or session_key == account_key:
            return account

        for item in anonymous.items:
            if account.find(item.workshop_id) is None:
                account.items.append(item)

        await self._save(account)
        await self._storage.delete(session_key)
        logger.info(f"Merged {anonymous.count} anonymous cart line(s) into account cart")
        return account
