"""Checkout session builder - cart or single admission to a processor session."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from workshop_enrollment_ms.features.cart.domain.entities import CartItem
from workshop_enrollment_ms.features.catalog.domain.entities import Workshop
from workshop_enrollment_ms.features.checkout.application.ports import (
    CheckoutGatewayPort,
    CheckoutLineItem,
    CheckoutSessionRequest,
)
from workshop_enrollment_ms.features.checkout.domain.metadata import (
    CartLine,
    CartMetadata,
    CheckoutMetadata,
    SingleItemMetadata,
    encode_metadata,
)
from workshop_enrollment_ms.shared.core.settings import Settings
from workshop_enrollment_ms.shared.domain.exceptions import (
    CheckoutMetadataError,
    CheckoutProviderError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

CHECKOUT_FAILED_MESSAGE = "We couldn't start your checkout. Please try again in a few minutes."
CART_TOO_LARGE_MESSAGE = (
    "Too many workshops for a single checkout. Please check out in smaller batches."
)
EMPTY_CART_MESSAGE = "Your cart is empty."


@dataclass
class CheckoutOutcome:
    """{success, session_id, redirect_url} or {success: False, error}."""

    success: bool
    session_id: str | None = None
    redirect_url: str | None = None
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> "CheckoutOutcome":
        return cls(success=False, error=error)


class CheckoutSessionBuilder:
    """
    Builds one processor checkout session.

    Enrollments are not created here for either path; the completion
    webhook creates them from the metadata written by this class.
    """

    def __init__(
        self,
        gateway: CheckoutGatewayPort,
        success_url: str,
        cancel_url: str,
        site_url: str = "",
        currency: str = "usd",
    ) -> None:
        self._gateway = gateway
        self._success_url = success_url
        self._cancel_url = cancel_url
        self._site_url = site_url
        self._currency = currency

    @classmethod
    def from_settings(
        cls, gateway: CheckoutGatewayPort, settings: Settings
    ) -> "CheckoutSessionBuilder":
        return cls(
            gateway=gateway,
            success_url=settings.success_url,
            cancel_url=settings.cancel_url,
            site_url=settings.site_url,
            currency=settings.currency,
        )

    async def build_single(
        self,
        workshop: Workshop,
        pricing_option: str,
        price: Decimal,
        customer_email: str | None = None,
        waitlist_entry_id: UUID | None = None,
    ) -> CheckoutOutcome:
        label = workshop.pricing_label(pricing_option)
        line = CheckoutLineItem(
            name=f"{workshop.title} - {label}" if label else workshop.title,
            amount=price,
        )
        metadata = SingleItemMetadata(
            workshop_id=workshop.id,
            pricing_option=pricing_option,
            site_url=self._site_url,
            waitlist_entry_id=waitlist_entry_id,
        )
        return await self._open([line], metadata, cart=False, customer_email=customer_email)

    async def build_for_cart(
        self,
        items: list[CartItem],
        customer_email: str | None = None,
        waitlist_entry_id: UUID | None = None,
    ) -> CheckoutOutcome:
        if not items:
            return CheckoutOutcome.failed(EMPTY_CART_MESSAGE)

        lines = [
            CheckoutLineItem(
                name=item.workshop_title,
                description=item.pricing_option or None,
                amount=item.price,
            )
            for item in items
        ]
        metadata = CartMetadata(
            items=[
                CartLine(
                    workshop_id=item.workshop_id,
                    pricing_option=item.pricing_option,
                    price=item.price,
                )
                for item in items
            ],
            site_url=self._site_url,
            waitlist_entry_id=waitlist_entry_id,
        )
        return await self._open(lines, metadata, cart=True, customer_email=customer_email)

    def success_url_for(self, cart: bool) -> str:
        separator = "&" if "?" in self._success_url else "?"
        url = f"{self._success_url}{separator}session_id={{CHECKOUT_SESSION_ID}}"
        return f"{url}&cart=1" if cart else url

    async def _open(
        self,
        lines: list[CheckoutLineItem],
        metadata: CheckoutMetadata,
        cart: bool,
        customer_email: str | None,
    ) -> CheckoutOutcome:
        try:
            encoded = encode_metadata(metadata)
        except CheckoutMetadataError as e:
            logger.warning(f"Checkout metadata rejected: {e}")
            return CheckoutOutcome.failed(CART_TOO_LARGE_MESSAGE)

        request = CheckoutSessionRequest(
            line_items=lines,
            metadata=encoded,
            success_url=self.success_url_for(cart),
            cancel_url=self._cancel_url,
            currency=self._currency,
            customer_email=customer_email,
        )

        try:
            result = await self._gateway.create_checkout_session(request)
        except (CheckoutProviderError, UpstreamUnavailableError) as e:
            logger.error(f"Checkout session could not be created: {e}")
            return CheckoutOutcome.failed(CHECKOUT_FAILED_MESSAGE)

        logger.info(
            f"Checkout session opened ({'cart' if cart else 'single item'}, {len(lines)} line(s))",
            extra={"session_id": result.session_id},
        )
        return CheckoutOutcome(
            success=True,
            session_id=result.session_id,
            redirect_url=result.redirect_url,
        )
