"""Checkout gateway port (interface) - Adapter Pattern."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class CheckoutLineItem:
    """One priced line shown on the processor's checkout page."""

    name: str
    amount: Decimal
    description: str | None = None
    quantity: int = 1


@dataclass
class CheckoutSessionRequest:
    """Request to open a hosted checkout session."""

    line_items: list[CheckoutLineItem]
    metadata: dict[str, str]
    success_url: str
    cancel_url: str
    currency: str = "usd"
    customer_email: str | None = None


@dataclass
class CheckoutSessionResult:
    """Result from creating a checkout session."""

    session_id: str
    redirect_url: str


@dataclass
class RefundResult:
    """Result from a refund operation."""

    refund_id: str
    status: str = "succeeded"
    extra: dict[str, str] = field(default_factory=dict)


class CheckoutGatewayPort(ABC):
    """
    Abstract interface for payment processors.

    Implementations:
    - StripeCheckoutAdapter
    - MockCheckoutAdapter (for development)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def create_checkout_session(
        self, request: CheckoutSessionRequest
    ) -> CheckoutSessionResult:
        """
        Create a hosted checkout session.

        Raises CheckoutProviderError for terminal rejections and
        UpstreamUnavailableError when retries are exhausted.
        """
        pass

    @abstractmethod
    async def create_refund(
        self,
        payment_reference: str,
        amount: Decimal | None = None,
        reason: str | None = None,
    ) -> RefundResult:
        """Refund a captured payment. ``amount`` None means the full charge."""
        pass

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: str | None) -> None:
        """
        Authenticate a webhook delivery against this processor's secret.

        Raises WebhookVerificationError when the signature header is
        missing, malformed, stale or does not match ``payload``.
        """
        pass
