"""Enrollment domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from workshop_enrollment_ms.features.enrollments.domain.enums import (
    ALLOWED_TRANSITIONS,
    EnrollmentStatus,
)
from workshop_enrollment_ms.shared.domain.clock import utc_now
from workshop_enrollment_ms.shared.domain.exceptions import (
    EnrollmentValidationError,
    InvalidStatusTransitionError,
)


@dataclass
class CustomerDetails:
    """Customer contact data as reported by the processor."""

    email: str = ""
    name: str = ""
    phone: str = ""


@dataclass
class Enrollment:
    """Enrollment domain entity."""

    id: UUID
    workshop_id: int
    amount: Decimal
    status: EnrollmentStatus

    customer_email: str = ""
    customer_name: str = ""
    customer_phone: str = ""

    currency: str = "usd"
    pricing_option_id: str = ""

    # Processor references
    session_id: str | None = None
    payment_reference: str | None = None
    customer_reference: str | None = None

    # Refund data
    refund_id: str | None = None
    refund_reason: str | None = None
    refunded_at: datetime | None = None

    notes: str = ""

    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(
        cls,
        workshop_id: int,
        amount: Decimal,
        customer: CustomerDetails | None = None,
        currency: str = "usd",
        pricing_option_id: str = "",
        session_id: str | None = None,
        payment_reference: str | None = None,
        customer_reference: str | None = None,
    ) -> "Enrollment":
        """Create a new enrollment in pending status."""
        customer = customer or CustomerDetails()
        return cls(
            id=uuid4(),
            workshop_id=workshop_id,
            amount=amount,
            status=EnrollmentStatus.PENDING,
            customer_email=customer.email,
            customer_name=customer.name,
            customer_phone=customer.phone,
            currency=currency,
            pricing_option_id=pricing_option_id,
            session_id=session_id,
            payment_reference=payment_reference,
            customer_reference=customer_reference,
        )

    def _transition(self, target: EnrollmentStatus) -> None:
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStatusTransitionError(
                "Enrollment", self.status.value, target.value
            )
        self.status = target
        self.updated_at = utc_now()

    def apply_customer_details(self, customer: CustomerDetails) -> None:
        """Overwrite contact fields with the non-empty values provided."""
        if customer.email:
            self.customer_email = customer.email
        if customer.name:
            self.customer_name = customer.name
        if customer.phone:
            self.customer_phone = customer.phone

    def mark_completed(
        self,
        payment_reference: str | None = None,
        customer_reference: str | None = None,
    ) -> None:
        """Mark as paid. A completed enrollment needs an email and a positive amount."""
        if not self.customer_email:
            raise EnrollmentValidationError(
                f"Enrollment {self.id} cannot complete without a customer email"
            )
        if self.amount <= 0:
            raise EnrollmentValidationError(
                f"Enrollment {self.id} cannot complete with amount {self.amount}"
            )
        self._transition(EnrollmentStatus.COMPLETED)
        if payment_reference:
            self.payment_reference = payment_reference
        if customer_reference:
            self.customer_reference = customer_reference

    def mark_failed(self, reason: str | None = None) -> None:
        self._transition(EnrollmentStatus.FAILED)
        if reason:
            self.append_note(f"Payment failed: {reason}")

    def mark_refunded(
        self,
        refund_id: str | None = None,
        reason: str | None = None,
        refunded_at: datetime | None = None,
    ) -> None:
        self._transition(EnrollmentStatus.REFUNDED)
        self.refund_id = refund_id or self.refund_id
        self.refund_reason = reason or self.refund_reason
        self.refunded_at = refunded_at or utc_now()

    def append_note(self, note: str, at: datetime | None = None) -> None:
        """Append a timestamped audit line."""
        stamp = (at or utc_now()).strftime("%Y-%m-%d %H:%M:%S")
        line = f"[{stamp}] {note}"
        self.notes = f"{self.notes}\n{line}" if self.notes else line
        self.updated_at = utc_now()

    @property
    def is_refunded(self) -> bool:
        return self.status == EnrollmentStatus.REFUNDED

    def can_be_refunded(self) -> bool:
        return (
            self.status == EnrollmentStatus.COMPLETED
            and bool(self.payment_reference)
            and not self.refund_id
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": str(self.id),
            "workshop_id": self.workshop_id,
            "amount": str(self.amount),
            "currency": self.currency,
            "status": self.status.value,
            "customer_email": self.customer_email,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "pricing_option_id": self.pricing_option_id,
            "session_id": self.session_id,
            "payment_reference": self.payment_reference,
            "refund_id": self.refund_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
