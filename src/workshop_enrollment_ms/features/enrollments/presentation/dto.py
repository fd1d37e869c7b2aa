"""Enrollment DTOs for API requests/responses."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from workshop_enrollment_ms.features.enrollments.domain.entities import Enrollment
from workshop_enrollment_ms.features.enrollments.domain.enums import EnrollmentStatus


class EnrollmentResponse(BaseModel):
    """Enrollment as returned by the API."""

    id: UUID
    workshop_id: int
    status: EnrollmentStatus
    amount: str
    currency: str
    pricing_option_id: str
    customer_email: str
    customer_name: str
    customer_phone: str
    session_id: str | None = None
    payment_reference: str | None = None
    refund_id: str | None = None
    refunded_at: datetime | None = None
    notes: str = ""
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, enrollment: Enrollment) -> "EnrollmentResponse":
        return cls(
            id=enrollment.id,
            workshop_id=enrollment.workshop_id,
            status=enrollment.status,
            amount=str(enrollment.amount),
            currency=enrollment.currency,
            pricing_option_id=enrollment.pricing_option_id,
            customer_email=enrollment.customer_email,
            customer_name=enrollment.customer_name,
            customer_phone=enrollment.customer_phone,
            session_id=enrollment.session_id,
            payment_reference=enrollment.payment_reference,
            refund_id=enrollment.refund_id,
            refunded_at=enrollment.refunded_at,
            notes=enrollment.notes,
            created_at=enrollment.created_at,
            updated_at=enrollment.updated_at,
        )


class EnrollmentRefundRequest(BaseModel):
    """Request to refund an enrollment."""

    reason: str | None = Field(
        None, max_length=500, description="Refund reason for the audit trail"
    )
