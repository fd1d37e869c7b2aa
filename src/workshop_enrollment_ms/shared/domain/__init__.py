"""Shared domain module - Exceptions and clock."""

from workshop_enrollment_ms.shared.domain.clock import Clock, ensure_aware, utc_now
from workshop_enrollment_ms.shared.domain.exceptions import (
    AdmissionDeniedError,
    CheckoutMetadataError,
    CheckoutProviderError,
    DuplicateEnrollmentError,
    ClaimTokenInvalidError,
    EnrollmentError,
    EnrollmentNotFoundError,
    EnrollmentValidationError,
    InvalidStatusTransitionError,
    RefundNotAllowedError,
    UpstreamUnavailableError,
    WaitlistEntryNotFoundError,
    WebhookVerificationError,
    WorkshopNotFoundError,
)

__all__ = [
    "Clock",
    "ensure_aware",
    "utc_now",
    "AdmissionDeniedError",
    "CheckoutMetadataError",
    "CheckoutProviderError",
    "DuplicateEnrollmentError",
    "ClaimTokenInvalidError",
    "EnrollmentError",
    "EnrollmentNotFoundError",
    "EnrollmentValidationError",
    "InvalidStatusTransitionError",
    "RefundNotAllowedError",
    "UpstreamUnavailableError",
    "WaitlistEntryNotFoundError",
    "WebhookVerificationError",
    "WorkshopNotFoundError",
]
