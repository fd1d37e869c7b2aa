"""Enrollment domain module."""

from workshop_enrollment_ms.features.enrollments.domain.capacity import (
    AdmissionDecision,
    can_admit,
    remaining_spots,
)
from workshop_enrollment_ms.features.enrollments.domain.entities import (
    CustomerDetails,
    Enrollment,
)
from workshop_enrollment_ms.features.enrollments.domain.enums import (
    EnrollmentEventType,
    EnrollmentStatus,
)
from workshop_enrollment_ms.features.enrollments.domain.events import EnrollmentEvent

__all__ = [
    "AdmissionDecision",
    "can_admit",
    "remaining_spots",
    "CustomerDetails",
    "Enrollment",
    "EnrollmentEventType",
    "EnrollmentStatus",
    "EnrollmentEvent",
]
