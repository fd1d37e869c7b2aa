"""Enrollment application ports."""

from workshop_enrollment_ms.features.enrollments.application.ports.enrollment_repository_port import (
    EnrollmentRepositoryPort,
)
from workshop_enrollment_ms.features.enrollments.application.ports.event_publisher_port import (
    EnrollmentEventPublisherPort,
)

__all__ = ["EnrollmentRepositoryPort", "EnrollmentEventPublisherPort"]
