"""Enrollment domain enums."""

from enum import Enum


class EnrollmentStatus(str, Enum):
    """Enrollment status.

    Moves pending -> completed -> refunded, or pending -> failed.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"
    FAILED = "failed"


class EnrollmentEventType(str, Enum):
    """Events handed to post-processing steps."""

    CREATED = "enrollment.created"
    COMPLETED = "enrollment.completed"
    REFUNDED = "enrollment.refunded"
    STATUS_UPDATED = "enrollment.status_updated"


# Allowed forward moves
ALLOWED_TRANSITIONS: dict[EnrollmentStatus, frozenset[EnrollmentStatus]] = {
    EnrollmentStatus.PENDING: frozenset({EnrollmentStatus.COMPLETED, EnrollmentStatus.FAILED}),
    EnrollmentStatus.COMPLETED: frozenset({EnrollmentStatus.REFUNDED}),
    EnrollmentStatus.REFUNDED: frozenset(),
    EnrollmentStatus.FAILED: frozenset(),
}
