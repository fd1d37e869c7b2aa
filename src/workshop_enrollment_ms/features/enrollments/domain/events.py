"""Enrollment domain events."""

from dataclasses import dataclass, field
from typing import Any

from workshop_enrollment_ms.features.enrollments.domain.entities import Enrollment
from workshop_enrollment_ms.features.enrollments.domain.enums import EnrollmentEventType


@dataclass(frozen=True)
class EnrollmentEvent:
    """A committed enrollment state change."""

    type: EnrollmentEventType
    enrollment: Enrollment
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def created(cls, enrollment: Enrollment) -> "EnrollmentEvent":
        return cls(EnrollmentEventType.CREATED, enrollment)

    @classmethod
    def completed(cls, enrollment: Enrollment, **payload: Any) -> "EnrollmentEvent":
        return cls(EnrollmentEventType.COMPLETED, enrollment, payload)

    @classmethod
    def refunded(cls, enrollment: Enrollment, **payload: Any) -> "EnrollmentEvent":
        return cls(EnrollmentEventType.REFUNDED, enrollment, payload)

    @classmethod
    def status_updated(
        cls, enrollment: Enrollment, old_status: str, new_status: str
    ) -> "EnrollmentEvent":
        return cls(
            EnrollmentEventType.STATUS_UPDATED,
            enrollment,
            {"old_status": old_status, "new_status": new_status},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.type.value,
            "enrollment_id": str(self.enrollment.id),
            "workshop_id": self.enrollment.workshop_id,
            "enrollment": self.enrollment.to_dict(),
            **self.payload,
        }
