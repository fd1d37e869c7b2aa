"""Outbound port for enrollment events consumed by other subsystems."""

from abc import ABC, abstractmethod

from workshop_enrollment_ms.features.enrollments.domain.events import EnrollmentEvent


class EnrollmentEventPublisherPort(ABC):
    """Delivers enrollment events to the notification subsystem."""

    @abstractmethod
    async def publish(self, event: EnrollmentEvent) -> bool:
        """Return True when the subsystem accepted the event."""
        pass
