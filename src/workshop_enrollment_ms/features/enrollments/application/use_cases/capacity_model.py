"""Capacity model service - admission checks against stored enrollments."""

from workshop_enrollment_ms.features.catalog.domain.entities import Workshop
from workshop_enrollment_ms.features.enrollments.application.ports import (
    EnrollmentRepositoryPort,
)
from workshop_enrollment_ms.features.enrollments.domain.capacity import (
    AdmissionDecision,
    can_admit,
)


class CapacityModel:
    """
    Answers "can admit / must waitlist / sold out" for a workshop.

    The check is advisory: it reads the completed count and does not lock,
    so two simultaneous confirmations for the last slot can both succeed.
    """

    def __init__(self, enrollments: EnrollmentRepositoryPort) -> None:
        self._enrollments = enrollments

    async def can_admit(self, workshop: Workshop) -> AdmissionDecision:
        if workshop.unlimited:
            return can_admit(workshop, 0)
        completed = await self._enrollments.count_completed(workshop.id)
        return can_admit(workshop, completed)

    async def has_spots(self, workshop: Workshop) -> bool:
        return (await self.can_admit(workshop)).allowed
