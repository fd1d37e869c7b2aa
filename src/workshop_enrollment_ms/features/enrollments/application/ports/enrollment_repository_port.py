"""Enrollment repository port."""

from abc import ABC, abstractmethod
from uuid import UUID

from workshop_enrollment_ms.features.enrollments.domain.entities import Enrollment
from workshop_enrollment_ms.features.enrollments.domain.enums import EnrollmentStatus


class EnrollmentRepositoryPort(ABC):
    """Persistence for enrollments."""

    @abstractmethod
    async def add(self, enrollment: Enrollment) -> Enrollment:
        pass

    @abstractmethod
    async def save(self, enrollment: Enrollment) -> Enrollment:
        """Persist changes to an existing enrollment."""
        pass

    @abstractmethod
    async def get_by_id(self, enrollment_id: UUID) -> Enrollment | None:
        pass

    @abstractmethod
    async def get_by_session_id(
        self, session_id: str, workshop_id: int | None = None
    ) -> Enrollment | None:
        """Enrollment created for a checkout session (optionally for one workshop)."""
        pass

    @abstractmethod
    async def list_by_payment_reference(self, payment_reference: str) -> list[Enrollment]:
        """All enrollments paid by one charge (cart checkouts share it)."""
        pass

    @abstractmethod
    async def list_by_workshop(
        self, workshop_id: int, status: EnrollmentStatus | None = None
    ) -> list[Enrollment]:
        pass

    @abstractmethod
    async def count_completed(self, workshop_id: int) -> int:
        pass
