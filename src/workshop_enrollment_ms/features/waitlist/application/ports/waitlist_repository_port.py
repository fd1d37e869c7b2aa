"""Waitlist repository port."""

from abc import ABC, abstractmethod
from uuid import UUID

from workshop_enrollment_ms.features.waitlist.domain.entities import WaitlistEntry


class WaitlistRepositoryPort(ABC):
    """Persistence for waitlist entries."""

    @abstractmethod
    async def add(self, entry: WaitlistEntry) -> WaitlistEntry:
        pass

    @abstractmethod
    async def save(self, entry: WaitlistEntry) -> WaitlistEntry:
        pass

    @abstractmethod
    async def get_by_id(self, entry_id: UUID) -> WaitlistEntry | None:
        pass

    @abstractmethod
    async def get_by_claim_token(self, token: str) -> WaitlistEntry | None:
        pass

    @abstractmethod
    async def find_active(self, workshop_id: int, email: str) -> WaitlistEntry | None:
        """The waiting or notified entry for this email, if any."""
        pass

    @abstractmethod
    async def max_position(self, workshop_id: int) -> int:
        """Highest position ever assigned for the workshop (0 when empty)."""
        pass

    @abstractmethod
    async def first_waiting(self, workshop_id: int) -> WaitlistEntry | None:
        """Lowest-position waiting entry; ties go to the earlier arrival."""
        pass

    @abstractmethod
    async def count_waiting(
        self, workshop_id: int, before_position: int | None = None
    ) -> int:
        """Waiting entries, optionally only those ahead of ``before_position``."""
        pass

    @abstractmethod
    async def list_by_workshop(self, workshop_id: int) -> list[WaitlistEntry]:
        pass
