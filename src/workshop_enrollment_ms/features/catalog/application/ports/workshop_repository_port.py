"""Workshop catalog port (read-only)."""

from abc import ABC, abstractmethod

from workshop_enrollment_ms.features.catalog.domain.entities import Workshop


class WorkshopRepositoryPort(ABC):
    """Read access to workshop configuration."""

    @abstractmethod
    async def get(self, workshop_id: int) -> Workshop | None:
        """Get a workshop by id, published or not."""
        pass

    async def get_published(self, workshop_id: int) -> Workshop | None:
        """Get a workshop only if it is published."""
        workshop = await self.get(workshop_id)
        if workshop is None or not workshop.published:
            return None
        return workshop
