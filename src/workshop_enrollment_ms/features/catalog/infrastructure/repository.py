"""Workshop repository for database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_enrollment_ms.features.catalog.application.ports import (
    WorkshopRepositoryPort,
)
from workshop_enrollment_ms.features.catalog.domain.entities import Workshop
from workshop_enrollment_ms.shared.infrastructure.database.models import WorkshopModel


class WorkshopRepository(WorkshopRepositoryPort):
    """Read access to the shared workshops table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, workshop_id: int) -> Workshop | None:
        result = await self._session.execute(
            select(WorkshopModel).where(WorkshopModel.id == workshop_id)
        )
        model = result.scalar_one_or_none()
        return model.to_domain() if model else None

    async def upsert(self, workshop: Workshop) -> Workshop:
        """Write a workshop row. Used by seeding and tests."""
        await self._session.merge(WorkshopModel.from_domain(workshop))
        await self._session.flush()
        return workshop
