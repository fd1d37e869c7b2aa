"""Waitlist repositories for database operations."""

from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_enrollment_ms.features.waitlist.application.ports import (
    ClaimStorePort,
    WaitlistRepositoryPort,
)
from workshop_enrollment_ms.features.waitlist.domain.entities import (
    WaitlistClaim,
    WaitlistEntry,
)
from workshop_enrollment_ms.features.waitlist.domain.enums import (
    ACTIVE_STATUSES,
    WaitlistStatus,
)
from workshop_enrollment_ms.shared.infrastructure.database.models import (
    WaitlistClaimModel,
    WaitlistEntryModel,
)


class WaitlistRepository(WaitlistRepositoryPort):
    """Waitlist entry repository using async SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, entry: WaitlistEntry) -> WaitlistEntry:
        self._session.add(WaitlistEntryModel.from_domain(entry))
        await self._session.flush()
        return entry

    async def save(self, entry: WaitlistEntry) -> WaitlistEntry:
        model = await self._session.get(WaitlistEntryModel, entry.id)
        if model is None:
            return await self.add(entry)
        model.apply(entry)
        await self._session.flush()
        return entry

    async def get_by_id(self, entry_id: UUID) -> WaitlistEntry | None:
        model = await self._session.get(WaitlistEntryModel, entry_id)
        return model.to_domain() if model else None

    async def get_by_claim_token(self, token: str) -> WaitlistEntry | None:
        result = await self._session.execute(
            select(WaitlistEntryModel).where(WaitlistEntryModel.claim_token == token)
        )
        model = result.scalar_one_or_none()
        return model.to_domain() if model else None

    async def find_active(self, workshop_id: int, email: str) -> WaitlistEntry | None:
        result = await self._session.execute(
            select(WaitlistEntryModel)
            .where(
                WaitlistEntryModel.workshop_id == workshop_id,
                WaitlistEntryModel.email == email,
                WaitlistEntryModel.status.in_([s.value for s in ACTIVE_STATUSES]),
            )
            .order_by(WaitlistEntryModel.position)
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return model.to_domain() if model else None

    async def max_position(self, workshop_id: int) -> int:
        result = await self._session.execute(
            select(func.max(WaitlistEntryModel.position)).where(
                WaitlistEntryModel.workshop_id == workshop_id
            )
        )
        return int(result.scalar_one_or_none() or 0)

    async def first_waiting(self, workshop_id: int) -> WaitlistEntry | None:
        result = await self._session.execute(
            select(WaitlistEntryModel)
            .where(
                WaitlistEntryModel.workshop_id == workshop_id,
                WaitlistEntryModel.status == WaitlistStatus.WAITING.value,
            )
            .order_by(WaitlistEntryModel.position, WaitlistEntryModel.created_at)
            .limit(1)
        )
        model = result.scalar_one_or_none()
        return model.to_domain() if model else None

    async def count_waiting(
        self, workshop_id: int, before_position: int | None = None
    ) -> int:
        query = (
            select(func.count())
            .select_from(WaitlistEntryModel)
            .where(
                WaitlistEntryModel.workshop_id == workshop_id,
                WaitlistEntryModel.status == WaitlistStatus.WAITING.value,
            )
        )
        if before_position is not None:
            query = query.where(WaitlistEntryModel.position < before_position)
        result = await self._session.execute(query)
        return int(result.scalar_one())

    async def list_by_workshop(self, workshop_id: int) -> list[WaitlistEntry]:
        result = await self._session.execute(
            select(WaitlistEntryModel)
            .where(WaitlistEntryModel.workshop_id == workshop_id)
            .order_by(WaitlistEntryModel.position)
        )
        return [m.to_domain() for m in result.scalars().all()]


class ClaimStore(ClaimStorePort):
    """Claims keyed by cart key, one row per key."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def bind(self, claim: WaitlistClaim) -> None:
        model = await self._session.get(WaitlistClaimModel, claim.owner_key)
        if model is None:
            model = WaitlistClaimModel(owner_key=claim.owner_key)
            self._session.add(model)
        model.apply(claim)
        await self._session.flush()

    async def get(self, owner_key: str) -> WaitlistClaim | None:
        model = await self._session.get(WaitlistClaimModel, owner_key)
        return model.to_domain() if model else None

    async def clear(self, owner_key: str) -> None:
        await self._session.execute(
            delete(WaitlistClaimModel).where(WaitlistClaimModel.owner_key == owner_key)
        )
