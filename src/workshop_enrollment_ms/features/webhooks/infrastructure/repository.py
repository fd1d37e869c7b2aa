"""Processed webhook event store."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_enrollment_ms.features.webhooks.application.ports import (
    ProcessedEventStorePort,
)
from workshop_enrollment_ms.shared.domain.clock import Clock, utc_now
from workshop_enrollment_ms.shared.infrastructure.database.models import (
    ProcessedWebhookEventModel,
)


class ProcessedEventRepository(ProcessedEventStorePort):
    """Keeps the ``window`` most recent event ids; older rows are trimmed on write."""

    def __init__(self, session: AsyncSession, window: int = 1000, clock: Clock = utc_now) -> None:
        self._session = session
        self._window = window
        self._clock = clock

    async def is_processed(self, event_id: str) -> bool:
        result = await self._session.execute(
            select(ProcessedWebhookEventModel.id).where(
                ProcessedWebhookEventModel.event_id == event_id
            )
        )
        return result.scalar_one_or_none() is not None

    async def mark_processed(self, event_id: str, event_type: str = "") -> None:
        self._session.add(
            ProcessedWebhookEventModel(
                event_id=event_id, event_type=event_type, processed_at=self._clock()
            )
        )
        await self._session.flush()

        cutoff = await self._session.execute(
            select(ProcessedWebhookEventModel.id)
            .order_by(ProcessedWebhookEventModel.id.desc())
            .offset(self._window)
            .limit(1)
        )
        oldest_kept = cutoff.scalar_one_or_none()
        if oldest_kept is not None:
            await self._session.execute(
                delete(ProcessedWebhookEventModel).where(
                    ProcessedWebhookEventModel.id <= oldest_kept
                )
            )
