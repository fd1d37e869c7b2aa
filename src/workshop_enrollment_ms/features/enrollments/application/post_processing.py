"""Post-processing pipeline for committed enrollment state changes.

Steps run in the order they are listed, after the reconciling transaction
has committed. A failing step is logged and the remaining steps still run.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable

from workshop_enrollment_ms.features.catalog.application.ports import (
    WorkshopRepositoryPort,
)
from workshop_enrollment_ms.features.enrollments.application.ports import (
    EnrollmentEventPublisherPort,
)
from workshop_enrollment_ms.features.enrollments.application.use_cases.capacity_model import (
    CapacityModel,
)
from workshop_enrollment_ms.features.enrollments.domain.enums import EnrollmentEventType
from workshop_enrollment_ms.features.enrollments.domain.events import EnrollmentEvent
from workshop_enrollment_ms.features.waitlist.application.use_cases import WaitlistQueue

logger = logging.getLogger(__name__)


class PostProcessingStep(ABC):
    """One side effect triggered by an enrollment event."""

    name: str = "step"

    @abstractmethod
    async def handle(self, event: EnrollmentEvent) -> None:
        pass


class PublishToNotificationService(PostProcessingStep):
    """Forward every event to the notification subsystem."""

    name = "publish_to_notification_service"

    def __init__(self, publisher: EnrollmentEventPublisherPort) -> None:
        self._publisher = publisher

    async def handle(self, event: EnrollmentEvent) -> None:
        if not await self._publisher.publish(event):
            logger.warning(
                f"Notification subsystem did not accept {event.type.value}",
                extra={"enrollment_id": event.enrollment.id},
            )


class RefillFromWaitlist(PostProcessingStep):
    """Offer a slot freed by a refund to the next waiting person."""

    name = "refill_from_waitlist"

    def __init__(
        self,
        workshops: WorkshopRepositoryPort,
        capacity: CapacityModel,
        queue: WaitlistQueue,
    ) -> None:
        self._workshops = workshops
        self._capacity = capacity
        self._queue = queue

    async def handle(self, event: EnrollmentEvent) -> None:
        if event.type != EnrollmentEventType.REFUNDED:
            return

        workshop = await self._workshops.get(event.enrollment.workshop_id)
        if workshop is None or not workshop.waitlist_enabled:
            return

        if not await self._capacity.has_spots(workshop):
            logger.info(
                f"Workshop {workshop.id} still full after refund, waitlist untouched",
                extra={"workshop_id": workshop.id},
            )
            return

        await self._queue.notify_next_in_line(workshop.id)


class EnrollmentEventPipeline:
    """Runs the configured steps for each event, in order."""

    def __init__(self, steps: list[PostProcessingStep]) -> None:
        self._steps = steps

    async def run(self, events: Iterable[EnrollmentEvent]) -> None:
        for event in events:
            for step in self._steps:
                try:
                    await step.handle(event)
                except Exception:
                    logger.exception(
                        f"Post-processing step {step.name} failed for {event.type.value}",
                        extra={"enrollment_id": event.enrollment.id},
                    )
