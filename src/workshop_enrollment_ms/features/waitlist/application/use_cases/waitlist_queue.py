"""Waitlist queue - per-workshop FIFO of people waiting for a slot."""

import logging
from dataclasses import dataclass
from typing import Mapping
from uuid import UUID

from email_validator import EmailNotValidError, validate_email

from workshop_enrollment_ms.features.catalog.application.ports import (
    WorkshopRepositoryPort,
)
from workshop_enrollment_ms.features.waitlist.application.ports import (
    WaitlistNotifierPort,
    WaitlistRepositoryPort,
)
from workshop_enrollment_ms.features.waitlist.application.use_cases.claim_tokens import (
    ClaimTokenService,
)
from workshop_enrollment_ms.features.waitlist.domain.entities import WaitlistEntry
from workshop_enrollment_ms.features.waitlist.domain.enums import WaitlistStatus
from workshop_enrollment_ms.shared.domain.clock import Clock, utc_now
from workshop_enrollment_ms.shared.domain.exceptions import (
    EnrollmentValidationError,
    WaitlistEntryNotFoundError,
    WorkshopNotFoundError,
)

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Validate syntax and return the lower-cased address."""
    try:
        result = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise EnrollmentValidationError("Please provide a valid email address.") from e
    return result.normalized.lower()


@dataclass
class JoinResult:
    """Outcome of a join request."""

    entry: WaitlistEntry
    created: bool

    @property
    def position(self) -> int:
        return self.entry.position

    @property
    def entry_id(self) -> UUID:
        return self.entry.id


@dataclass
class QueuePosition:
    """Where an entry stands right now."""

    entry_id: UUID
    position: int
    status: WaitlistStatus
    people_ahead: int


class WaitlistQueue:
    """
    Orders waiting entries and hands out freed slots.

    Positions come from ``max(position) + 1``. Two concurrent joins may get
    the same number; the earlier ``created_at`` wins the tie.
    """

    def __init__(
        self,
        entries: WaitlistRepositoryPort,
        workshops: WorkshopRepositoryPort,
        tokens: ClaimTokenService,
        notifier: WaitlistNotifierPort,
        clock: Clock = utc_now,
    ) -> None:
        self._entries = entries
        self._workshops = workshops
        self._tokens = tokens
        self._notifier = notifier
        self._clock = clock

    async def join(
        self,
        workshop_id: int,
        email: str,
        name: str = "",
        phone: str = "",
    ) -> JoinResult:
        """
        Add a person to the workshop's waitlist.

        Joining again while an entry is waiting or notified returns that
        entry instead of creating a second one.
        """
        email = normalize_email(email)

        workshop = await self._workshops.get_published(workshop_id)
        if workshop is None:
            raise WorkshopNotFoundError(workshop_id)
        if not workshop.waitlist_enabled:
            raise EnrollmentValidationError(
                "The waitlist is not available for this workshop."
            )

        existing = await self._entries.find_active(workshop_id, email)
        if existing is not None:
            logger.info(
                f"Already on waitlist for workshop {workshop_id} at position {existing.position}",
                extra={"entry_id": existing.id, "workshop_id": workshop_id},
            )
            return JoinResult(entry=existing, created=False)

        position = await self._entries.max_position(workshop_id) + 1
        entry = WaitlistEntry.create(
            workshop_id=workshop_id,
            email=email,
            position=position,
            name=name.strip(),
            phone=phone.strip(),
        )
        entry = await self._entries.add(entry)
        logger.info(
            f"Waitlist entry created at position {position}",
            extra={"entry_id": entry.id, "workshop_id": workshop_id},
        )

        if not await self._notifier.send_waitlist_confirmation(entry, workshop):
            logger.warning(
                f"Waitlist confirmation not delivered for entry {entry.id}",
                extra={"entry_id": entry.id},
            )

        return JoinResult(entry=entry, created=True)

    async def notify_next_in_line(self, workshop_id: int) -> bool:
        """
        Offer a freed slot to the lowest-position waiting entry.

        The entry becomes ``notified`` only after the notification was
        accepted. On send failure it stays ``waiting`` so the next freed
        slot retries the same person.
        """
        workshop = await self._workshops.get(workshop_id)
        if workshop is None:
            logger.warning(f"Cannot notify waitlist: workshop {workshop_id} not found")
            return False

        entry = await self._entries.first_waiting(workshop_id)
        if entry is None:
            logger.info(
                f"No waiting entries for workshop {workshop_id}",
                extra={"workshop_id": workshop_id},
            )
            return False

        token = await self._tokens.issue(entry)
        claim_url = ClaimTokenService.claim_url(workshop.url, token, entry.id)

        if not await self._notifier.send_spot_available(entry, workshop, claim_url):
            logger.warning(
                f"Spot-available notification failed for entry {entry.id}; left waiting",
                extra={"entry_id": entry.id, "workshop_id": workshop_id},
            )
            return False

        entry.mark_notified(self._clock())
        await self._entries.save(entry)
        logger.info(
            f"Notified waitlist position {entry.position}",
            extra={"entry_id": entry.id, "workshop_id": workshop_id},
        )
        return True

    async def convert(self, entry_id: UUID, enrollment_id: UUID) -> bool:
        """Link the entry to its enrollment. Converting twice is a no-op."""
        entry = await self._entries.get_by_id(entry_id)
        if entry is None:
            raise WaitlistEntryNotFoundError(str(entry_id))

        if entry.status != WaitlistStatus.NOTIFIED and entry.status != WaitlistStatus.CONVERTED:
            logger.warning(
                f"Converting waitlist entry in status {entry.status.value}",
                extra={"entry_id": entry.id},
            )

        if entry.mark_converted(enrollment_id):
            await self._entries.save(entry)
            logger.info(
                f"Waitlist entry converted to enrollment {enrollment_id}",
                extra={"entry_id": entry.id, "enrollment_id": enrollment_id},
            )
        return True

    async def convert_purchase(
        self, entry_id: UUID, enrollments: Mapping[int, UUID]
    ) -> bool:
        """
        Link the entry to the enrollment bought for its own workshop.

        ``enrollments`` maps workshop id to enrollment id for one checkout.
        When the checkout did not include the claimed workshop the first
        enrollment is linked and a warning is logged.
        """
        if not enrollments:
            return False

        entry = await self._entries.get_by_id(entry_id)
        if entry is None:
            raise WaitlistEntryNotFoundError(str(entry_id))

        enrollment_id = enrollments.get(entry.workshop_id)
        if enrollment_id is None:
            enrollment_id = next(iter(enrollments.values()))
            logger.warning(
                f"Checkout did not include claimed workshop {entry.workshop_id}",
                extra={"entry_id": entry.id, "enrollment_id": enrollment_id},
            )
        return await self.convert(entry_id, enrollment_id)

    async def position_of(self, workshop_id: int, email: str) -> QueuePosition | None:
        entry = await self._entries.find_active(workshop_id, normalize_email(email))
        if entry is None:
            return None

        ahead = 0
        if entry.status == WaitlistStatus.WAITING:
            ahead = await self._entries.count_waiting(workshop_id, before_position=entry.position)

        return QueuePosition(
            entry_id=entry.id,
            position=entry.position,
            status=entry.status,
            people_ahead=ahead,
        )

    async def queue_depth(self, workshop_id: int) -> int:
        return await self._entries.count_waiting(workshop_id)
