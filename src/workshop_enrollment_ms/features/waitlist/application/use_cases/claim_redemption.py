"""Claim redemption - binding a valid claim link to the visitor's session."""

import logging
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Awaitable, Callable
from uuid import UUID

from workshop_enrollment_ms.features.catalog.application.ports import (
    WorkshopRepositoryPort,
)
from workshop_enrollment_ms.features.waitlist.application.ports import (
    ClaimStorePort,
    WaitlistRepositoryPort,
)
from workshop_enrollment_ms.features.waitlist.application.use_cases.claim_tokens import (
    ClaimTokenService,
)
from workshop_enrollment_ms.features.waitlist.domain.entities import WaitlistClaim
from workshop_enrollment_ms.features.waitlist.domain.enums import WaitlistStatus
from workshop_enrollment_ms.shared.domain.clock import Clock, utc_now
from workshop_enrollment_ms.shared.domain.exceptions import (
    ClaimTokenInvalidError,
    WorkshopNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass
class RedeemedClaim:
    claim: WaitlistClaim
    redirect_url: str


class ClaimRedemptionService:
    """
    Turns a claim link into a short-lived, session-bound admission override.

    While the claim is active, admission for its workshop is allowed for
    that cart key regardless of capacity.

    Validating an out-of-date link marks its entry expired. That write is
    committed before the rejection is raised, otherwise the request
    rollback would undo it.
    """

    def __init__(
        self,
        tokens: ClaimTokenService,
        entries: WaitlistRepositoryPort,
        workshops: WorkshopRepositoryPort,
        claims: ClaimStorePort,
        window: timedelta = timedelta(hours=1),
        clock: Clock = utc_now,
        commit: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._tokens = tokens
        self._entries = entries
        self._workshops = workshops
        self._claims = claims
        self._window = window
        self._clock = clock
        self._commit = commit

    async def redeem(self, token: str, entry_id: str | None, owner_key: str) -> RedeemedClaim:
        validated = await self._tokens.validate(token)
        if validated is None:
            if self._commit is not None:
                await self._commit()
            raise ClaimTokenInvalidError()

        if entry_id is not None:
            try:
                requested = UUID(entry_id)
            except ValueError as e:
                raise ClaimTokenInvalidError() from e
            if requested != validated:
                raise ClaimTokenInvalidError()

        entry = await self._entries.get_by_id(validated)
        if entry is None:
            raise ClaimTokenInvalidError()

        workshop = await self._workshops.get(entry.workshop_id)
        if workshop is None:
            raise WorkshopNotFoundError(entry.workshop_id)

        claim = WaitlistClaim(
            owner_key=owner_key,
            entry_id=entry.id,
            workshop_id=entry.workshop_id,
            customer_email=entry.email,
            customer_name=entry.name,
            customer_phone=entry.phone,
            expires_at=self._clock() + self._window,
            token_expires_at=entry.claim_token_expires_at,
        )
        await self._claims.bind(claim)
        logger.info(
            f"Waitlist claim bound for workshop {entry.workshop_id}",
            extra={"entry_id": entry.id, "workshop_id": entry.workshop_id},
        )
        return RedeemedClaim(claim=claim, redirect_url=workshop.url)

    async def active_claim(
        self, owner_key: str, workshop_id: int | None = None
    ) -> WaitlistClaim | None:
        """The visitor's live claim, optionally only if it is for ``workshop_id``."""
        claim = await self._claims.get(owner_key)
        if claim is None:
            return None

        if not claim.is_active(self._clock()):
            await self._claims.clear(owner_key)
            return None

        entry = await self._entries.get_by_id(claim.entry_id)
        if entry is None or entry.status != WaitlistStatus.NOTIFIED:
            await self._claims.clear(owner_key)
            return None

        if workshop_id is not None and claim.workshop_id != workshop_id:
            return None
        return claim

    async def transfer(self, from_key: str, to_key: str) -> WaitlistClaim | None:
        """Move a live claim to another cart key, e.g. on login."""
        if from_key == to_key:
            return await self.active_claim(to_key)

        claim = await self.active_claim(from_key)
        if claim is None:
            return None

        moved = replace(claim, owner_key=to_key)
        await self._claims.bind(moved)
        await self._claims.clear(from_key)
        logger.info(
            f"Waitlist claim moved to account cart for workshop {claim.workshop_id}",
            extra={"entry_id": claim.entry_id},
        )
        return moved
