"""Claim token lifecycle."""

import logging
import secrets
from datetime import timedelta
from uuid import UUID

import httpx

from workshop_enrollment_ms.features.waitlist.application.ports import (
    WaitlistRepositoryPort,
)
from workshop_enrollment_ms.features.waitlist.domain.entities import WaitlistEntry
from workshop_enrollment_ms.features.waitlist.domain.enums import WaitlistStatus
from workshop_enrollment_ms.shared.core.logging_config import token_prefix
from workshop_enrollment_ms.shared.domain.clock import Clock, utc_now
from workshop_enrollment_ms.shared.domain.exceptions import WaitlistEntryNotFoundError

logger = logging.getLogger(__name__)

# 32 random bytes -> 64 hex characters, 256 bits of entropy
TOKEN_BYTES = 32


class ClaimTokenService:
    """
    Issues and validates claim tokens.

    Validation never consumes a token: the holder may reload the claim page
    for the whole window. Only conversion of the entry burns the right.
    """

    def __init__(
        self,
        entries: WaitlistRepositoryPort,
        ttl: timedelta = timedelta(hours=48),
        clock: Clock = utc_now,
    ) -> None:
        self._entries = entries
        self._ttl = ttl
        self._clock = clock

    async def generate(self, entry_id: UUID) -> str:
        """Issue a fresh token for the entry, invalidating any earlier one."""
        entry = await self._entries.get_by_id(entry_id)
        if entry is None:
            raise WaitlistEntryNotFoundError(str(entry_id))
        return await self.issue(entry)

    async def issue(self, entry: WaitlistEntry) -> str:
        token = secrets.token_hex(TOKEN_BYTES)
        entry.issue_claim_token(token, self._clock() + self._ttl)
        await self._entries.save(entry)
        logger.info(
            f"Claim token {token_prefix(token)} issued for waitlist entry {entry.id}",
            extra={"entry_id": entry.id, "workshop_id": entry.workshop_id},
        )
        return token

    async def validate(self, token: str) -> UUID | None:
        """
        Return the entry id the token grants, or None.

        An expired token moves its entry to ``expired``; that is the only
        write this method makes.
        """
        if not token:
            return None

        entry = await self._entries.get_by_claim_token(token)
        if entry is None:
            logger.info(f"Unknown claim token {token_prefix(token)}")
            return None

        if entry.claim_token_expired(self._clock()):
            if not entry.status.is_terminal:
                entry.mark_expired()
                await self._entries.save(entry)
                logger.info(
                    f"Claim token {token_prefix(token)} expired, entry {entry.id} marked expired",
                    extra={"entry_id": entry.id},
                )
            return None

        if entry.status != WaitlistStatus.NOTIFIED:
            return None

        return entry.id

    @staticmethod
    def claim_url(workshop_url: str, token: str, entry_id: UUID) -> str:
        """``{workshop_url}?waitlist_token=...&entry_id=...``"""
        url = httpx.URL(workshop_url).copy_merge_params(
            {"waitlist_token": token, "entry_id": str(entry_id)}
        )
        return str(url)
