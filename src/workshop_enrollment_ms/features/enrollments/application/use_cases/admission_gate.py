"""Admission checks at cart-add, checkout and claim time."""

from uuid import UUID

from workshop_enrollment_ms.features.catalog.domain.entities import Workshop
from workshop_enrollment_ms.features.enrollments.application.use_cases.capacity_model import (
    CapacityModel,
)
from workshop_enrollment_ms.features.enrollments.domain.capacity import AdmissionDecision
from workshop_enrollment_ms.features.waitlist.application.use_cases import (
    ClaimRedemptionService,
)

CLAIM_OVERRIDE = "waitlist claim"


class AdmissionGate:
    """Capacity model plus the override granted by an active waitlist claim."""

    def __init__(self, capacity: CapacityModel, claims: ClaimRedemptionService) -> None:
        self._capacity = capacity
        self._claims = claims

    async def check(self, workshop: Workshop, owner_key: str | None = None) -> AdmissionDecision:
        if owner_key and await self._claims.active_claim(owner_key, workshop.id):
            return AdmissionDecision(allowed=True, reason=CLAIM_OVERRIDE)
        return await self._capacity.can_admit(workshop)

    async def claimed_entry(
        self, owner_key: str | None, workshop_ids: list[int]
    ) -> UUID | None:
        """Entry id of the visitor's claim when its workshop is being bought."""
        if not owner_key:
            return None
        claim = await self._claims.active_claim(owner_key)
        if claim is None or claim.workshop_id not in workshop_ids:
            return None
        return claim.entry_id
