"""Capacity model - admission decisions for a workshop."""

from dataclasses import dataclass

from workshop_enrollment_ms.features.catalog.domain.entities import Workshop

SOLD_OUT = "sold out"
WAITLIST_AVAILABLE = "workshop is full, join the waitlist"


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of an admission check."""

    allowed: bool
    waitlist: bool = False
    reason: str | None = None
    remaining: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "allowed": self.allowed,
            "waitlist": self.waitlist,
            "reason": self.reason,
            "remaining": self.remaining,
        }


def remaining_spots(workshop: Workshop, completed_count: int) -> int | None:
    """Spots left, or None when capacity is unlimited."""
    if workshop.unlimited:
        return None
    return max(workshop.capacity - completed_count, 0)


def can_admit(workshop: Workshop, completed_count: int) -> AdmissionDecision:
    """
    Decide whether a new participant may take a slot.

    Capacity 0 means unlimited: always allowed, waitlist never offered.
    """
    if workshop.unlimited:
        return AdmissionDecision(allowed=True)

    remaining = workshop.capacity - completed_count
    if remaining > 0:
        return AdmissionDecision(allowed=True, remaining=remaining)

    if workshop.waitlist_enabled:
        return AdmissionDecision(
            allowed=False, waitlist=True, reason=WAITLIST_AVAILABLE, remaining=0
        )

    return AdmissionDecision(allowed=False, waitlist=False, reason=SOLD_OUT, remaining=0)
