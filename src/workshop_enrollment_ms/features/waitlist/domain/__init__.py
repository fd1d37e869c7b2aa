"""Waitlist domain module."""

from workshop_enrollment_ms.features.waitlist.domain.entities import (
    WaitlistClaim,
    WaitlistEntry,
)
from workshop_enrollment_ms.features.waitlist.domain.enums import (
    ACTIVE_STATUSES,
    WaitlistStatus,
)

__all__ = ["WaitlistClaim", "WaitlistEntry", "ACTIVE_STATUSES", "WaitlistStatus"]
