"""Waitlist application ports."""

from workshop_enrollment_ms.features.waitlist.application.ports.claim_store_port import (
    ClaimStorePort,
)
from workshop_enrollment_ms.features.waitlist.application.ports.notifier_port import (
    WaitlistNotifierPort,
)
from workshop_enrollment_ms.features.waitlist.application.ports.waitlist_repository_port import (
    WaitlistRepositoryPort,
)

__all__ = ["ClaimStorePort", "WaitlistNotifierPort", "WaitlistRepositoryPort"]
