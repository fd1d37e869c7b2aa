"""Waitlist use cases."""

from workshop_enrollment_ms.features.waitlist.application.use_cases.claim_redemption import (
    ClaimRedemptionService,
    RedeemedClaim,
)
from workshop_enrollment_ms.features.waitlist.application.use_cases.claim_tokens import (
    ClaimTokenService,
)
from workshop_enrollment_ms.features.waitlist.application.use_cases.waitlist_queue import (
    JoinResult,
    QueuePosition,
    WaitlistQueue,
    normalize_email,
)

__all__ = [
    "ClaimRedemptionService",
    "RedeemedClaim",
    "ClaimTokenService",
    "JoinResult",
    "QueuePosition",
    "WaitlistQueue",
    "normalize_email",
]
