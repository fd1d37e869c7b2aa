"""Waitlist domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from workshop_enrollment_ms.features.waitlist.domain.enums import WaitlistStatus
from workshop_enrollment_ms.shared.domain.clock import utc_now
from workshop_enrollment_ms.shared.domain.exceptions import InvalidStatusTransitionError


@dataclass
class WaitlistEntry:
    """
    A person waiting for a slot in one workshop.

    ``position`` is arrival order. It is never renumbered, so it is not the
    number of people ahead.
    """

    id: UUID
    workshop_id: int
    email: str
    position: int
    status: WaitlistStatus = WaitlistStatus.WAITING
    name: str = ""
    phone: str = ""

    notified: bool = False
    notified_at: datetime | None = None
    enrollment_id: UUID | None = None

    # Claim token (one live token per entry)
    claim_token: str | None = None
    claim_token_expires_at: datetime | None = None

    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(
        cls,
        workshop_id: int,
        email: str,
        position: int,
        name: str = "",
        phone: str = "",
    ) -> "WaitlistEntry":
        """Create a new entry in waiting status."""
        return cls(
            id=uuid4(),
            workshop_id=workshop_id,
            email=email,
            position=position,
            name=name,
            phone=phone,
        )

    def issue_claim_token(self, token: str, expires_at: datetime) -> None:
        """Store a new token, replacing any unredeemed one."""
        self.claim_token = token
        self.claim_token_expires_at = expires_at
        self.updated_at = utc_now()

    def claim_token_expired(self, now: datetime) -> bool:
        return self.claim_token_expires_at is not None and now > self.claim_token_expires_at

    def mark_notified(self, at: datetime | None = None) -> None:
        if self.status != WaitlistStatus.WAITING:
            raise InvalidStatusTransitionError(
                "Waitlist entry", self.status.value, WaitlistStatus.NOTIFIED.value
            )
        self.status = WaitlistStatus.NOTIFIED
        self.notified = True
        self.notified_at = at or utc_now()
        self.updated_at = utc_now()

    def mark_converted(self, enrollment_id: UUID) -> bool:
        """
        Link the enrollment. Returns False when already converted (no-op).

        A confirmed payment wins over a lapsed token, so expired entries
        convert too.
        """
        if self.status == WaitlistStatus.CONVERTED:
            return False
        self.status = WaitlistStatus.CONVERTED
        self.enrollment_id = enrollment_id
        self.updated_at = utc_now()
        return True

    def mark_expired(self) -> None:
        if self.status.is_terminal:
            return
        self.status = WaitlistStatus.EXPIRED
        self.updated_at = utc_now()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary. The claim token is never included."""
        return {
            "id": str(self.id),
            "workshop_id": self.workshop_id,
            "email": self.email,
            "name": self.name,
            "position": self.position,
            "status": self.status.value,
            "notified": self.notified,
            "notified_at": self.notified_at.isoformat() if self.notified_at else None,
            "enrollment_id": str(self.enrollment_id) if self.enrollment_id else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class WaitlistClaim:
    """A validated claim bound to one visitor's cart key for a short window."""

    owner_key: str
    entry_id: UUID
    workshop_id: int
    customer_email: str
    expires_at: datetime
    token_expires_at: datetime | None = None
    customer_name: str = ""
    customer_phone: str = ""

    def is_active(self, now: datetime) -> bool:
        if now > self.expires_at:
            return False
        if self.token_expires_at is not None and now > self.token_expires_at:
            return False
        return True
