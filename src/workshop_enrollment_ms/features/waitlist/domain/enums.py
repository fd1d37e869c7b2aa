"""Waitlist domain enums."""

from enum import Enum


class WaitlistStatus(str, Enum):
    """Waitlist entry status."""

    WAITING = "waiting"
    NOTIFIED = "notified"
    CONVERTED = "converted"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (WaitlistStatus.CONVERTED, WaitlistStatus.EXPIRED)


ACTIVE_STATUSES = (WaitlistStatus.WAITING, WaitlistStatus.NOTIFIED)
