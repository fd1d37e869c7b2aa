"""Outbound notification port for waitlist messages."""

from abc import ABC, abstractmethod

from workshop_enrollment_ms.features.catalog.domain.entities import Workshop
from workshop_enrollment_ms.features.waitlist.domain.entities import WaitlistEntry


class WaitlistNotifierPort(ABC):
    """Email delivery is owned by the notification subsystem."""

    @abstractmethod
    async def send_waitlist_confirmation(
        self, entry: WaitlistEntry, workshop: Workshop
    ) -> bool:
        pass

    @abstractmethod
    async def send_spot_available(
        self,
        entry: WaitlistEntry,
        workshop: Workshop,
        claim_url: str,
    ) -> bool:
        """Return True only when the message was accepted for delivery."""
        pass
