"""Storage port for claims bound to a visitor session."""

from abc import ABC, abstractmethod

from workshop_enrollment_ms.features.waitlist.domain.entities import WaitlistClaim


class ClaimStorePort(ABC):
    """Keeps at most one claim per cart key."""

    @abstractmethod
    async def bind(self, claim: WaitlistClaim) -> None:
        pass

    @abstractmethod
    async def get(self, owner_key: str) -> WaitlistClaim | None:
        pass

    @abstractmethod
    async def clear(self, owner_key: str) -> None:
        pass
