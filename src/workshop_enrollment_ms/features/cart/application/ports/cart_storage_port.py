"""Cart storage port."""

from abc import ABC, abstractmethod
from datetime import timedelta

from workshop_enrollment_ms.features.cart.domain.entities import Cart


class CartStoragePort(ABC):
    """
    Key-value storage for carts with a rolling TTL.

    Every ``save`` pushes the expiry out by ``ttl``; expired carts read as
    missing.
    """

    @abstractmethod
    async def load(self, key: str) -> Cart | None:
        pass

    @abstractmethod
    async def save(self, cart: Cart, ttl: timedelta) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def delete_by_checkout_session(self, session_id: str) -> bool:
        """Drop the cart that was checked out as ``session_id``."""
        pass
