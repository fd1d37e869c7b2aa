"""Cart storage backed by the carts table."""

from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_enrollment_ms.features.cart.application.ports import CartStoragePort
from workshop_enrollment_ms.features.cart.domain.entities import Cart
from workshop_enrollment_ms.shared.domain.clock import Clock, ensure_aware, utc_now
from workshop_enrollment_ms.shared.infrastructure.database.models import CartModel


class CartRepository(CartStoragePort):
    """
    Cart rows with a rolling expiry.

    Expired rows are treated as missing and removed on read.
    """

    def __init__(self, session: AsyncSession, clock: Clock = utc_now) -> None:
        self._session = session
        self._clock = clock

    async def load(self, key: str) -> Cart | None:
        model = await self._session.get(CartModel, key)
        if model is None:
            return None
        if ensure_aware(model.expires_at) <= self._clock():
            await self._session.delete(model)
            await self._session.flush()
            return None
        return model.to_domain()

    async def save(self, cart: Cart, ttl: timedelta) -> None:
        model = await self._session.get(CartModel, cart.key)
        if model is None:
            model = CartModel(key=cart.key)
            self._session.add(model)
        model.apply(cart, expires_at=self._clock() + ttl)
        await self._session.flush()

    async def delete(self, key: str) -> None:
        await self._session.execute(delete(CartModel).where(CartModel.key == key))

    async def delete_by_checkout_session(self, session_id: str) -> bool:
        result = await self._session.execute(
            select(CartModel.key).where(CartModel.checkout_session_id == session_id)
        )
        keys = list(result.scalars().all())
        if not keys:
            return False
        await self._session.execute(delete(CartModel).where(CartModel.key.in_(keys)))
        return True
