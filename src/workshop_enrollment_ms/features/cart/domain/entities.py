"""Cart domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from workshop_enrollment_ms.shared.domain.clock import utc_now


def format_money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def cart_key_for(session_id: str | None = None, user_id: str | None = None) -> str:
    """Account carts win over session carts once the visitor is known."""
    if user_id:
        return f"user:{user_id}"
    if session_id:
        return f"session:{session_id}"
    raise ValueError("A cart needs a session id or a user id")


@dataclass
class CartItem:
    """A workshop the visitor intends to buy, with a price snapshot."""

    workshop_id: int
    workshop_title: str
    pricing_option: str
    price: Decimal
    added_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "workshop_id": self.workshop_id,
            "workshop_title": self.workshop_title,
            "pricing_option": self.pricing_option,
            "price": str(self.price),
            "price_formatted": format_money(self.price),
            "added_at": self.added_at.isoformat(),
        }


@dataclass
class Cart:
    """Ordered cart lines, one per workshop."""

    key: str
    items: list[CartItem] = field(default_factory=list)
    checkout_session_id: str | None = None
    updated_at: datetime = field(default_factory=utc_now)

    def find(self, workshop_id: int) -> CartItem | None:
        for item in self.items:
            if item.workshop_id == workshop_id:
                return item
        return None

    def remove(self, workshop_id: int) -> bool:
        before = len(self.items)
        self.items = [i for i in self.items if i.workshop_id != workshop_id]
        return len(self.items) != before

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def total(self) -> Decimal:
        return sum((item.price for item in self.items), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.items

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "count": self.count,
            "total": str(self.total),
            "total_formatted": format_money(self.total),
        }
