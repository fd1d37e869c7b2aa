"""Workshop catalog read model.

Workshops are owned by the content subsystem; this service only reads
capacity, waitlist, pricing and checkout settings from them.
"""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class PricingOption:
    """One purchasable price point of a workshop."""

    id: str
    label: str
    price: Decimal
    is_default: bool = False


@dataclass
class Workshop:
    """Workshop as seen by admission control and checkout."""

    id: int
    title: str
    url: str
    published: bool = True
    checkout_enabled: bool = True
    capacity: int = 0
    waitlist_enabled: bool = False
    base_price: Decimal = Decimal("0")
    pricing_options: list[PricingOption] = field(default_factory=list)

    @property
    def unlimited(self) -> bool:
        return self.capacity <= 0

    def find_option(self, option_id: str | None) -> PricingOption | None:
        """Exact match, then the default option, then the first option."""
        if not self.pricing_options:
            return None
        if option_id:
            for option in self.pricing_options:
                if option.id == option_id:
                    return option
        for option in self.pricing_options:
            if option.is_default:
                return option
        return self.pricing_options[0]

    def effective_price(self, option_id: str | None = None) -> Decimal:
        option = self.find_option(option_id)
        return option.price if option else self.base_price

    def pricing_label(self, option_id: str | None = None) -> str:
        option = self.find_option(option_id)
        return option.label if option else ""
