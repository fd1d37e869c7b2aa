"""
Checkout session metadata codec.

The processor hands our metadata back verbatim in the completion webhook,
which is the only data we get to build enrollments from. Everything
written here is therefore read back through ``decode_metadata`` and
validated, never trusted.

Wire format (flat string map, as the processor requires):

single item   kind=single_item, workshop_id, pricing_option
cart          kind=cart, is_cart="true", workshop_ids="5,9",
              cart_data='[{"id":5,"pricing_option":"adult","price":"75"}]'
both          site_url, optional waitlist_entry_id
"""

import json
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Mapping
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from workshop_enrollment_ms.shared.domain.exceptions import CheckoutMetadataError

# Processor limit for a single metadata value
MAX_VALUE_LENGTH = 500


class CheckoutKind(str, Enum):
    SINGLE_ITEM = "single_item"
    CART = "cart"


class CartLine(BaseModel):
    """One purchased line, as carried in ``cart_data``."""

    model_config = ConfigDict(populate_by_name=True)

    workshop_id: int | None = Field(default=None, alias="id")
    pricing_option: str = ""
    price: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("workshop_id", mode="before")
    @classmethod
    def blank_id_is_missing(cls, v: Any) -> Any:
        # Unresolvable ids are skipped by the reconciler, not rejected here
        if v in ("", 0, "0"):
            return None
        return v

    @field_validator("pricing_option", mode="before")
    @classmethod
    def none_option_is_blank(cls, v: Any) -> Any:
        return "" if v is None else v


class SingleItemMetadata(BaseModel):
    kind: Literal[CheckoutKind.SINGLE_ITEM] = CheckoutKind.SINGLE_ITEM
    workshop_id: int = Field(gt=0)
    pricing_option: str = ""
    site_url: str = ""
    waitlist_entry_id: UUID | None = None


class CartMetadata(BaseModel):
    kind: Literal[CheckoutKind.CART] = CheckoutKind.CART
    items: list[CartLine] = Field(min_length=1)
    site_url: str = ""
    waitlist_entry_id: UUID | None = None

    @property
    def workshop_ids(self) -> list[int]:
        return [line.workshop_id for line in self.items if line.workshop_id is not None]


CheckoutMetadata = SingleItemMetadata | CartMetadata


def _price_text(price: Decimal) -> str:
    return format(price.normalize(), "f") if price == price.to_integral() else format(price, "f")


def encode_metadata(metadata: CheckoutMetadata) -> dict[str, str]:
    """Flatten to the processor's string map."""
    encoded: dict[str, str] = {"kind": metadata.kind.value}

    if isinstance(metadata, SingleItemMetadata):
        encoded["workshop_id"] = str(metadata.workshop_id)
        encoded["pricing_option"] = metadata.pricing_option
    else:
        encoded["is_cart"] = "true"
        encoded["workshop_ids"] = ",".join(str(i) for i in metadata.workshop_ids)
        encoded["cart_data"] = json.dumps(
            [
                {
                    "id": line.workshop_id,
                    "pricing_option": line.pricing_option,
                    "price": _price_text(line.price),
                }
                for line in metadata.items
            ],
            separators=(",", ":"),
        )

    if metadata.site_url:
        encoded["site_url"] = metadata.site_url
    if metadata.waitlist_entry_id is not None:
        encoded["waitlist_entry_id"] = str(metadata.waitlist_entry_id)

    for key, value in encoded.items():
        if len(value) > MAX_VALUE_LENGTH:
            raise CheckoutMetadataError(
                f"Metadata field '{key}' exceeds {MAX_VALUE_LENGTH} characters"
            )
    return encoded


def decode_metadata(raw: Mapping[str, Any] | None) -> CheckoutMetadata:
    """Rebuild and validate metadata from a webhook payload."""
    raw = dict(raw or {})
    entry_id = raw.get("waitlist_entry_id") or None

    try:
        if raw.get("kind") == CheckoutKind.CART.value or raw.get("is_cart") == "true":
            cart_data = raw.get("cart_data")
            if not cart_data:
                raise CheckoutMetadataError("Cart checkout without cart_data")
            items = json.loads(cart_data)
            return CartMetadata(
                items=items,
                site_url=raw.get("site_url", ""),
                waitlist_entry_id=entry_id,
            )

        if not raw.get("workshop_id"):
            raise CheckoutMetadataError("Checkout metadata missing workshop_id")
        return SingleItemMetadata(
            workshop_id=raw["workshop_id"],
            pricing_option=raw.get("pricing_option") or "",
            site_url=raw.get("site_url", ""),
            waitlist_entry_id=entry_id,
        )
    except json.JSONDecodeError as e:
        raise CheckoutMetadataError(f"cart_data is not valid JSON: {e.msg}") from e
    except ValidationError as e:
        raise CheckoutMetadataError(
            f"Invalid checkout metadata: {e.error_count()} validation error(s)"
        ) from e
