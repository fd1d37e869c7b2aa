"""Cart DTOs for API requests/responses."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from workshop_enrollment_ms.features.cart.application.use_cases import (
    CartValidation,
)
from workshop_enrollment_ms.features.cart.domain.entities import Cart, format_money


class AddCartItemRequest(BaseModel):
    """Request to add a workshop to the cart."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"workshopId": 5, "pricingOption": "adult"}},
    )

    workshop_id: int = Field(..., gt=0, alias="workshopId")
    pricing_option: str = Field("", alias="pricingOption", max_length=100)


class UpdateCartItemRequest(BaseModel):
    """Request to change the pricing option of a cart line."""

    model_config = ConfigDict(populate_by_name=True)

    pricing_option: str = Field(..., alias="pricingOption", max_length=100)


class CartCheckoutRequest(BaseModel):
    """Request to check out the whole cart."""

    model_config = ConfigDict(populate_by_name=True)

    customer_email: EmailStr | None = Field(None, alias="customerEmail")


class CartItemResponse(BaseModel):
    workshop_id: int
    workshop_title: str
    pricing_option: str
    price: str
    price_formatted: str


class CartResponse(BaseModel):
    """Cart contents with totals."""

    items: list[CartItemResponse]
    count: int
    total: str
    total_formatted: str
    waitlist: bool = False

    @classmethod
    def from_domain(cls, cart: Cart, waitlist: bool = False) -> "CartResponse":
        return cls(
            items=[
                CartItemResponse(
                    workshop_id=item.workshop_id,
                    workshop_title=item.workshop_title,
                    pricing_option=item.pricing_option,
                    price=str(item.price),
                    price_formatted=format_money(item.price),
                )
                for item in cart.items
            ],
            count=cart.count,
            total=str(cart.total),
            total_formatted=format_money(cart.total),
            waitlist=waitlist,
        )


class CartValidationResponse(BaseModel):
    valid: bool
    cart: CartResponse
    errors: list[dict]
    price_changes: list[dict]

    @classmethod
    def from_domain(cls, validation: CartValidation) -> "CartValidationResponse":
        return cls(
            valid=validation.valid and not validation.price_changes,
            cart=CartResponse.from_domain(validation.cart),
            errors=[problem.to_dict() for problem in validation.errors],
            price_changes=[change.to_dict() for change in validation.price_changes],
        )


class CartCheckoutResponse(BaseModel):
    session_id: str | None = None
    redirect_url: str | None = None
    validation: CartValidationResponse | None = None
