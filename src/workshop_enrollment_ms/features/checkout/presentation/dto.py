"""Checkout DTOs for API requests/responses."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SingleCheckoutCreateRequest(BaseModel):
    """Request to buy one admission directly, without the cart."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "workshopId": 5,
                "pricingOption": "adult",
                "customerEmail": "ana@workshops.org",
            }
        },
    )

    workshop_id: int = Field(..., gt=0, alias="workshopId")
    pricing_option: str = Field("", alias="pricingOption", max_length=100)
    customer_email: EmailStr | None = Field(None, alias="customerEmail")


class CheckoutSessionResponse(BaseModel):
    session_id: str
    redirect_url: str
