"""Cart API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from workshop_enrollment_ms.features.cart.application.use_cases import (
    CartResult,
    CartStore,
    CheckoutCartUseCase,
)
from workshop_enrollment_ms.features.cart.presentation.dto import (
    AddCartItemRequest,
    CartCheckoutRequest,
    CartCheckoutResponse,
    CartResponse,
    CartValidationResponse,
    UpdateCartItemRequest,
)
from workshop_enrollment_ms.features.waitlist.application.use_cases import (
    ClaimRedemptionService,
)
from workshop_enrollment_ms.shared.presentation.api_response import APIResponse
from workshop_enrollment_ms.shared.presentation.dependencies import (
    AppSettings,
    Visitor,
    get_cart_checkout,
    get_cart_store,
    get_claim_redemption,
    get_visitor,
    set_session_cookie,
)

router = APIRouter()

CurrentVisitor = Annotated[Visitor, Depends(get_visitor)]
Carts = Annotated[CartStore, Depends(get_cart_store)]


def _respond(result: CartResult, response: Response) -> APIResponse[CartResponse]:
    data = CartResponse.from_domain(result.cart, waitlist=result.waitlist)
    if result.success:
        return APIResponse.ok(data=data, message=result.message)
    response.status_code = 400
    return APIResponse.error(result.message, errors=[result.message], data=data)


@router.get(
    "",
    response_model=APIResponse[CartResponse],
    summary="Get the visitor's cart",
)
async def get_cart(
    response: Response,
    visitor: CurrentVisitor,
    carts: Carts,
    settings: AppSettings,
) -> APIResponse[CartResponse]:
    set_session_cookie(response, visitor, settings)
    cart = await carts.get(visitor.key)
    return APIResponse.ok(data=CartResponse.from_domain(cart))


@router.post(
    "/items",
    response_model=APIResponse[CartResponse],
    summary="Add a workshop to the cart",
    description="""
    Adds one admission for a workshop.

    - Rejected when the workshop is sold out; `data.waitlist` is true when
      the visitor can join the waitlist instead
    - A visitor holding an active waitlist claim for the workshop bypasses capacity
    """,
)
async def add_item(
    request: AddCartItemRequest,
    response: Response,
    visitor: CurrentVisitor,
    carts: Carts,
    settings: AppSettings,
) -> APIResponse[CartResponse]:
    set_session_cookie(response, visitor, settings)
    result = await carts.add(visitor.key, request.workshop_id, request.pricing_option)
    return _respond(result, response)


@router.delete(
    "/items/{workshop_id}",
    response_model=APIResponse[CartResponse],
    summary="Remove a workshop from the cart",
)
async def remove_item(
    workshop_id: int,
    response: Response,
    visitor: CurrentVisitor,
    carts: Carts,
) -> APIResponse[CartResponse]:
    result = await carts.remove(visitor.key, workshop_id)
    return _respond(result, response)


@router.patch(
    "/items/{workshop_id}",
    response_model=APIResponse[CartResponse],
    summary="Change the pricing option of a cart line",
)
async def update_item(
    workshop_id: int,
    request: UpdateCartItemRequest,
    response: Response,
    visitor: CurrentVisitor,
    carts: Carts,
) -> APIResponse[CartResponse]:
    result = await carts.update_pricing_option(
        visitor.key, workshop_id, request.pricing_option
    )
    return _respond(result, response)


@router.delete(
    "",
    response_model=APIResponse[CartResponse],
    summary="Empty the cart",
)
async def clear_cart(
    response: Response,
    visitor: CurrentVisitor,
    carts: Carts,
) -> APIResponse[CartResponse]:
    result = await carts.clear(visitor.key)
    return _respond(result, response)


@router.post(
    "/validate",
    response_model=APIResponse[CartValidationResponse],
    summary="Re-check availability and prices",
)
async def validate_cart(
    visitor: CurrentVisitor,
    carts: Carts,
) -> APIResponse[CartValidationResponse]:
    validation = await carts.validate(visitor.key)
    data = CartValidationResponse.from_domain(validation)
    message = None if data.valid else "Your cart was updated. Please review it."
    return APIResponse.ok(data=data, message=message)


@router.post(
    "/checkout",
    response_model=APIResponse[CartCheckoutResponse],
    summary="Check out the whole cart",
    description="""
    Validates the cart and opens one checkout session for all its lines.

    Enrollments are created by the completion webhook, not here.
    """,
)
async def checkout_cart(
    response: Response,
    visitor: CurrentVisitor,
    use_case: Annotated[CheckoutCartUseCase, Depends(get_cart_checkout)],
    request: CartCheckoutRequest | None = None,
) -> APIResponse[CartCheckoutResponse]:
    email = request.customer_email if request else None
    result = await use_case.execute(visitor.key, customer_email=email)
    outcome = result.outcome
    validation = CartValidationResponse.from_domain(result.validation)

    if not outcome.success:
        response.status_code = 400
        return APIResponse.error(
            outcome.error or "Checkout failed",
            errors=[outcome.error or "Checkout failed"],
            data=CartCheckoutResponse(validation=validation),
        )

    return APIResponse.ok(
        data=CartCheckoutResponse(
            session_id=outcome.session_id,
            redirect_url=outcome.redirect_url,
            validation=validation,
        ),
        message="Checkout session created",
    )


@router.post(
    "/merge",
    response_model=APIResponse[CartResponse],
    summary="Merge the anonymous cart into the account cart after login",
    description="Requires the `X-User-Id` header. A waitlist claim follows the cart.",
)
async def merge_cart(
    response: Response,
    visitor: CurrentVisitor,
    carts: Carts,
    claims: Annotated[ClaimRedemptionService, Depends(get_claim_redemption)],
) -> APIResponse[CartResponse]:
    if not visitor.user_id:
        response.status_code = 400
        return APIResponse.error("Login required to merge carts", errors=["X-User-Id missing"])

    cart = await carts.merge_on_login(visitor.session_key, visitor.user_id)
    await claims.transfer(visitor.session_key, visitor.key)
    return APIResponse.ok(data=CartResponse.from_domain(cart), message="Cart merged")
