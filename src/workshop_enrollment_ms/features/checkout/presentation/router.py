"""Checkout API router - single admission checkout."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from workshop_enrollment_ms.features.checkout.application.use_cases import (
    SingleCheckoutRequest,
    StartSingleCheckoutUseCase,
)
from workshop_enrollment_ms.features.checkout.presentation.dto import (
    CheckoutSessionResponse,
    SingleCheckoutCreateRequest,
)
from workshop_enrollment_ms.shared.presentation.api_response import APIResponse
from workshop_enrollment_ms.shared.presentation.dependencies import (
    AppSettings,
    Visitor,
    get_single_checkout,
    get_visitor,
    set_session_cookie,
)

router = APIRouter()


@router.post(
    "",
    response_model=APIResponse[CheckoutSessionResponse],
    status_code=201,
    summary="Start checkout for one workshop",
    description="""
    Opens a processor checkout session for a single admission.

    - 404 when the workshop is unknown or unpublished
    - 409 when the workshop is sold out (`data.waitlist` tells whether the
      waitlist is open)
    - An active waitlist claim for the workshop bypasses capacity
    """,
)
async def start_checkout(
    request: SingleCheckoutCreateRequest,
    response: Response,
    visitor: Annotated[Visitor, Depends(get_visitor)],
    use_case: Annotated[StartSingleCheckoutUseCase, Depends(get_single_checkout)],
    settings: AppSettings,
) -> APIResponse[CheckoutSessionResponse]:
    set_session_cookie(response, visitor, settings)
    outcome = await use_case.execute(
        SingleCheckoutRequest(
            workshop_id=request.workshop_id,
            pricing_option=request.pricing_option,
            customer_email=request.customer_email,
            owner_key=visitor.key,
        )
    )

    if not outcome.success:
        response.status_code = 502
        return APIResponse.error(outcome.error or "Checkout failed", errors=["Checkout failed"])

    return APIResponse.ok(
        data=CheckoutSessionResponse(
            session_id=outcome.session_id,
            redirect_url=outcome.redirect_url,
        ),
        message="Checkout session created",
    )
