"""Waitlist API router."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import RedirectResponse

from workshop_enrollment_ms.features.waitlist.application.use_cases import (
    ClaimRedemptionService,
    WaitlistQueue,
)
from workshop_enrollment_ms.features.waitlist.presentation.dto import (
    NotifyNextResponse,
    WaitlistJoinRequest,
    WaitlistJoinResponse,
    WaitlistPositionResponse,
)
from workshop_enrollment_ms.shared.presentation.api_response import APIResponse
from workshop_enrollment_ms.shared.presentation.dependencies import (
    AppSettings,
    Visitor,
    get_claim_redemption,
    get_visitor,
    get_waitlist_queue,
    set_session_cookie,
)

router = APIRouter()

Queue = Annotated[WaitlistQueue, Depends(get_waitlist_queue)]


@router.post(
    "",
    response_model=APIResponse[WaitlistJoinResponse],
    summary="Join a workshop's waitlist",
    description="""
    Adds the person to the end of the queue.

    Joining again with the same email while already waiting returns the
    existing entry (status 200 instead of 201).
    """,
)
async def join_waitlist(
    request: WaitlistJoinRequest,
    response: Response,
    queue: Queue,
) -> APIResponse[WaitlistJoinResponse]:
    result = await queue.join(
        request.workshop_id, request.email, name=request.name, phone=request.phone
    )
    response.status_code = 201 if result.created else 200
    return APIResponse.ok(
        data=WaitlistJoinResponse(
            entry_id=result.entry_id,
            position=result.position,
            status=result.entry.status,
            created=result.created,
        ),
        message=(
            "You have been added to the waitlist."
            if result.created
            else "You are already on the waitlist for this workshop."
        ),
    )


@router.get(
    "/position",
    response_model=APIResponse[WaitlistPositionResponse],
    summary="Look up a waitlist position",
)
async def get_position(
    response: Response,
    queue: Queue,
    workshop_id: Annotated[int, Query(gt=0)],
    email: Annotated[str, Query(min_length=3)],
) -> APIResponse[WaitlistPositionResponse]:
    position = await queue.position_of(workshop_id, email)
    if position is None:
        response.status_code = 404
        return APIResponse.error(
            "No active waitlist entry for this email", errors=["Waitlist entry not found"]
        )

    return APIResponse.ok(
        data=WaitlistPositionResponse(
            entry_id=position.entry_id,
            position=position.position,
            status=position.status,
            people_ahead=position.people_ahead,
        )
    )


@router.get(
    "/claim",
    status_code=303,
    summary="Redeem a waitlist claim link",
    description="""
    Target of the link sent in the spot-available notification.

    Binds the claim to the visitor's session for a short window and
    redirects to the clean workshop page. Invalid or expired links get 410.
    """,
    response_class=RedirectResponse,
)
async def redeem_claim(
    visitor: Annotated[Visitor, Depends(get_visitor)],
    redemption: Annotated[ClaimRedemptionService, Depends(get_claim_redemption)],
    settings: AppSettings,
    waitlist_token: Annotated[str, Query(min_length=16, max_length=128)],
    entry_id: str | None = None,
) -> RedirectResponse:
    redeemed = await redemption.redeem(waitlist_token, entry_id, visitor.key)
    redirect = RedirectResponse(redeemed.redirect_url, status_code=303)
    set_session_cookie(redirect, visitor, settings)
    return redirect


@router.post(
    "/workshops/{workshop_id}/notify-next",
    response_model=APIResponse[NotifyNextResponse],
    summary="Offer the next freed slot (admin)",
)
async def notify_next(workshop_id: int, queue: Queue) -> APIResponse[NotifyNextResponse]:
    notified = await queue.notify_next_in_line(workshop_id)
    depth = await queue.queue_depth(workshop_id)
    return APIResponse.ok(
        data=NotifyNextResponse(notified=notified, queue_depth=depth),
        message="Next person notified" if notified else "Nobody was notified",
    )
