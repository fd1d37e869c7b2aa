"""Workshop availability router."""

from typing import Annotated

from fastapi import APIRouter, Depends

from workshop_enrollment_ms.features.catalog.application.ports import (
    WorkshopRepositoryPort,
)
from workshop_enrollment_ms.features.catalog.presentation.dto import AvailabilityResponse
from workshop_enrollment_ms.features.enrollments.application.use_cases.capacity_model import (
    CapacityModel,
)
from workshop_enrollment_ms.features.waitlist.application.use_cases import WaitlistQueue
from workshop_enrollment_ms.shared.domain.exceptions import WorkshopNotFoundError
from workshop_enrollment_ms.shared.presentation.api_response import APIResponse
from workshop_enrollment_ms.shared.presentation.dependencies import (
    get_capacity_model,
    get_waitlist_queue,
    get_workshop_repository,
)

router = APIRouter()


@router.get(
    "/{workshop_id}/availability",
    response_model=APIResponse[AvailabilityResponse],
    summary="Capacity decision for a workshop",
    description="`remaining` is null for workshops without a capacity limit.",
)
async def get_availability(
    workshop_id: int,
    workshops: Annotated[WorkshopRepositoryPort, Depends(get_workshop_repository)],
    capacity: Annotated[CapacityModel, Depends(get_capacity_model)],
    queue: Annotated[WaitlistQueue, Depends(get_waitlist_queue)],
) -> APIResponse[AvailabilityResponse]:
    workshop = await workshops.get_published(workshop_id)
    if workshop is None:
        raise WorkshopNotFoundError(workshop_id)

    decision = await capacity.can_admit(workshop)
    depth = await queue.queue_depth(workshop.id) if workshop.waitlist_enabled else 0
    return APIResponse.ok(
        data=AvailabilityResponse(
            workshop_id=workshop.id,
            allowed=decision.allowed,
            waitlist=decision.waitlist,
            reason=decision.reason,
            remaining=decision.remaining,
            capacity=workshop.capacity,
            waitlist_enabled=workshop.waitlist_enabled,
            queue_depth=depth,
        )
    )
