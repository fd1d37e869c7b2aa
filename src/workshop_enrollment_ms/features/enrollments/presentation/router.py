"""Enrollment API router."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from workshop_enrollment_ms.features.enrollments.application.ports import (
    EnrollmentRepositoryPort,
)
from workshop_enrollment_ms.features.enrollments.application.use_cases.refund_enrollment import (
    RefundEnrollmentRequest,
    RefundEnrollmentUseCase,
)
from workshop_enrollment_ms.features.enrollments.domain.enums import EnrollmentStatus
from workshop_enrollment_ms.features.enrollments.presentation.dto import (
    EnrollmentRefundRequest,
    EnrollmentResponse,
)
from workshop_enrollment_ms.shared.domain.exceptions import EnrollmentNotFoundError
from workshop_enrollment_ms.shared.presentation.api_response import APIResponse
from workshop_enrollment_ms.shared.presentation.dependencies import (
    get_enrollment_repository,
    get_refund_use_case,
)

router = APIRouter()

Enrollments = Annotated[EnrollmentRepositoryPort, Depends(get_enrollment_repository)]


@router.get(
    "/{enrollment_id}",
    response_model=APIResponse[EnrollmentResponse],
    summary="Get enrollment by ID",
)
async def get_enrollment(
    enrollment_id: UUID,
    repo: Enrollments,
) -> APIResponse[EnrollmentResponse]:
    enrollment = await repo.get_by_id(enrollment_id)
    if not enrollment:
        raise EnrollmentNotFoundError(str(enrollment_id))
    return APIResponse.ok(data=EnrollmentResponse.from_domain(enrollment))


@router.get(
    "",
    response_model=APIResponse[list[EnrollmentResponse]],
    summary="List enrollments for a workshop",
)
async def list_enrollments(
    repo: Enrollments,
    workshop_id: Annotated[int, Query(gt=0)],
    status: EnrollmentStatus | None = None,
) -> APIResponse[list[EnrollmentResponse]]:
    enrollments = await repo.list_by_workshop(workshop_id, status)
    return APIResponse.ok(data=[EnrollmentResponse.from_domain(e) for e in enrollments])


@router.post(
    "/{enrollment_id}/refund",
    response_model=APIResponse[EnrollmentResponse],
    summary="Refund an enrollment (admin)",
    description="""
    Refunds the full amount through the payment provider.

    - 409 when the enrollment is not completed or was already refunded
    - 502 when the provider cannot be reached after retries
    - A freed slot is offered to the next person on the waitlist
    """,
)
async def refund_enrollment(
    enrollment_id: UUID,
    use_case: Annotated[RefundEnrollmentUseCase, Depends(get_refund_use_case)],
    request: EnrollmentRefundRequest | None = None,
) -> APIResponse[EnrollmentResponse]:
    enrollment = await use_case.execute(
        RefundEnrollmentRequest(
            enrollment_id=enrollment_id,
            reason=request.reason if request else None,
        )
    )
    return APIResponse.ok(
        data=EnrollmentResponse.from_domain(enrollment),
        message="Enrollment refunded",
    )
