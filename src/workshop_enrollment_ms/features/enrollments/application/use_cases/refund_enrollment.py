"""Enrollment use case - Refund a completed enrollment."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable
from uuid import UUID

from workshop_enrollment_ms.features.checkout.application.ports import (
    CheckoutGatewayPort,
)
from workshop_enrollment_ms.features.enrollments.application.ports import (
    EnrollmentRepositoryPort,
)
from workshop_enrollment_ms.features.enrollments.application.post_processing import (
    EnrollmentEventPipeline,
)
from workshop_enrollment_ms.features.enrollments.domain.entities import Enrollment
from workshop_enrollment_ms.features.enrollments.domain.enums import EnrollmentStatus
from workshop_enrollment_ms.features.enrollments.domain.events import EnrollmentEvent
from workshop_enrollment_ms.shared.domain.exceptions import (
    EnrollmentNotFoundError,
    RefundNotAllowedError,
)

logger = logging.getLogger(__name__)


@dataclass
class RefundEnrollmentRequest:
    """Request to refund an enrollment in full."""

    enrollment_id: UUID
    reason: str | None = None


class RefundEnrollmentUseCase:
    """
    Use case for refunding an enrollment from the admin side.

    The processor refund is requested first; the enrollment only moves to
    refunded once the processor accepted it. The later ``charge.refunded``
    webhook then finds the enrollment already refunded and only adds a note.
    """

    def __init__(
        self,
        enrollments: EnrollmentRepositoryPort,
        gateway: CheckoutGatewayPort,
        pipeline: EnrollmentEventPipeline,
        commit: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._enrollments = enrollments
        self._gateway = gateway
        self._pipeline = pipeline
        self._commit = commit

    async def execute(self, request: RefundEnrollmentRequest) -> Enrollment:
        enrollment = await self._enrollments.get_by_id(request.enrollment_id)
        if enrollment is None:
            raise EnrollmentNotFoundError(str(request.enrollment_id))

        if enrollment.status != EnrollmentStatus.COMPLETED:
            raise RefundNotAllowedError(
                str(enrollment.id), f"status is {enrollment.status.value}"
            )
        if not enrollment.payment_reference:
            raise RefundNotAllowedError(str(enrollment.id), "no payment reference on file")
        if enrollment.refund_id:
            raise RefundNotAllowedError(str(enrollment.id), "a refund was already issued")

        result = await self._gateway.create_refund(
            enrollment.payment_reference,
            amount=enrollment.amount,
            reason=request.reason,
        )

        old_status = enrollment.status.value
        enrollment.mark_refunded(refund_id=result.refund_id, reason=request.reason)
        enrollment.append_note(
            f"Refund issued by admin. Refund ID: {result.refund_id}"
            + (f". Reason: {request.reason}" if request.reason else "")
        )
        await self._enrollments.save(enrollment)
        if self._commit is not None:
            await self._commit()

        logger.info(
            f"Enrollment refunded ({result.status})",
            extra={"enrollment_id": enrollment.id, "workshop_id": enrollment.workshop_id},
        )

        await self._pipeline.run(
            [
                EnrollmentEvent.refunded(
                    enrollment, refund_id=result.refund_id, amount=str(enrollment.amount)
                ),
                EnrollmentEvent.status_updated(
                    enrollment, old_status, enrollment.status.value
                ),
            ]
        )
        return enrollment
