"""Exception handlers for the FastAPI application."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from workshop_enrollment_ms.shared.domain.exceptions import (
    AdmissionDeniedError,
    CheckoutMetadataError,
    CheckoutProviderError,
    ClaimTokenInvalidError,
    EnrollmentNotFoundError,
    EnrollmentValidationError,
    InvalidStatusTransitionError,
    RefundNotAllowedError,
    UpstreamUnavailableError,
    WaitlistEntryNotFoundError,
    WebhookVerificationError,
    WorkshopNotFoundError,
)

logger = logging.getLogger(__name__)

UPSTREAM_FAILURE_MESSAGE = "The payment service is temporarily unavailable. Please try again later."
INTERNAL_ERROR_MESSAGE = "Internal server error"


def _envelope(
    status_code: int, message: str, errors: list[str], data: dict | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "data": data, "errors": errors},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers."""

    @app.exception_handler(WorkshopNotFoundError)
    async def workshop_not_found_handler(
        request: Request, exc: WorkshopNotFoundError
    ) -> JSONResponse:
        return _envelope(404, str(exc), ["Workshop not found"])

    @app.exception_handler(EnrollmentNotFoundError)
    async def enrollment_not_found_handler(
        request: Request, exc: EnrollmentNotFoundError
    ) -> JSONResponse:
        return _envelope(404, str(exc), ["Enrollment not found"])

    @app.exception_handler(WaitlistEntryNotFoundError)
    async def waitlist_entry_not_found_handler(
        request: Request, exc: WaitlistEntryNotFoundError
    ) -> JSONResponse:
        return _envelope(404, str(exc), ["Waitlist entry not found"])

    @app.exception_handler(EnrollmentValidationError)
    async def validation_handler(
        request: Request, exc: EnrollmentValidationError
    ) -> JSONResponse:
        return _envelope(400, str(exc), [str(exc)])

    @app.exception_handler(CheckoutMetadataError)
    async def metadata_handler(request: Request, exc: CheckoutMetadataError) -> JSONResponse:
        return _envelope(400, str(exc), ["Invalid checkout metadata"])

    @app.exception_handler(WebhookVerificationError)
    async def webhook_verification_handler(
        request: Request, exc: WebhookVerificationError
    ) -> JSONResponse:
        return _envelope(400, str(exc), ["Webhook verification failed"])

    @app.exception_handler(AdmissionDeniedError)
    async def admission_denied_handler(
        request: Request, exc: AdmissionDeniedError
    ) -> JSONResponse:
        return _envelope(
            409,
            exc.reason,
            [exc.reason],
            data={"workshop_id": exc.workshop_id, "waitlist": exc.waitlist},
        )

    @app.exception_handler(InvalidStatusTransitionError)
    async def transition_handler(
        request: Request, exc: InvalidStatusTransitionError
    ) -> JSONResponse:
        return _envelope(409, str(exc), ["Invalid status transition"])

    @app.exception_handler(RefundNotAllowedError)
    async def refund_not_allowed_handler(
        request: Request, exc: RefundNotAllowedError
    ) -> JSONResponse:
        return _envelope(409, str(exc), ["Refund not allowed"])

    @app.exception_handler(ClaimTokenInvalidError)
    async def claim_invalid_handler(
        request: Request, exc: ClaimTokenInvalidError
    ) -> JSONResponse:
        return _envelope(410, str(exc), ["Invalid waitlist link"])

    @app.exception_handler(CheckoutProviderError)
    async def provider_handler(request: Request, exc: CheckoutProviderError) -> JSONResponse:
        logger.error(f"Payment provider error on {request.url.path}: {exc}")
        return _envelope(502, UPSTREAM_FAILURE_MESSAGE, ["Payment provider error"])

    @app.exception_handler(UpstreamUnavailableError)
    async def upstream_handler(
        request: Request, exc: UpstreamUnavailableError
    ) -> JSONResponse:
        logger.error(f"Upstream unavailable on {request.url.path}: {exc}")
        return _envelope(502, UPSTREAM_FAILURE_MESSAGE, ["Upstream service unavailable"])

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}")
        return _envelope(500, INTERNAL_ERROR_MESSAGE, [INTERNAL_ERROR_MESSAGE])
