"""Webhook API router - inbound payment processor events."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from workshop_enrollment_ms.features.webhooks.application.use_cases import (
    WebhookReconciliationEngine,
)
from workshop_enrollment_ms.shared.presentation.dependencies import (
    get_reconciliation_engine,
)

router = APIRouter()


@router.post(
    "/stripe",
    summary="Stripe Webhook",
    description="""
    Endpoint for receiving webhooks from Stripe (or the mock provider).

    - Validates the `Stripe-Signature` header (`t=<timestamp>,v1=<hmac>`)
    - Replayed event ids are acknowledged without reprocessing
    - 400 on signature or payload errors, 500 on internal failure so the
      processor redelivers later

    **Important**: Configure this URL in Stripe Dashboard.
    """,
)
async def stripe_webhook(
    request: Request,
    engine: Annotated[WebhookReconciliationEngine, Depends(get_reconciliation_engine)],
    stripe_signature: Annotated[str | None, Header(alias="Stripe-Signature")] = None,
) -> JSONResponse:
    """Handle Stripe webhooks."""
    payload = await request.body()
    result = await engine.process(payload, stripe_signature)
    return JSONResponse(status_code=result.status_code, content=result.to_dict())
