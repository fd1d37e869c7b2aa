"""Webhook domain module."""

from workshop_enrollment_ms.features.webhooks.domain.signature import (
    WebhookSignatureVerifier,
    compute_signature,
    sign_payload,
)

__all__ = ["WebhookSignatureVerifier", "compute_signature", "sign_payload"]
