"""Webhook use cases."""

from workshop_enrollment_ms.features.webhooks.application.use_cases.reconciliation_engine import (
    WebhookReconciliationEngine,
    WebhookResult,
)

__all__ = ["WebhookReconciliationEngine", "WebhookResult"]
