"""Webhook application ports."""

from workshop_enrollment_ms.features.webhooks.application.ports.processed_event_store_port import (
    ProcessedEventStorePort,
)

__all__ = ["ProcessedEventStorePort"]
