"""HTTP clients for external services."""

from workshop_enrollment_ms.shared.infrastructure.http_clients.notification_client import (
    NotificationClient,
    build_notification_client,
)
from workshop_enrollment_ms.shared.infrastructure.http_clients.retry import (
    RetryingHttpClient,
    RetryPolicy,
    is_retryable_error,
    is_retryable_status,
)

__all__ = [
    "NotificationClient",
    "build_notification_client",
    "RetryingHttpClient",
    "RetryPolicy",
    "is_retryable_error",
    "is_retryable_status",
]
