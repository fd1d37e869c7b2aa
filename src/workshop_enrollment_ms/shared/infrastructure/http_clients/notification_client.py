"""HTTP client for the notification subsystem (emails, admin cache busting)."""

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from workshop_enrollment_ms.features.catalog.domain.entities import Workshop
from workshop_enrollment_ms.features.enrollments.application.ports import (
    EnrollmentEventPublisherPort,
)
from workshop_enrollment_ms.features.enrollments.domain.events import EnrollmentEvent
from workshop_enrollment_ms.features.waitlist.application.ports import (
    WaitlistNotifierPort,
)
from workshop_enrollment_ms.features.waitlist.domain.entities import WaitlistEntry
from workshop_enrollment_ms.shared.core.settings import get_settings
from workshop_enrollment_ms.shared.domain.exceptions import UpstreamUnavailableError
from workshop_enrollment_ms.shared.infrastructure.http_clients.retry import (
    RetryingHttpClient,
    RetryPolicy,
)

logger = logging.getLogger(__name__)


class NotificationClient(WaitlistNotifierPort, EnrollmentEventPublisherPort):
    """
    Posts messages to the notification subsystem's webhook.

    Delivery problems are reported as ``False``; callers decide what a
    failed send means for their state.
    """

    def __init__(
        self,
        webhook_url: str,
        http: RetryingHttpClient,
        source: str = "workshop_enrollment_ms",
    ) -> None:
        self._webhook_url = webhook_url
        self._http = http
        self._source = source

    async def _send(self, event: str, data: dict[str, Any]) -> bool:
        if not self._webhook_url:
            logger.warning(f"Notification webhook not configured, dropping {event}")
            return False

        payload = {
            "event": event,
            "timestamp": datetime.now(UTC).isoformat(),
            "source": self._source,
            "data": data,
        }

        try:
            await self._http.post(
                self._webhook_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"Notification webhook returned {e.response.status_code} for {event}"
            )
            return False
        except httpx.HTTPError as e:
            logger.error(f"Notification webhook request failed for {event}: {e}")
            return False
        except UpstreamUnavailableError as e:
            logger.error(f"Notification webhook unavailable for {event}: {e.last_error}")
            return False

        logger.info(f"Notification sent: {event}")
        return True

    async def send_waitlist_confirmation(
        self, entry: WaitlistEntry, workshop: Workshop
    ) -> bool:
        return await self._send(
            "waitlist.joined",
            {
                "workshop_id": workshop.id,
                "workshop_title": workshop.title,
                "entry": entry.to_dict(),
            },
        )

    async def send_spot_available(
        self,
        entry: WaitlistEntry,
        workshop: Workshop,
        claim_url: str,
    ) -> bool:
        return await self._send(
            "waitlist.spot_available",
            {
                "workshop_id": workshop.id,
                "workshop_title": workshop.title,
                "entry": entry.to_dict(),
                "claim_url": claim_url,
                "claim_expires_at": (
                    entry.claim_token_expires_at.isoformat()
                    if entry.claim_token_expires_at
                    else None
                ),
            },
        )

    async def publish(self, event: EnrollmentEvent) -> bool:
        return await self._send(event.type.value, event.to_dict())


def build_notification_client() -> NotificationClient:
    """Construct the client from settings."""
    settings = get_settings()
    http = RetryingHttpClient(
        service="notifications",
        policy=RetryPolicy.from_settings(settings),
        timeout=settings.notification_timeout_seconds,
    )
    return NotificationClient(settings.notification_webhook_url, http)
