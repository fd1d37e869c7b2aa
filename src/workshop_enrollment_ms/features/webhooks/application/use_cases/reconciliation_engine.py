"""Webhook reconciliation engine - processor events to enrollment state."""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Awaitable, Callable
from uuid import UUID

from workshop_enrollment_ms.features.cart.application.ports import CartStoragePort
from workshop_enrollment_ms.features.catalog.application.ports import (
    WorkshopRepositoryPort,
)
from workshop_enrollment_ms.features.checkout.application.ports import (
    CheckoutGatewayPort,
)
from workshop_enrollment_ms.features.checkout.domain.metadata import (
    CartMetadata,
    SingleItemMetadata,
    decode_metadata,
)
from workshop_enrollment_ms.features.enrollments.application.ports import (
    EnrollmentRepositoryPort,
)
from workshop_enrollment_ms.features.enrollments.application.post_processing import (
    EnrollmentEventPipeline,
)
from workshop_enrollment_ms.features.enrollments.domain.entities import (
    CustomerDetails,
    Enrollment,
)
from workshop_enrollment_ms.features.enrollments.domain.enums import (
    EnrollmentEventType,
    EnrollmentStatus,
)
from workshop_enrollment_ms.features.enrollments.domain.events import EnrollmentEvent
from workshop_enrollment_ms.features.waitlist.application.use_cases import WaitlistQueue
from workshop_enrollment_ms.features.webhooks.application.ports import (
    ProcessedEventStorePort,
)
from workshop_enrollment_ms.shared.domain.exceptions import (
    CheckoutMetadataError,
    DuplicateEnrollmentError,
    EnrollmentValidationError,
    WaitlistEntryNotFoundError,
    WebhookVerificationError,
)

logger = logging.getLogger(__name__)


@dataclass
class WebhookResult:
    """Outcome of one delivery; ``status_code`` is what the processor sees."""

    success: bool
    message: str
    status_code: int = 200

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message}


@dataclass
class _Handled:
    result: WebhookResult
    events: list[EnrollmentEvent] = field(default_factory=list)


def _cents_to_amount(value: Any) -> Decimal:
    return (Decimal(int(value or 0)) / 100).quantize(Decimal("0.01"))


def _customer_from_session(session: dict[str, Any]) -> CustomerDetails:
    details = session.get("customer_details") or {}
    return CustomerDetails(
        email=details.get("email") or session.get("customer_email") or "",
        name=details.get("name") or "",
        phone=details.get("phone") or "",
    )


class WebhookReconciliationEngine:
    """
    Turns signed processor events into enrollment records exactly once.

    Each delivery is authenticated, deduplicated by event id, routed by
    type, and only then recorded as processed. Post-processing runs after
    the commit so side effects never fire for a rolled back delivery.
    A delivery answered with an error status is rolled back first, so no
    partial writes survive into the request's commit. Unexpected
    exceptions propagate; the caller answers 500 and the processor
    redelivers later.
    """

    def __init__(
        self,
        gateway: CheckoutGatewayPort,
        processed_events: ProcessedEventStorePort,
        enrollments: EnrollmentRepositoryPort,
        workshops: WorkshopRepositoryPort,
        queue: WaitlistQueue,
        carts: CartStoragePort,
        pipeline: EnrollmentEventPipeline,
        commit: Callable[[], Awaitable[None]] | None = None,
        rollback: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._gateway = gateway
        self._processed = processed_events
        self._enrollments = enrollments
        self._workshops = workshops
        self._queue = queue
        self._carts = carts
        self._pipeline = pipeline
        self._commit = commit
        self._rollback = rollback

    async def process(self, payload: bytes, signature: str | None) -> WebhookResult:
        try:
            self._gateway.verify_webhook(payload, signature)
        except WebhookVerificationError as e:
            logger.warning(f"Webhook rejected: {e.reason}")
            return WebhookResult(False, "Invalid signature", 400)

        try:
            event = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return WebhookResult(False, "Invalid JSON payload", 400)
        if not isinstance(event, dict):
            return WebhookResult(False, "Invalid event payload", 400)

        event_id = str(event.get("id") or "")
        event_type = str(event.get("type") or "")
        if not event_id:
            return WebhookResult(False, "Event id missing", 400)

        if await self._processed.is_processed(event_id):
            logger.info(f"Duplicate event {event_type} skipped", extra={"event_id": event_id})
            return WebhookResult(True, "Event already processed")

        logger.info(f"Processing {event_type}", extra={"event_id": event_id})
        data = (event.get("data") or {}).get("object") or {}

        try:
            handled = await self._route(event_type, data)
        except (CheckoutMetadataError, EnrollmentValidationError) as e:
            await self._discard()
            logger.error(
                f"Event {event_type} could not be reconciled: {e}",
                extra={"event_id": event_id},
            )
            return WebhookResult(False, str(e), 400)
        except DuplicateEnrollmentError as e:
            # a concurrent delivery committed this session first
            await self._discard()
            logger.info(
                "Enrollment already recorded by another delivery",
                extra={"event_id": event_id, "session_id": e.session_id},
            )
            if await self._processed.is_processed(event_id):
                return WebhookResult(True, "Event already processed")
            handled = _Handled(WebhookResult(True, "Enrollment already reconciled"))

        if not handled.result.success:
            await self._discard()
            return handled.result

        await self._processed.mark_processed(event_id, event_type)
        if self._commit is not None:
            await self._commit()

        await self._pipeline.run(handled.events)
        return handled.result

    async def _discard(self) -> None:
        if self._rollback is not None:
            await self._rollback()

    async def _route(self, event_type: str, data: dict[str, Any]) -> _Handled:
        match event_type:
            case "checkout.session.completed":
                return await self._checkout_completed(data)
            case "charge.refunded":
                return await self._charge_refunded(data)
            case "payment_intent.payment_failed":
                return self._payment_failed(data)
            case _:
                return _Handled(WebhookResult(True, f"Event type not handled: {event_type}"))

    # -- checkout.session.completed --

    async def _checkout_completed(self, session: dict[str, Any]) -> _Handled:
        session_id = session.get("id")
        if not session_id:
            return _Handled(WebhookResult(False, "Session ID not found in event", 400))

        metadata = decode_metadata(session.get("metadata"))
        if isinstance(metadata, CartMetadata):
            handled = await self._complete_cart(session, metadata)
        else:
            handled = await self._complete_single(session, metadata)

        if await self._carts.delete_by_checkout_session(session_id):
            logger.info("Cart cleared after checkout", extra={"session_id": session_id})
        return handled

    async def _complete_single(
        self, session: dict[str, Any], metadata: SingleItemMetadata
    ) -> _Handled:
        session_id = session["id"]
        events: list[EnrollmentEvent] = []

        enrollment = await self._enrollments.get_by_session_id(session_id)
        if enrollment is not None and enrollment.status != EnrollmentStatus.PENDING:
            return _Handled(WebhookResult(True, "Enrollment already reconciled"))

        amount = _cents_to_amount(session.get("amount_total"))
        customer = _customer_from_session(session)

        if enrollment is None:
            enrollment = Enrollment.create(
                workshop_id=metadata.workshop_id,
                amount=amount,
                customer=customer,
                currency=session.get("currency") or "usd",
                pricing_option_id=metadata.pricing_option,
                session_id=session_id,
            )
            created = True
        else:
            enrollment.apply_customer_details(customer)
            if amount > 0:
                enrollment.amount = amount
            created = False

        enrollment.mark_completed(
            payment_reference=session.get("payment_intent"),
            customer_reference=session.get("customer"),
        )

        if created:
            await self._enrollments.add(enrollment)
            events.append(EnrollmentEvent.created(enrollment))
        else:
            await self._enrollments.save(enrollment)
            events.append(
                EnrollmentEvent.status_updated(
                    enrollment, EnrollmentStatus.PENDING.value, enrollment.status.value
                )
            )
        events.append(EnrollmentEvent.completed(enrollment, session_id=session_id))

        if metadata.waitlist_entry_id is not None:
            await self._convert_entry(metadata.waitlist_entry_id, enrollment.id)

        logger.info(
            "Enrollment created and completed" if created else "Enrollment completed",
            extra={"enrollment_id": enrollment.id, "workshop_id": enrollment.workshop_id},
        )
        message = (
            "Enrollment created and completed successfully"
            if created
            else "Enrollment completed successfully"
        )
        return _Handled(WebhookResult(True, message), events)

    async def _complete_cart(self, session: dict[str, Any], metadata: CartMetadata) -> _Handled:
        session_id = session["id"]
        customer = _customer_from_session(session)
        events: list[EnrollmentEvent] = []
        enrollment_ids: dict[int, UUID] = {}

        for line in metadata.items:
            if line.workshop_id is None:
                logger.warning(
                    "Cart line without workshop id skipped", extra={"session_id": session_id}
                )
                continue

            workshop = await self._workshops.get(line.workshop_id)
            if workshop is None:
                logger.error(
                    f"Cart line for unknown workshop {line.workshop_id} skipped",
                    extra={"session_id": session_id, "workshop_id": line.workshop_id},
                )
                continue

            enrollment = await self._enrollments.get_by_session_id(session_id, line.workshop_id)
            if enrollment is not None and enrollment.status != EnrollmentStatus.PENDING:
                enrollment_ids.setdefault(workshop.id, enrollment.id)
                continue

            created = enrollment is None
            if created and line.price <= 0:
                logger.error(
                    f"Cart line for workshop {workshop.id} has no price, skipped",
                    extra={"session_id": session_id, "workshop_id": workshop.id},
                )
                continue

            if created:
                enrollment = Enrollment.create(
                    workshop_id=workshop.id,
                    amount=line.price,
                    customer=customer,
                    currency=session.get("currency") or "usd",
                    pricing_option_id=line.pricing_option,
                    session_id=session_id,
                )
            else:
                enrollment.apply_customer_details(customer)

            enrollment.mark_completed(
                payment_reference=session.get("payment_intent"),
                customer_reference=session.get("customer"),
            )
            if created:
                await self._enrollments.add(enrollment)
                events.append(EnrollmentEvent.created(enrollment))
            else:
                await self._enrollments.save(enrollment)
            events.append(EnrollmentEvent.completed(enrollment, session_id=session_id, cart=True))
            enrollment_ids.setdefault(workshop.id, enrollment.id)

        if metadata.waitlist_entry_id is not None and enrollment_ids:
            try:
                await self._queue.convert_purchase(metadata.waitlist_entry_id, enrollment_ids)
            except WaitlistEntryNotFoundError:
                logger.warning(
                    "Waitlist entry from checkout metadata no longer exists",
                    extra={"entry_id": metadata.waitlist_entry_id, "session_id": session_id},
                )

        logger.info(
            f"Cart checkout completed with {len(enrollment_ids)} enrollment(s)",
            extra={"session_id": session_id},
        )
        created_count = sum(1 for e in events if e.type == EnrollmentEventType.CREATED)
        return _Handled(
            WebhookResult(True, f"Created {created_count} enrollment(s) successfully"),
            events,
        )

    async def _convert_entry(self, entry_id: UUID, enrollment_id: UUID) -> None:
        try:
            await self._queue.convert(entry_id, enrollment_id)
        except WaitlistEntryNotFoundError:
            logger.warning(
                "Waitlist entry from checkout metadata no longer exists",
                extra={"entry_id": entry_id, "enrollment_id": enrollment_id},
            )

    # -- charge.refunded --

    async def _charge_refunded(self, charge: dict[str, Any]) -> _Handled:
        payment_reference = charge.get("payment_intent")
        if not payment_reference:
            return _Handled(WebhookResult(True, "Payment intent not found, skipping"))

        enrollments = await self._enrollments.list_by_payment_reference(payment_reference)
        if not enrollments:
            logger.info("No enrollment found for refunded charge")
            return _Handled(WebhookResult(True, "No enrollment found for payment intent"))

        refunded_amount = _cents_to_amount(charge.get("amount_refunded"))
        charge_amount = _cents_to_amount(charge.get("amount"))
        full_refund = bool(charge.get("refunded")) or (
            charge_amount > 0 and refunded_amount >= charge_amount
        )
        refunds = (charge.get("refunds") or {}).get("data") or []
        refund_id = refunds[0].get("id") if refunds else None

        already = [e for e in enrollments if e.is_refunded]
        candidates = [e for e in enrollments if e.status == EnrollmentStatus.COMPLETED]

        if not candidates:
            for enrollment in already:
                enrollment.append_note("Webhook received: charge.refunded (already processed)")
                await self._enrollments.save(enrollment)
            logger.info(
                "Enrollment already refunded, webhook acknowledged",
                extra={"enrollment_id": enrollments[0].id},
            )
            return _Handled(WebhookResult(True, "Refund already processed (webhook skipped)"))

        if not full_refund and (already or len(candidates) > 1):
            for enrollment in candidates:
                enrollment.append_note(
                    f"Partial refund received via webhook. Amount: ${refunded_amount:,.2f}. "
                    "Review required."
                )
                await self._enrollments.save(enrollment)
            logger.warning(
                f"Partial refund across {len(enrollments)} enrollment(s) needs review"
            )
            return _Handled(WebhookResult(True, "Partial refund recorded for review"))

        events: list[EnrollmentEvent] = []
        for enrollment in candidates:
            old_status = enrollment.status.value
            enrollment.mark_refunded(refund_id=refund_id, reason="charge.refunded")
            enrollment.append_note(
                f"Refund processed via webhook. Amount: ${refunded_amount:,.2f}"
            )
            await self._enrollments.save(enrollment)
            events.append(
                EnrollmentEvent.refunded(
                    enrollment, refund_id=refund_id, amount=str(refunded_amount)
                )
            )
            events.append(
                EnrollmentEvent.status_updated(enrollment, old_status, enrollment.status.value)
            )
            logger.info(
                "Enrollment refunded via webhook",
                extra={"enrollment_id": enrollment.id, "workshop_id": enrollment.workshop_id},
            )

        return _Handled(WebhookResult(True, "Refund processed successfully"), events)

    # -- payment_intent.payment_failed --

    def _payment_failed(self, intent: dict[str, Any]) -> _Handled:
        error = (intent.get("last_payment_error") or {}).get("message") or "Unknown error"
        logger.error(f"Payment failed: {error}")
        return _Handled(WebhookResult(True, "Payment failure logged"))
