"""FastAPI dependency wiring shared by the feature routers.

Every dependency below is request scoped and shares the request's
``AsyncSession``; FastAPI resolves each one once per request.
"""

import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Header, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_enrollment_ms.features.cart.application.ports import CartStoragePort
from workshop_enrollment_ms.features.cart.application.use_cases import (
    CartStore,
    CheckoutCartUseCase,
)
from workshop_enrollment_ms.features.cart.domain.entities import cart_key_for
from workshop_enrollment_ms.features.cart.infrastructure.repository import CartRepository
from workshop_enrollment_ms.features.catalog.application.ports import (
    WorkshopRepositoryPort,
)
from workshop_enrollment_ms.features.catalog.infrastructure.repository import (
    WorkshopRepository,
)
from workshop_enrollment_ms.features.checkout.application.ports import (
    CheckoutGatewayPort,
)
from workshop_enrollment_ms.features.checkout.application.use_cases import (
    CheckoutSessionBuilder,
    StartSingleCheckoutUseCase,
)
from workshop_enrollment_ms.features.checkout.infrastructure.provider_factory import (
    get_checkout_gateway,
)
from workshop_enrollment_ms.features.enrollments.application.ports import (
    EnrollmentEventPublisherPort,
    EnrollmentRepositoryPort,
)
from workshop_enrollment_ms.features.enrollments.application.post_processing import (
    EnrollmentEventPipeline,
    PublishToNotificationService,
    RefillFromWaitlist,
)
from workshop_enrollment_ms.features.enrollments.application.use_cases.admission_gate import (
    AdmissionGate,
)
from workshop_enrollment_ms.features.enrollments.application.use_cases.capacity_model import (
    CapacityModel,
)
from workshop_enrollment_ms.features.enrollments.application.use_cases.refund_enrollment import (
    RefundEnrollmentUseCase,
)
from workshop_enrollment_ms.features.enrollments.infrastructure.repository import (
    EnrollmentRepository,
)
from workshop_enrollment_ms.features.waitlist.application.ports import (
    ClaimStorePort,
    WaitlistNotifierPort,
    WaitlistRepositoryPort,
)
from workshop_enrollment_ms.features.waitlist.application.use_cases import (
    ClaimRedemptionService,
    ClaimTokenService,
    WaitlistQueue,
)
from workshop_enrollment_ms.features.waitlist.infrastructure.repository import (
    ClaimStore,
    WaitlistRepository,
)
from workshop_enrollment_ms.features.webhooks.application.ports import (
    ProcessedEventStorePort,
)
from workshop_enrollment_ms.features.webhooks.application.use_cases import (
    WebhookReconciliationEngine,
)
from workshop_enrollment_ms.features.webhooks.infrastructure.repository import (
    ProcessedEventRepository,
)
from workshop_enrollment_ms.shared.core.settings import Settings, get_settings
from workshop_enrollment_ms.shared.infrastructure.database import get_db_session
from workshop_enrollment_ms.shared.infrastructure.http_clients import (
    NotificationClient,
    build_notification_client,
)

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
AppSettings = Annotated[Settings, Depends(get_settings)]


# -- Visitor identity --


@dataclass
class Visitor:
    """Who is calling: the anonymous session cookie and, after login, the account."""

    session_id: str
    user_id: str | None = None
    new_session: bool = False

    @property
    def key(self) -> str:
        return cart_key_for(session_id=self.session_id, user_id=self.user_id)

    @property
    def session_key(self) -> str:
        return cart_key_for(session_id=self.session_id)


async def get_visitor(
    request: Request,
    settings: AppSettings,
    user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> Visitor:
    """Read the session cookie; mint one when the visitor has none yet."""
    session_id = request.cookies.get(settings.session_cookie_name)
    if session_id:
        return Visitor(session_id=session_id, user_id=user_id or None)
    return Visitor(session_id=secrets.token_hex(16), user_id=user_id or None, new_session=True)


def set_session_cookie(response: Response, visitor: Visitor, settings: Settings) -> None:
    """Persist a freshly minted session id on ``response``."""
    if not visitor.new_session:
        return
    response.set_cookie(
        settings.session_cookie_name,
        visitor.session_id,
        max_age=settings.cart_ttl_days * 86400,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
    )


# -- Repositories --


async def get_workshop_repository(session: DbSession) -> WorkshopRepositoryPort:
    return WorkshopRepository(session)


async def get_enrollment_repository(session: DbSession) -> EnrollmentRepositoryPort:
    return EnrollmentRepository(session)


async def get_waitlist_repository(session: DbSession) -> WaitlistRepositoryPort:
    return WaitlistRepository(session)


async def get_claim_store(session: DbSession) -> ClaimStorePort:
    return ClaimStore(session)


async def get_cart_storage(session: DbSession) -> CartStoragePort:
    return CartRepository(session)


async def get_processed_event_store(
    session: DbSession, settings: AppSettings
) -> ProcessedEventStorePort:
    return ProcessedEventRepository(session, window=settings.webhook_dedup_window)


# -- Outbound clients --


def get_gateway() -> CheckoutGatewayPort:
    """Dependency for getting the checkout gateway."""
    return get_checkout_gateway()


def get_notification_client() -> NotificationClient:
    return build_notification_client()


def get_waitlist_notifier(
    client: Annotated[NotificationClient, Depends(get_notification_client)],
) -> WaitlistNotifierPort:
    return client


def get_event_publisher(
    client: Annotated[NotificationClient, Depends(get_notification_client)],
) -> EnrollmentEventPublisherPort:
    return client


# -- Domain services --


async def get_capacity_model(
    enrollments: Annotated[EnrollmentRepositoryPort, Depends(get_enrollment_repository)],
) -> CapacityModel:
    return CapacityModel(enrollments)


async def get_claim_token_service(
    entries: Annotated[WaitlistRepositoryPort, Depends(get_waitlist_repository)],
    settings: AppSettings,
) -> ClaimTokenService:
    return ClaimTokenService(entries, ttl=timedelta(hours=settings.claim_token_ttl_hours))


async def get_claim_redemption(
    session: DbSession,
    tokens: Annotated[ClaimTokenService, Depends(get_claim_token_service)],
    entries: Annotated[WaitlistRepositoryPort, Depends(get_waitlist_repository)],
    workshops: Annotated[WorkshopRepositoryPort, Depends(get_workshop_repository)],
    claims: Annotated[ClaimStorePort, Depends(get_claim_store)],
    settings: AppSettings,
) -> ClaimRedemptionService:
    return ClaimRedemptionService(
        tokens,
        entries,
        workshops,
        claims,
        window=timedelta(seconds=settings.claim_session_ttl_seconds),
        commit=session.commit,
    )


async def get_admission_gate(
    capacity: Annotated[CapacityModel, Depends(get_capacity_model)],
    claims: Annotated[ClaimRedemptionService, Depends(get_claim_redemption)],
) -> AdmissionGate:
    return AdmissionGate(capacity, claims)


async def get_waitlist_queue(
    entries: Annotated[WaitlistRepositoryPort, Depends(get_waitlist_repository)],
    workshops: Annotated[WorkshopRepositoryPort, Depends(get_workshop_repository)],
    tokens: Annotated[ClaimTokenService, Depends(get_claim_token_service)],
    notifier: Annotated[WaitlistNotifierPort, Depends(get_waitlist_notifier)],
) -> WaitlistQueue:
    return WaitlistQueue(entries, workshops, tokens, notifier)


async def get_event_pipeline(
    publisher: Annotated[EnrollmentEventPublisherPort, Depends(get_event_publisher)],
    workshops: Annotated[WorkshopRepositoryPort, Depends(get_workshop_repository)],
    capacity: Annotated[CapacityModel, Depends(get_capacity_model)],
    queue: Annotated[WaitlistQueue, Depends(get_waitlist_queue)],
) -> EnrollmentEventPipeline:
    return EnrollmentEventPipeline(
        [
            PublishToNotificationService(publisher),
            RefillFromWaitlist(workshops, capacity, queue),
        ]
    )


async def get_cart_store(
    storage: Annotated[CartStoragePort, Depends(get_cart_storage)],
    workshops: Annotated[WorkshopRepositoryPort, Depends(get_workshop_repository)],
    gate: Annotated[AdmissionGate, Depends(get_admission_gate)],
    settings: AppSettings,
) -> CartStore:
    return CartStore(storage, workshops, gate, ttl=timedelta(days=settings.cart_ttl_days))


async def get_session_builder(
    gateway: Annotated[CheckoutGatewayPort, Depends(get_gateway)],
    settings: AppSettings,
) -> CheckoutSessionBuilder:
    return CheckoutSessionBuilder.from_settings(gateway, settings)


# -- Use cases --


async def get_single_checkout(
    workshops: Annotated[WorkshopRepositoryPort, Depends(get_workshop_repository)],
    gate: Annotated[AdmissionGate, Depends(get_admission_gate)],
    builder: Annotated[CheckoutSessionBuilder, Depends(get_session_builder)],
) -> StartSingleCheckoutUseCase:
    return StartSingleCheckoutUseCase(workshops, gate, builder)


async def get_cart_checkout(
    carts: Annotated[CartStore, Depends(get_cart_store)],
    gate: Annotated[AdmissionGate, Depends(get_admission_gate)],
    builder: Annotated[CheckoutSessionBuilder, Depends(get_session_builder)],
) -> CheckoutCartUseCase:
    return CheckoutCartUseCase(carts, gate, builder)


async def get_refund_use_case(
    session: DbSession,
    enrollments: Annotated[EnrollmentRepositoryPort, Depends(get_enrollment_repository)],
    gateway: Annotated[CheckoutGatewayPort, Depends(get_gateway)],
    pipeline: Annotated[EnrollmentEventPipeline, Depends(get_event_pipeline)],
) -> RefundEnrollmentUseCase:
    return RefundEnrollmentUseCase(enrollments, gateway, pipeline, commit=session.commit)


async def get_reconciliation_engine(
    session: DbSession,
    gateway: Annotated[CheckoutGatewayPort, Depends(get_gateway)],
    processed: Annotated[ProcessedEventStorePort, Depends(get_processed_event_store)],
    enrollments: Annotated[EnrollmentRepositoryPort, Depends(get_enrollment_repository)],
    workshops: Annotated[WorkshopRepositoryPort, Depends(get_workshop_repository)],
    queue: Annotated[WaitlistQueue, Depends(get_waitlist_queue)],
    carts: Annotated[CartStoragePort, Depends(get_cart_storage)],
    pipeline: Annotated[EnrollmentEventPipeline, Depends(get_event_pipeline)],
) -> WebhookReconciliationEngine:
    return WebhookReconciliationEngine(
        gateway=gateway,
        processed_events=processed,
        enrollments=enrollments,
        workshops=workshops,
        queue=queue,
        carts=carts,
        pipeline=pipeline,
        commit=session.commit,
        rollback=session.rollback,
    )
