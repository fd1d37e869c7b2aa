"""
Test configuration and fixtures.

This module sets up the test environment and wires every use case onto the
in-memory fakes from ``fakes.py``.
"""

import os
from datetime import timedelta

import pytest

# Must be set BEFORE any import of settings or database.connection
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["PAYMENT_PROVIDER"] = "mock"
os.environ["NOTIFICATION_WEBHOOK_URL"] = ""
os.environ["MOCK_WEBHOOK_SECRET"] = "whsec_test_secret"

from fakes import (  # noqa: E402
    FakeCheckoutGateway,
    InMemoryCartStorage,
    InMemoryClaimStore,
    InMemoryEnrollmentRepository,
    InMemoryProcessedEventStore,
    InMemoryWaitlistRepository,
    InMemoryWorkshopRepository,
    MutableClock,
    RecordingNotifier,
    RecordingTransaction,
)
from workshop_enrollment_ms.features.cart.application.use_cases import (  # noqa: E402
    CartStore,
    CheckoutCartUseCase,
)
from workshop_enrollment_ms.features.checkout.application.use_cases import (  # noqa: E402
    CheckoutSessionBuilder,
    StartSingleCheckoutUseCase,
)
from workshop_enrollment_ms.features.enrollments.application.post_processing import (  # noqa: E402
    EnrollmentEventPipeline,
    PublishToNotificationService,
    RefillFromWaitlist,
)
from workshop_enrollment_ms.features.enrollments.application.use_cases.admission_gate import (  # noqa: E402
    AdmissionGate,
)
from workshop_enrollment_ms.features.enrollments.application.use_cases.capacity_model import (  # noqa: E402
    CapacityModel,
)
from workshop_enrollment_ms.features.enrollments.application.use_cases.refund_enrollment import (  # noqa: E402
    RefundEnrollmentUseCase,
)
from workshop_enrollment_ms.features.waitlist.application.use_cases import (  # noqa: E402
    ClaimRedemptionService,
    ClaimTokenService,
    WaitlistQueue,
)
from workshop_enrollment_ms.features.webhooks.application.use_cases import (  # noqa: E402
    WebhookReconciliationEngine,
)


# ============================================================================
# Stores
# ============================================================================


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def workshops() -> InMemoryWorkshopRepository:
    return InMemoryWorkshopRepository()


@pytest.fixture
def enrollment_repo() -> InMemoryEnrollmentRepository:
    return InMemoryEnrollmentRepository()


@pytest.fixture
def waitlist_repo() -> InMemoryWaitlistRepository:
    return InMemoryWaitlistRepository()


@pytest.fixture
def claim_store() -> InMemoryClaimStore:
    return InMemoryClaimStore()


@pytest.fixture
def cart_storage(clock) -> InMemoryCartStorage:
    return InMemoryCartStorage(clock)


@pytest.fixture
def processed_events() -> InMemoryProcessedEventStore:
    return InMemoryProcessedEventStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def gateway() -> FakeCheckoutGateway:
    return FakeCheckoutGateway()


@pytest.fixture
def transaction() -> RecordingTransaction:
    return RecordingTransaction()


# ============================================================================
# Services
# ============================================================================


@pytest.fixture
def capacity(enrollment_repo) -> CapacityModel:
    return CapacityModel(enrollment_repo)


@pytest.fixture
def tokens(waitlist_repo, clock) -> ClaimTokenService:
    return ClaimTokenService(waitlist_repo, ttl=timedelta(hours=48), clock=clock)


@pytest.fixture
def redemption(
    tokens, waitlist_repo, workshops, claim_store, clock, transaction
) -> ClaimRedemptionService:
    return ClaimRedemptionService(
        tokens,
        waitlist_repo,
        workshops,
        claim_store,
        window=timedelta(hours=1),
        clock=clock,
        commit=transaction.commit,
    )


@pytest.fixture
def gate(capacity, redemption) -> AdmissionGate:
    return AdmissionGate(capacity, redemption)


@pytest.fixture
def queue(waitlist_repo, workshops, tokens, notifier, clock) -> WaitlistQueue:
    return WaitlistQueue(waitlist_repo, workshops, tokens, notifier, clock=clock)


@pytest.fixture
def pipeline(notifier, workshops, capacity, queue) -> EnrollmentEventPipeline:
    return EnrollmentEventPipeline(
        [
            PublishToNotificationService(notifier),
            RefillFromWaitlist(workshops, capacity, queue),
        ]
    )


@pytest.fixture
def cart_store(cart_storage, workshops, gate, clock) -> CartStore:
    return CartStore(cart_storage, workshops, gate, ttl=timedelta(days=30), clock=clock)


@pytest.fixture
def builder(gateway) -> CheckoutSessionBuilder:
    return CheckoutSessionBuilder(
        gateway,
        success_url="https://workshops.org/checkout/success",
        cancel_url="https://workshops.org/checkout/cancel",
        site_url="https://workshops.org",
    )


@pytest.fixture
def single_checkout(workshops, gate, builder) -> StartSingleCheckoutUseCase:
    return StartSingleCheckoutUseCase(workshops, gate, builder)


@pytest.fixture
def cart_checkout(cart_store, gate, builder) -> CheckoutCartUseCase:
    return CheckoutCartUseCase(cart_store, gate, builder)


@pytest.fixture
def refund_use_case(enrollment_repo, gateway, pipeline) -> RefundEnrollmentUseCase:
    return RefundEnrollmentUseCase(enrollment_repo, gateway, pipeline)


@pytest.fixture
def engine(
    gateway,
    processed_events,
    enrollment_repo,
    workshops,
    queue,
    cart_storage,
    pipeline,
    transaction,
) -> WebhookReconciliationEngine:
    return WebhookReconciliationEngine(
        gateway=gateway,
        processed_events=processed_events,
        enrollments=enrollment_repo,
        workshops=workshops,
        queue=queue,
        carts=cart_storage,
        pipeline=pipeline,
        commit=transaction.commit,
        rollback=transaction.rollback,
    )
