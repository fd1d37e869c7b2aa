"""Integration tests for the HTTP API with in-memory storage."""

from decimal import Decimal
from urllib.parse import parse_qs, urlparse

import pytest
from fakes import make_workshop
from fastapi.testclient import TestClient
from payloads import charge_refunded_event, checkout_completed_event, signed_event

from workshop_enrollment_ms.app import app
from workshop_enrollment_ms.features.enrollments.domain.entities import (
    CustomerDetails,
    Enrollment,
)
from workshop_enrollment_ms.features.enrollments.domain.enums import EnrollmentStatus
from workshop_enrollment_ms.shared.infrastructure.database import get_db_session
from workshop_enrollment_ms.shared.presentation import dependencies as deps


class FakeSession:
    def __init__(self) -> None:
        self.commits = 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        pass


@pytest.fixture
def client(
    workshops,
    enrollment_repo,
    waitlist_repo,
    claim_store,
    cart_storage,
    processed_events,
    notifier,
    gateway,
):
    """TestClient whose repositories and outbound clients are in-memory fakes."""

    async def session_override():
        yield FakeSession()

    app.dependency_overrides.update(
        {
            get_db_session: session_override,
            deps.get_workshop_repository: lambda: workshops,
            deps.get_enrollment_repository: lambda: enrollment_repo,
            deps.get_waitlist_repository: lambda: waitlist_repo,
            deps.get_claim_store: lambda: claim_store,
            deps.get_cart_storage: lambda: cart_storage,
            deps.get_processed_event_store: lambda: processed_events,
            deps.get_notification_client: lambda: notifier,
            deps.get_gateway: lambda: gateway,
        }
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def fill(enrollment_repo, workshop_id: int, payment_intent: str = "pi_full") -> Enrollment:
    enrollment = Enrollment.create(
        workshop_id=workshop_id,
        amount=Decimal("75"),
        customer=CustomerDetails(email="ada@workshops.org"),
        session_id=f"cs_seed_{workshop_id}",
    )
    enrollment.mark_completed(payment_reference=payment_intent)
    enrollment_repo.enrollments[enrollment.id] = enrollment
    return enrollment


def post_webhook(client: TestClient, event: dict):
    body, header = signed_event(event)
    return client.post(
        "/api/webhooks/stripe",
        content=body,
        headers={"Stripe-Signature": header, "Content-Type": "application/json"},
    )


# ============================================================================
# Health and availability
# ============================================================================


class TestHealthAndAvailability:
    """Tests for /health and workshop availability."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["provider"] == "mock"

    def test_availability_reports_remaining_and_waitlist(
        self, client, workshops, enrollment_repo
    ):
        """A full workshop reports the waitlist option."""
        workshops.put(make_workshop(capacity=1))
        fill(enrollment_repo, 5)

        response = client.get("/api/workshops/5/availability")

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["allowed"] is False
        assert data["waitlist"] is True
        assert data["remaining"] == 0

    def test_availability_unknown_workshop(self, client):
        response = client.get("/api/workshops/404/availability")

        assert response.status_code == 404
        assert response.json()["success"] is False


# ============================================================================
# Cart
# ============================================================================


class TestCartApi:
    """Tests for /api/cart."""

    def test_add_sets_session_cookie_and_persists(self, client, workshops):
        """The first call mints a session; later calls see the same cart."""
        workshops.put(make_workshop())

        added = client.post("/api/cart/items", json={"workshopId": 5, "pricingOption": "student"})
        cart = client.get("/api/cart")

        assert added.status_code == 200
        assert "enrollment_session" in added.cookies
        assert cart.json()["data"]["count"] == 1
        assert cart.json()["data"]["total_formatted"] == "$40.00"

    def test_add_sold_out_returns_waitlist_flag(self, client, workshops, enrollment_repo):
        workshops.put(make_workshop(capacity=1))
        fill(enrollment_repo, 5)

        response = client.post("/api/cart/items", json={"workshopId": 5})

        assert response.status_code == 400
        assert response.json()["data"]["waitlist"] is True

    def test_checkout_cart(self, client, workshops, gateway):
        workshops.put(make_workshop(workshop_id=5))
        workshops.put(make_workshop(workshop_id=9))
        client.post("/api/cart/items", json={"workshopId": 5})
        client.post("/api/cart/items", json={"workshopId": 9})

        response = client.post(
            "/api/cart/checkout", json={"customerEmail": "ada@workshops.org"}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["data"]["session_id"] == "cs_test_1"
        assert body["data"]["redirect_url"].startswith("https://checkout.workshops.org/")
        assert len(gateway.requests[0].line_items) == 2

    def test_checkout_empty_cart(self, client):
        response = client.post("/api/cart/checkout")

        assert response.status_code == 400
        assert response.json()["message"] == "Your cart is empty."

    def test_merge_requires_login(self, client):
        response = client.post("/api/cart/merge")

        assert response.status_code == 400

    def test_merge_moves_lines_to_account(self, client, workshops, cart_storage):
        workshops.put(make_workshop())
        client.post("/api/cart/items", json={"workshopId": 5})

        response = client.post("/api/cart/merge", headers={"X-User-Id": "42"})

        assert response.status_code == 200
        assert response.json()["data"]["count"] == 1
        assert "user:42" in cart_storage.carts


# ============================================================================
# Single checkout
# ============================================================================


class TestCheckoutApi:
    """Tests for /api/checkout."""

    def test_start_checkout(self, client, workshops):
        workshops.put(make_workshop())

        response = client.post("/api/checkout", json={"workshopId": 5})

        assert response.status_code == 201
        assert response.json()["data"]["session_id"] == "cs_test_1"

    def test_sold_out_is_409(self, client, workshops, enrollment_repo):
        workshops.put(make_workshop(capacity=1, waitlist_enabled=False))
        fill(enrollment_repo, 5)

        response = client.post("/api/checkout", json={"workshopId": 5})

        assert response.status_code == 409
        assert response.json()["data"] == {"workshop_id": 5, "waitlist": False}

    def test_unknown_workshop_is_404(self, client):
        response = client.post("/api/checkout", json={"workshopId": 404})

        assert response.status_code == 404

    def test_invalid_email_is_422(self, client, workshops):
        workshops.put(make_workshop())

        response = client.post(
            "/api/checkout", json={"workshopId": 5, "customerEmail": "nope"}
        )

        assert response.status_code == 422


# ============================================================================
# Waitlist
# ============================================================================


class TestWaitlistApi:
    """Tests for /api/waitlist, including claim redemption."""

    def test_join_then_rejoin(self, client, workshops):
        """First join is 201, the same email again is 200 with the same entry."""
        workshops.put(make_workshop())
        payload = {"workshopId": 5, "email": "ada@workshops.org"}

        first = client.post("/api/waitlist", json=payload)
        second = client.post("/api/waitlist", json=payload)

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["data"]["entry_id"] == second.json()["data"]["entry_id"]
        assert second.json()["data"]["created"] is False

    def test_position_lookup(self, client, workshops):
        workshops.put(make_workshop())
        client.post("/api/waitlist", json={"workshopId": 5, "email": "one@workshops.org"})
        client.post("/api/waitlist", json={"workshopId": 5, "email": "two@workshops.org"})

        found = client.get(
            "/api/waitlist/position", params={"workshop_id": 5, "email": "two@workshops.org"}
        )
        missing = client.get(
            "/api/waitlist/position", params={"workshop_id": 5, "email": "x@workshops.org"}
        )

        assert found.json()["data"]["people_ahead"] == 1
        assert missing.status_code == 404

    def test_claim_link_admits_past_capacity(self, client, workshops, enrollment_repo, notifier):
        """Redeeming the emailed link lets the claimant add a full workshop to the cart."""
        workshops.put(make_workshop(capacity=1))
        fill(enrollment_repo, 5)
        client.post("/api/waitlist", json={"workshopId": 5, "email": "grace@workshops.org"})

        notified = client.post("/api/waitlist/workshops/5/notify-next")
        assert notified.json()["data"]["notified"] is True

        _, claim_url = notifier.spot_available[0]
        params = parse_qs(urlparse(claim_url).query)
        redeemed = client.get(
            "/api/waitlist/claim",
            params={
                "waitlist_token": params["waitlist_token"][0],
                "entry_id": params["entry_id"][0],
            },
            follow_redirects=False,
        )

        assert redeemed.status_code == 303
        assert redeemed.headers["location"] == "https://workshops.org/workshops/5"

        added = client.post("/api/cart/items", json={"workshopId": 5})
        assert added.status_code == 200

    def test_invalid_claim_link_is_410(self, client):
        response = client.get(
            "/api/waitlist/claim",
            params={"waitlist_token": "0" * 64},
            follow_redirects=False,
        )

        assert response.status_code == 410


# ============================================================================
# Webhooks and enrollments
# ============================================================================


class TestWebhookAndEnrollmentApi:
    """Tests for /api/webhooks/stripe and /api/enrollments."""

    def test_completed_session_then_replay(self, client, workshops, enrollment_repo):
        """A replayed delivery is acknowledged and creates nothing new."""
        workshops.put(make_workshop())
        event = checkout_completed_event(
            "evt_api_1", "cs_api_1", {"workshop_id": "5", "pricing_option": "adult"}
        )

        first = post_webhook(client, event)
        second = post_webhook(client, event)

        assert first.status_code == 200
        assert first.json() == {
            "success": True,
            "message": "Enrollment created and completed successfully",
        }
        assert second.json()["message"] == "Event already processed"
        assert len(enrollment_repo.enrollments) == 1

    def test_bad_signature_is_400(self, client):
        response = client.post(
            "/api/webhooks/stripe",
            content=b"{}",
            headers={"Stripe-Signature": "t=1,v1=deadbeef"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_get_and_list_enrollments(self, client, enrollment_repo):
        enrollment = fill(enrollment_repo, 5)

        single = client.get(f"/api/enrollments/{enrollment.id}")
        listed = client.get("/api/enrollments", params={"workshop_id": 5, "status": "completed"})

        assert single.json()["data"]["status"] == "completed"
        assert [e["id"] for e in listed.json()["data"]] == [str(enrollment.id)]

    def test_unknown_enrollment_is_404(self, client):
        response = client.get("/api/enrollments/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404

    def test_refund_then_refund_again(self, client, workshops, enrollment_repo, gateway):
        """The second refund attempt is refused with 409."""
        workshops.put(make_workshop(waitlist_enabled=False))
        enrollment = fill(enrollment_repo, 5)

        first = client.post(
            f"/api/enrollments/{enrollment.id}/refund", json={"reason": "duplicate"}
        )
        second = client.post(f"/api/enrollments/{enrollment.id}/refund")

        assert first.status_code == 200
        assert first.json()["data"]["status"] == EnrollmentStatus.REFUNDED.value
        assert second.status_code == 409
        assert len(gateway.refunds) == 1

    def test_refund_webhook_after_admin_refund(self, client, workshops, enrollment_repo):
        workshops.put(make_workshop(waitlist_enabled=False))
        enrollment = fill(enrollment_repo, 5, payment_intent="pi_test_1")
        client.post(f"/api/enrollments/{enrollment.id}/refund")

        response = post_webhook(client, charge_refunded_event("evt_api_r1"))

        assert response.json()["message"] == "Refund already processed (webhook skipped)"
