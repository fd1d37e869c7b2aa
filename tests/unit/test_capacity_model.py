"""Unit tests for admission decisions and the waitlist claim override."""

from datetime import timedelta
from decimal import Decimal

from fakes import make_workshop

from workshop_enrollment_ms.features.enrollments.domain.capacity import (
    SOLD_OUT,
    WAITLIST_AVAILABLE,
    can_admit,
    remaining_spots,
)
from workshop_enrollment_ms.features.enrollments.domain.entities import (
    CustomerDetails,
    Enrollment,
)
from workshop_enrollment_ms.features.waitlist.domain.entities import WaitlistEntry


def completed_enrollment(workshop_id: int) -> Enrollment:
    enrollment = Enrollment.create(
        workshop_id=workshop_id,
        amount=Decimal("75"),
        customer=CustomerDetails(email="ada@workshops.org"),
    )
    enrollment.mark_completed(payment_reference="pi_test_1")
    return enrollment


# ============================================================================
# Pure decision
# ============================================================================


class TestCanAdmit:
    """Tests for the capacity decision function."""

    def test_unlimited_capacity_always_admits(self):
        """Capacity 0 admits regardless of count and never offers the waitlist."""
        workshop = make_workshop(capacity=0, waitlist_enabled=True)

        decision = can_admit(workshop, 500)

        assert decision.allowed is True
        assert decision.waitlist is False
        assert decision.remaining is None
        assert remaining_spots(workshop, 500) is None

    def test_spots_left_admits_with_remaining(self):
        """A workshop below capacity reports the remaining spots."""
        decision = can_admit(make_workshop(capacity=20), 15)

        assert decision.allowed is True
        assert decision.remaining == 5

    def test_full_with_waitlist_offers_waitlist(self):
        """Full workshop with waitlist enabled routes the caller to the waitlist."""
        decision = can_admit(make_workshop(capacity=20, waitlist_enabled=True), 20)

        assert decision.allowed is False
        assert decision.waitlist is True
        assert decision.reason == WAITLIST_AVAILABLE
        assert decision.remaining == 0

    def test_full_without_waitlist_is_sold_out(self):
        """Full workshop without waitlist is simply sold out."""
        decision = can_admit(make_workshop(capacity=20, waitlist_enabled=False), 20)

        assert decision.allowed is False
        assert decision.waitlist is False
        assert decision.reason == SOLD_OUT

    def test_overbooked_workshop_reports_zero_remaining(self):
        """Counts above capacity clamp to zero spots left."""
        workshop = make_workshop(capacity=2)

        assert remaining_spots(workshop, 3) == 0
        assert can_admit(workshop, 3).allowed is False


# ============================================================================
# Service against stored enrollments
# ============================================================================


class TestCapacityModel:
    """Tests for CapacityModel counting completed enrollments only."""

    async def test_only_completed_enrollments_count(self, capacity, enrollment_repo):
        """Pending and refunded enrollments do not occupy a slot."""
        workshop = make_workshop(capacity=2)
        await enrollment_repo.add(completed_enrollment(workshop.id))

        refunded = completed_enrollment(workshop.id)
        refunded.mark_refunded(refund_id="re_1")
        await enrollment_repo.add(refunded)

        await enrollment_repo.add(
            Enrollment.create(workshop_id=workshop.id, amount=Decimal("75"))
        )

        decision = await capacity.can_admit(workshop)

        assert decision.allowed is True
        assert decision.remaining == 1

    async def test_has_spots_false_when_full(self, capacity, enrollment_repo):
        """has_spots mirrors the admission decision."""
        workshop = make_workshop(capacity=1)
        await enrollment_repo.add(completed_enrollment(workshop.id))

        assert await capacity.has_spots(workshop) is False


class TestAdmissionGate:
    """Tests for the claim override on top of the capacity model."""

    async def test_active_claim_overrides_full_workshop(
        self, gate, workshops, waitlist_repo, enrollment_repo, tokens, redemption
    ):
        """A notified entry's claim admits the claimant despite zero capacity left."""
        workshop = workshops.put(make_workshop(capacity=1))
        await enrollment_repo.add(completed_enrollment(workshop.id))

        entry = await waitlist_repo.add(
            WaitlistEntry.create(workshop.id, "grace@workshops.org", position=1)
        )
        token = await tokens.issue(entry)
        entry.mark_notified()
        await redemption.redeem(token, str(entry.id), "session:abc")

        decision = await gate.check(workshop, "session:abc")
        other = await gate.check(workshop, "session:other")

        assert decision.allowed is True
        assert other.allowed is False
        assert other.waitlist is True
        assert await gate.claimed_entry("session:abc", [workshop.id]) == entry.id
        assert await gate.claimed_entry("session:abc", [99]) is None

    async def test_claim_lapses_after_session_window(
        self, gate, workshops, waitlist_repo, tokens, redemption, clock, enrollment_repo
    ):
        """Once the session window passes the claim no longer overrides capacity."""
        workshop = workshops.put(make_workshop(capacity=1))
        await enrollment_repo.add(completed_enrollment(workshop.id))
        entry = await waitlist_repo.add(
            WaitlistEntry.create(workshop.id, "grace@workshops.org", position=1)
        )
        token = await tokens.issue(entry)
        entry.mark_notified()
        await redemption.redeem(token, None, "session:abc")

        clock.advance(hours=1, seconds=1)

        assert (await gate.check(workshop, "session:abc")).allowed is False
        assert await redemption.active_claim("session:abc") is None

    async def test_claim_not_bound_to_other_workshops(
        self, gate, workshops, waitlist_repo, tokens, redemption, enrollment_repo
    ):
        """A claim only overrides capacity for its own workshop."""
        claimed = workshops.put(make_workshop(workshop_id=5, capacity=1))
        other = workshops.put(make_workshop(workshop_id=9, capacity=1))
        await enrollment_repo.add(completed_enrollment(other.id))

        entry = await waitlist_repo.add(
            WaitlistEntry.create(claimed.id, "grace@workshops.org", position=1)
        )
        token = await tokens.issue(entry)
        entry.mark_notified()
        await redemption.redeem(token, None, "session:abc")

        assert (await gate.check(other, "session:abc")).allowed is False

    async def test_token_expiry_caps_claim_window(
        self, gate, workshops, waitlist_repo, tokens, redemption, clock, enrollment_repo
    ):
        """A claim never outlives the token that created it."""
        workshop = workshops.put(make_workshop(capacity=1))
        await enrollment_repo.add(completed_enrollment(workshop.id))
        entry = await waitlist_repo.add(
            WaitlistEntry.create(workshop.id, "grace@workshops.org", position=1)
        )
        await tokens.issue(entry)
        entry.mark_notified()
        entry.claim_token_expires_at = clock() + timedelta(minutes=10)
        await redemption.redeem(entry.claim_token, None, "session:abc")

        clock.advance(minutes=11)

        assert (await gate.check(workshop, "session:abc")).allowed is False
