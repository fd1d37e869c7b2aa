"""Unit tests for the waitlist queue and claim token lifecycle."""

import logging
from datetime import timedelta
from uuid import uuid4

import pytest
from fakes import make_workshop

from workshop_enrollment_ms.features.waitlist.application.use_cases import (
    ClaimTokenService,
)
from workshop_enrollment_ms.features.waitlist.domain.entities import WaitlistEntry
from workshop_enrollment_ms.features.waitlist.domain.enums import WaitlistStatus
from workshop_enrollment_ms.shared.domain.exceptions import (
    ClaimTokenInvalidError,
    EnrollmentValidationError,
    WaitlistEntryNotFoundError,
    WorkshopNotFoundError,
)

# ============================================================================
# Joining
# ============================================================================


class TestJoin:
    """Tests for WaitlistQueue.join."""

    async def test_join_assigns_increasing_positions(self, queue, workshops, notifier):
        """Each new email gets max(position) + 1 and a confirmation."""
        workshops.put(make_workshop())

        first = await queue.join(5, "ada@workshops.org", name="Ada")
        second = await queue.join(5, "grace@workshops.org")

        assert first.created is True
        assert first.position == 1
        assert second.position == 2
        assert first.entry.status == WaitlistStatus.WAITING
        assert [e.email for e in notifier.confirmations] == [
            "ada@workshops.org",
            "grace@workshops.org",
        ]

    async def test_join_twice_returns_same_entry(self, queue, workshops, waitlist_repo):
        """Re-joining while waiting is idempotent, regardless of email case."""
        workshops.put(make_workshop())

        first = await queue.join(5, "ada@workshops.org")
        again = await queue.join(5, "  ADA@Workshops.org ")

        assert again.created is False
        assert again.entry_id == first.entry_id
        assert again.position == 1
        assert len(waitlist_repo.entries) == 1

    async def test_join_after_conversion_creates_new_entry(self, queue, workshops):
        """A converted entry is no longer active, so a new one is created."""
        workshops.put(make_workshop())
        first = await queue.join(5, "ada@workshops.org")
        await queue.convert(first.entry_id, uuid4())

        again = await queue.join(5, "ada@workshops.org")

        assert again.created is True
        assert again.position == 2

    async def test_join_rejects_invalid_email(self, queue, workshops):
        """Malformed addresses are refused before touching storage."""
        workshops.put(make_workshop())

        with pytest.raises(EnrollmentValidationError):
            await queue.join(5, "not-an-email")

    async def test_join_requires_waitlist_enabled(self, queue, workshops):
        """Workshops without a waitlist refuse joins."""
        workshops.put(make_workshop(waitlist_enabled=False))

        with pytest.raises(EnrollmentValidationError):
            await queue.join(5, "ada@workshops.org")

    async def test_join_unknown_workshop(self, queue):
        """Unknown or unpublished workshops raise WorkshopNotFoundError."""
        with pytest.raises(WorkshopNotFoundError):
            await queue.join(404, "ada@workshops.org")

    async def test_failed_confirmation_still_creates_entry(
        self, queue, workshops, notifier
    ):
        """Confirmation delivery is best effort."""
        workshops.put(make_workshop())
        notifier.accept = False

        result = await queue.join(5, "ada@workshops.org")

        assert result.created is True


# ============================================================================
# Notify next in line
# ============================================================================


class TestNotifyNextInLine:
    """Tests for WaitlistQueue.notify_next_in_line."""

    async def test_skips_converted_entries(self, queue, workshops, notifier):
        """Positions 1, 2, 3 with 2 converted: position 1 is notified first, then 3."""
        workshops.put(make_workshop())
        one = await queue.join(5, "one@workshops.org")
        two = await queue.join(5, "two@workshops.org")
        three = await queue.join(5, "three@workshops.org")
        await queue.convert(two.entry_id, uuid4())

        assert await queue.notify_next_in_line(5) is True
        assert one.entry.status == WaitlistStatus.NOTIFIED
        assert one.entry.notified is True
        assert three.entry.status == WaitlistStatus.WAITING

        assert await queue.notify_next_in_line(5) is True
        assert three.entry.status == WaitlistStatus.NOTIFIED

        assert await queue.notify_next_in_line(5) is False
        assert [entry.email for entry, _ in notifier.spot_available] == [
            "one@workshops.org",
            "three@workshops.org",
        ]

    async def test_claim_url_carries_token_and_entry(self, queue, workshops, notifier):
        """The claim link points back at the workshop page."""
        workshops.put(make_workshop())
        joined = await queue.join(5, "one@workshops.org")

        await queue.notify_next_in_line(5)

        _, url = notifier.spot_available[0]
        assert url.startswith("https://workshops.org/workshops/5?")
        assert f"waitlist_token={joined.entry.claim_token}" in url
        assert f"entry_id={joined.entry_id}" in url

    async def test_send_failure_leaves_entry_waiting(self, queue, workshops, notifier):
        """An undelivered offer keeps the entry waiting for the next attempt."""
        workshops.put(make_workshop())
        joined = await queue.join(5, "one@workshops.org")
        notifier.accept = False

        assert await queue.notify_next_in_line(5) is False
        assert joined.entry.status == WaitlistStatus.WAITING
        assert joined.entry.notified is False

    async def test_empty_queue(self, queue, workshops):
        """No waiting entries means nobody is notified."""
        workshops.put(make_workshop())

        assert await queue.notify_next_in_line(5) is False

    async def test_ties_go_to_earlier_arrival(self, queue, workshops, waitlist_repo):
        """Two entries sharing a position are served by created_at."""
        workshops.put(make_workshop())
        early = WaitlistEntry.create(5, "early@workshops.org", position=1)
        late = WaitlistEntry.create(5, "late@workshops.org", position=1)
        late.created_at = early.created_at + timedelta(seconds=5)
        await waitlist_repo.add(late)
        await waitlist_repo.add(early)

        await queue.notify_next_in_line(5)

        assert early.status == WaitlistStatus.NOTIFIED
        assert late.status == WaitlistStatus.WAITING


# ============================================================================
# Positions and conversion
# ============================================================================


class TestPositionAndConvert:
    """Tests for position_of, queue_depth and convert."""

    async def test_people_ahead_ignores_converted(self, queue, workshops):
        """people_ahead counts only waiting entries before this one."""
        workshops.put(make_workshop())
        await queue.join(5, "one@workshops.org")
        two = await queue.join(5, "two@workshops.org")
        await queue.join(5, "three@workshops.org")
        await queue.convert(two.entry_id, uuid4())

        position = await queue.position_of(5, "three@workshops.org")

        assert position.position == 3
        assert position.people_ahead == 1
        assert await queue.queue_depth(5) == 2

    async def test_position_of_unknown_email(self, queue, workshops):
        """Emails not on the waitlist have no position."""
        workshops.put(make_workshop())

        assert await queue.position_of(5, "nobody@workshops.org") is None

    async def test_convert_is_idempotent(self, queue, workshops):
        """Converting twice keeps the first enrollment link."""
        workshops.put(make_workshop())
        joined = await queue.join(5, "one@workshops.org")
        first, second = uuid4(), uuid4()

        assert await queue.convert(joined.entry_id, first) is True
        assert await queue.convert(joined.entry_id, second) is True
        assert joined.entry.status == WaitlistStatus.CONVERTED
        assert joined.entry.enrollment_id == first

    async def test_convert_unknown_entry(self, queue):
        """Converting a missing entry raises."""
        with pytest.raises(WaitlistEntryNotFoundError):
            await queue.convert(uuid4(), uuid4())

    async def test_convert_purchase_picks_claimed_workshop(self, queue, workshops):
        """Of several enrollments bought together, the claimed workshop's one is linked."""
        workshops.put(make_workshop(workshop_id=9))
        joined = await queue.join(9, "one@workshops.org")
        for_five, for_nine = uuid4(), uuid4()

        assert await queue.convert_purchase(joined.entry_id, {5: for_five, 9: for_nine})
        assert joined.entry.enrollment_id == for_nine

    async def test_convert_purchase_without_claimed_workshop_falls_back(self, queue, workshops):
        workshops.put(make_workshop(workshop_id=9))
        joined = await queue.join(9, "one@workshops.org")
        for_five = uuid4()

        await queue.convert_purchase(joined.entry_id, {5: for_five})

        assert joined.entry.enrollment_id == for_five


# ============================================================================
# Claim tokens
# ============================================================================


class TestClaimTokens:
    """Tests for ClaimTokenService and claim redemption."""

    async def test_token_is_64_hex_chars(self, tokens, waitlist_repo):
        """Tokens carry 32 random bytes."""
        entry = await waitlist_repo.add(WaitlistEntry.create(5, "a@workshops.org", 1))

        token = await tokens.generate(entry.id)

        assert len(token) == 64
        int(token, 16)

    async def test_validate_does_not_consume(self, tokens, waitlist_repo):
        """A notified entry's token validates on every reload."""
        entry = await waitlist_repo.add(WaitlistEntry.create(5, "a@workshops.org", 1))
        token = await tokens.issue(entry)
        entry.mark_notified()

        assert await tokens.validate(token) == entry.id
        assert await tokens.validate(token) == entry.id

    async def test_regenerating_invalidates_old_token(self, tokens, waitlist_repo):
        """Only the latest token is live."""
        entry = await waitlist_repo.add(WaitlistEntry.create(5, "a@workshops.org", 1))
        old = await tokens.issue(entry)
        new = await tokens.issue(entry)
        entry.mark_notified()

        assert await tokens.validate(old) is None
        assert await tokens.validate(new) == entry.id

    async def test_expired_token_marks_entry_expired(self, tokens, waitlist_repo, clock):
        """Validating past the TTL fails and expires the entry."""
        entry = await waitlist_repo.add(WaitlistEntry.create(5, "a@workshops.org", 1))
        token = await tokens.issue(entry)
        entry.mark_notified()

        clock.advance(hours=48, seconds=1)

        assert await tokens.validate(token) is None
        assert entry.status == WaitlistStatus.EXPIRED

    async def test_converted_entry_token_is_spent(self, tokens, waitlist_repo):
        """Conversion burns the claim right."""
        entry = await waitlist_repo.add(WaitlistEntry.create(5, "a@workshops.org", 1))
        token = await tokens.issue(entry)
        entry.mark_notified()
        entry.mark_converted(uuid4())

        assert await tokens.validate(token) is None

    async def test_unknown_and_empty_tokens(self, tokens):
        """Garbage tokens validate to None."""
        assert await tokens.validate("") is None
        assert await tokens.validate("f" * 64) is None

    async def test_logs_only_token_prefix(self, tokens, waitlist_repo, caplog):
        """Full tokens never reach the logs."""
        entry = await waitlist_repo.add(WaitlistEntry.create(5, "a@workshops.org", 1))

        with caplog.at_level(logging.INFO):
            token = await tokens.issue(entry)
            await tokens.validate("0" * 64)

        assert token[:8] in caplog.text
        assert token not in caplog.text

    def test_claim_url_keeps_existing_query(self):
        """Existing query parameters on the workshop URL survive."""
        url = ClaimTokenService.claim_url(
            "https://workshops.org/w/5?ref=mail", "abc123", uuid4()
        )

        assert "ref=mail" in url
        assert "waitlist_token=abc123" in url

    async def test_redeem_rejects_mismatched_entry(
        self, redemption, tokens, waitlist_repo, workshops
    ):
        """The entry_id in the link must belong to the token."""
        workshops.put(make_workshop())
        entry = await waitlist_repo.add(WaitlistEntry.create(5, "a@workshops.org", 1))
        token = await tokens.issue(entry)
        entry.mark_notified()

        with pytest.raises(ClaimTokenInvalidError):
            await redemption.redeem(token, str(uuid4()), "session:abc")

    async def test_redeem_expired_link_commits_expiry_before_rejecting(
        self, redemption, tokens, waitlist_repo, workshops, clock, transaction
    ):
        """The expired status is committed before the 410 rolls the request back."""
        workshops.put(make_workshop())
        entry = await waitlist_repo.add(WaitlistEntry.create(5, "a@workshops.org", 1))
        token = await tokens.issue(entry)
        entry.mark_notified()
        clock.advance(hours=48, seconds=1)

        with pytest.raises(ClaimTokenInvalidError):
            await redemption.redeem(token, str(entry.id), "session:abc")

        assert entry.status == WaitlistStatus.EXPIRED
        assert transaction.log == ["commit"]

    async def test_redeem_valid_link_leaves_commit_to_request(
        self, redemption, tokens, waitlist_repo, workshops, transaction
    ):
        workshops.put(make_workshop())
        entry = await waitlist_repo.add(WaitlistEntry.create(5, "a@workshops.org", 1))
        token = await tokens.issue(entry)
        entry.mark_notified()

        await redemption.redeem(token, None, "session:abc")

        assert transaction.log == []

    async def test_redeem_binds_claim_and_redirects(
        self, redemption, tokens, waitlist_repo, workshops, claim_store
    ):
        """A valid link binds a claim to the visitor and points at the workshop."""
        workshops.put(make_workshop())
        entry = await waitlist_repo.add(WaitlistEntry.create(5, "a@workshops.org", 1))
        token = await tokens.issue(entry)
        entry.mark_notified()

        redeemed = await redemption.redeem(token, str(entry.id), "session:abc")

        assert redeemed.redirect_url == "https://workshops.org/workshops/5"
        assert claim_store.claims["session:abc"].entry_id == entry.id
        assert redeemed.claim.customer_email == "a@workshops.org"

    async def test_transfer_moves_claim_to_account(
        self, redemption, tokens, waitlist_repo, workshops, claim_store
    ):
        """Logging in carries the claim over to the account cart key."""
        workshops.put(make_workshop())
        entry = await waitlist_repo.add(WaitlistEntry.create(5, "a@workshops.org", 1))
        token = await tokens.issue(entry)
        entry.mark_notified()
        await redemption.redeem(token, None, "session:abc")

        moved = await redemption.transfer("session:abc", "user:42")

        assert moved.owner_key == "user:42"
        assert "session:abc" not in claim_store.claims
        assert await redemption.active_claim("user:42", 5) is not None
