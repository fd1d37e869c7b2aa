"""Integration tests for request-scoped transactions against a sqlite database.

Requests go through the real ``get_db_session`` dependency, so a raised
error rolls the request session back exactly as in production.
"""

from datetime import timedelta

import httpx
import pytest
from fakes import make_workshop

from workshop_enrollment_ms.app import app
from workshop_enrollment_ms.features.catalog.infrastructure.repository import (
    WorkshopRepository,
)
from workshop_enrollment_ms.features.waitlist.domain.entities import WaitlistEntry
from workshop_enrollment_ms.features.waitlist.domain.enums import WaitlistStatus
from workshop_enrollment_ms.features.waitlist.infrastructure.repository import (
    WaitlistRepository,
)
from workshop_enrollment_ms.shared.domain.clock import utc_now
from workshop_enrollment_ms.shared.infrastructure.database import close_db, connection, init_db

TOKEN = "e" * 64


@pytest.fixture
async def session_factory(tmp_path):
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'requests.db'}")
    yield connection._async_session_factory
    await close_db()


@pytest.fixture
async def client(session_factory):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


async def notified_entry(session_factory, token_expires_in: timedelta) -> WaitlistEntry:
    entry = WaitlistEntry.create(5, "ada@workshops.org", 1)
    entry.claim_token = TOKEN
    entry.claim_token_expires_at = utc_now() + token_expires_in
    entry.mark_notified()
    async with session_factory() as session:
        await WorkshopRepository(session).upsert(make_workshop())
        await WaitlistRepository(session).add(entry)
        await session.commit()
    return entry


# ============================================================================
# Claim links
# ============================================================================


class TestClaimLinkTransactions:
    """Tests for what a claim redemption leaves behind in the database."""

    async def test_expired_link_is_410_and_expiry_persists(self, session_factory, client):
        """The 410 rolls the request back, but the entry stays expired."""
        entry = await notified_entry(session_factory, token_expires_in=timedelta(minutes=-1))

        response = await client.get(
            "/api/waitlist/claim",
            params={"waitlist_token": TOKEN, "entry_id": str(entry.id)},
            follow_redirects=False,
        )

        assert response.status_code == 410
        async with session_factory() as session:
            stored = await WaitlistRepository(session).get_by_id(entry.id)
        assert stored.status == WaitlistStatus.EXPIRED

    async def test_valid_link_redirects_and_stays_notified(self, session_factory, client):
        entry = await notified_entry(session_factory, token_expires_in=timedelta(hours=1))

        response = await client.get(
            "/api/waitlist/claim",
            params={"waitlist_token": TOKEN, "entry_id": str(entry.id)},
            follow_redirects=False,
        )

        assert response.status_code == 303
        async with session_factory() as session:
            stored = await WaitlistRepository(session).get_by_id(entry.id)
        assert stored.status == WaitlistStatus.NOTIFIED
