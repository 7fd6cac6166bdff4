"""
End-to-end tests against a real in-memory SQLite database.

Request → middleware → endpoint → service → repository → SQLite, with no
mocks except where a database failure is simulated on purpose.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from app.core.exceptions import add_exception_handlers
from app.middleware import RequestIDMiddleware, RequestTimingMiddleware
from app.models.fund import Fund
from app.models.member import Member
from app.repositories.base import BaseRepository
from app.repositories.fund_repo import FundRepository
from app.repositories.member_repo import MemberRepository

from .conftest import make_fund, make_member


def _make_app(database) -> FastAPI:
    from app.api.v1.api import api_router

    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RequestTimingMiddleware)
    add_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")
    app.state.database = database
    return app


@pytest.fixture()
def app(database):
    return _make_app(database)


@pytest.fixture()
def client(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def _count(database, repo_cls, model) -> int:
    async with database.session() as session:
        return await repo_cls(model, session).count()


# ────────────────────────────────────────────────────────────────────────────
# Funds
# ────────────────────────────────────────────────────────────────────────────


class TestFundsEndToEnd:
    """Full-stack behaviour of /api/v1/funds."""

    @pytest.mark.asyncio
    async def test_list_empty(self, client):
        async with client:
            resp = await client.get("/api/v1/funds")

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": []}

    @pytest.mark.asyncio
    async def test_create_echoes_fields_with_identity_and_timestamp(self, client):
        async with client:
            resp = await client.post(
                "/api/v1/funds",
                json={
                    "name": "Investment Pool",
                    "description": "Pooled capital",
                    "type": "investment",
                    "interestRate": 8,
                },
            )

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["name"] == "Investment Pool"
        assert data["description"] == "Pooled capital"
        assert data["type"] == "investment"
        assert data["interestRate"] == 8
        assert data["totalAmount"] == 0
        assert data["id"]
        assert data["createdAt"]

    @pytest.mark.asyncio
    async def test_timestamps_carry_utc_offset(self, client):
        async with client:
            created = await client.post("/api/v1/funds", json={"name": "Group A"})
            listed = await client.get("/api/v1/funds")

        for fund in (created.json()["data"], listed.json()["data"][0]):
            for field in ("createdAt", "updatedAt", "lastInterestDistributionDate"):
                assert fund[field].endswith(("Z", "+00:00")), fund[field]

    @pytest.mark.asyncio
    async def test_same_name_twice(self, client, database):
        async with client:
            first = await client.post("/api/v1/funds", json={"name": "Group A"})
            second = await client.post("/api/v1/funds", json={"name": "Group A"})

        assert first.status_code == 201
        assert first.json()["data"]["name"] == "Group A"
        assert second.status_code == 400
        assert second.json()["success"] is False
        assert "already exists" in second.json()["error"]
        assert await _count(database, FundRepository, Fund) == 1

    @pytest.mark.asyncio
    async def test_duplicate_detection_ignores_surrounding_whitespace(self, client, database):
        async with client:
            await client.post("/api/v1/funds", json={"name": "Group A"})
            resp = await client.post("/api/v1/funds", json={"name": "  Group A "})

        assert resp.status_code == 400
        assert await _count(database, FundRepository, Fund) == 1

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, client, database):
        t1 = datetime(2025, 1, 1, tzinfo=timezone.utc)
        async with database.session() as session:
            repo = FundRepository(Fund, session)
            for offset, name in ((0, "t1"), (2, "t3"), (1, "t2")):
                fund = make_fund(name=name, created_at=t1 + timedelta(days=offset))
                await repo.create(Fund(**fund.model_dump(exclude={"id"})))

        async with client:
            resp = await client.get("/api/v1/funds")

        assert [f["name"] for f in resp.json()["data"]] == ["t3", "t2", "t1"]

    @pytest.mark.asyncio
    async def test_get_by_id(self, client):
        async with client:
            created = await client.post("/api/v1/funds", json={"name": "Emergency"})
            fund_id = created.json()["data"]["id"]
            resp = await client.get(f"/api/v1/funds/{fund_id}")
            missing = await client.get("/api/v1/funds/00000000-0000-0000-0000-000000000000")

        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Emergency"
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_fields_are_not_stored(self, client):
        async with client:
            resp = await client.post(
                "/api/v1/funds", json={"name": "Group A", "secretFlag": True}
            )

        assert resp.status_code == 201
        assert "secretFlag" not in resp.json()["data"]

    @pytest.mark.asyncio
    async def test_list_failure_returns_500_envelope(self, client):
        failure = OperationalError("SELECT", {}, Exception("connection refused"))
        with patch.object(BaseRepository, "get_all", side_effect=failure):
            async with client:
                resp = await client.get("/api/v1/funds")

        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Failed to fetch funds"
        assert "connection refused" not in resp.text
        assert body["requestId"] == resp.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_create_failure_returns_500_envelope(self, client, database):
        failure = ConnectionError("database unreachable")
        with patch.object(BaseRepository, "create", side_effect=failure):
            async with client:
                resp = await client.post("/api/v1/funds", json={"name": "Group A"})

        assert resp.status_code == 500
        assert resp.json()["success"] is False
        assert resp.json()["error"] == "Failed to create fund"
        assert await _count(database, FundRepository, Fund) == 0


# ────────────────────────────────────────────────────────────────────────────
# Members
# ────────────────────────────────────────────────────────────────────────────


class TestMembersEndToEnd:
    """Full-stack behaviour of /api/v1/members."""

    @pytest.mark.asyncio
    async def test_create_then_list(self, client):
        async with client:
            created = await client.post("/api/v1/members", json={"phoneNumber": "555-0100"})
            resp = await client.get("/api/v1/members")

        assert created.status_code == 201
        data = resp.json()["data"]
        assert len(data) == 1
        assert data[0]["phoneNumber"] == "555-0100"
        assert data[0]["id"] == created.json()["data"]["id"]
        assert data[0]["status"] == "active"
        assert data[0]["balance"] == 0
        assert data[0]["joinDate"].endswith(("Z", "+00:00"))
        assert data[0]["createdAt"].endswith(("Z", "+00:00"))

    @pytest.mark.asyncio
    async def test_duplicate_phone_number(self, client, database):
        async with client:
            await client.post(
                "/api/v1/members", json={"phoneNumber": "555-0100", "name": "Ngozi"}
            )
            resp = await client.post(
                "/api/v1/members", json={"phoneNumber": "555-0100", "name": "Someone else"}
            )

        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "error": "Member with this phone number already exists",
        }
        assert await _count(database, MemberRepository, Member) == 1

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, client, database):
        t1 = datetime(2025, 1, 1, tzinfo=timezone.utc)
        async with database.session() as session:
            repo = MemberRepository(Member, session)
            for offset, phone in ((1, "t2"), (0, "t1"), (2, "t3")):
                member = make_member(phone_number=phone, created_at=t1 + timedelta(days=offset))
                await repo.create(Member(**member.model_dump(exclude={"id"})))

        async with client:
            resp = await client.get("/api/v1/members")

        assert [m["phoneNumber"] for m in resp.json()["data"]] == ["t3", "t2", "t1"]

    @pytest.mark.asyncio
    async def test_unique_index_rejects_racing_insert(self, database):
        """The storage layer itself refuses a second member with the same phone."""
        from sqlalchemy.exc import IntegrityError

        async with database.session() as session:
            repo = MemberRepository(Member, session)
            await repo.create(Member(phone_number="555-0100"))
            with pytest.raises(IntegrityError):
                await repo.create(Member(phone_number="555-0100"))

    @pytest.mark.asyncio
    async def test_race_past_precheck_returns_400(self, client, database):
        """Pre-check misses a concurrent insert; the unique index still yields 400."""
        async with database.session() as session:
            await MemberRepository(Member, session).create(Member(phone_number="555-0100"))

        real_lookup = MemberRepository.get_by_phone_number
        calls = {"n": 0}

        async def stale_first_lookup(self, phone_number):
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return await real_lookup(self, phone_number)

        with patch.object(MemberRepository, "get_by_phone_number", stale_first_lookup):
            async with client:
                resp = await client.post("/api/v1/members", json={"phoneNumber": "555-0100"})

        assert resp.status_code == 400
        assert "already exists" in resp.json()["error"]
        assert await _count(database, MemberRepository, Member) == 1

    @pytest.mark.asyncio
    async def test_list_failure_returns_500_envelope(self, client):
        with patch.object(BaseRepository, "get_all", side_effect=OSError("socket closed")):
            async with client:
                resp = await client.get("/api/v1/members")

        assert resp.status_code == 500
        assert resp.json()["error"] == "Failed to fetch members"
