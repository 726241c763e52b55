"""HTTP tests for the membership router."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from clubkeep.domain.membership.router import router
from clubkeep.infra.fastapi.dependencies import get_clock
from clubkeep.infra.fastapi.error_handlers import register_exception_handlers
from clubkeep.infra.persistence.database import get_sync_session_factory

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker

HEADERS = {"X-User-ID": "admin-1"}


@pytest.fixture()
def client(session_factory: sessionmaker[Session], clock: Any) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(router)
    app.dependency_overrides[get_sync_session_factory] = lambda: session_factory
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.unit
class TestMemberRecords:
    def test_create_and_fetch(self, client: TestClient, club: Any) -> None:
        resp = client.post(
            "/clubs/rowing-club/members",
            json={"first_name": "Grace", "last_name": "Hopper", "city": "Arlington"},
            headers=HEADERS,
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "PENDING"
        assert body["club_id"] == club.id

        fetched = client.get(f"/clubs/rowing-club/members/{body['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["first_name"] == "Grace"

    def test_create_requires_actor(self, client: TestClient, club: Any) -> None:
        resp = client.post(
            "/clubs/rowing-club/members", json={"first_name": "A", "last_name": "B"}
        )
        assert resp.status_code == 422

    def test_stale_patch_is_409(self, client: TestClient, club: Any, make_member: Any) -> None:
        member = make_member(club.id)
        url = f"/clubs/rowing-club/members/{member.id}"

        assert client.patch(url, json={"version": 1, "city": "Kiel"}).json()["version"] == 2
        resp = client.patch(url, json={"version": 1, "city": "Lübeck"})

        assert resp.status_code == 409
        assert resp.json()["context"]["retryable"] is True

    def test_unknown_club_is_404(self, client: TestClient) -> None:
        assert client.get("/clubs/nope/members/m-1").status_code == 404


@pytest.mark.unit
class TestStatusEndpoints:
    def test_invalid_transition_is_409_with_allowed(
        self, client: TestClient, club: Any, make_member: Any
    ) -> None:
        member = make_member(club.id, status="PENDING")
        resp = client.post(
            f"/clubs/rowing-club/members/{member.id}/status",
            json={"to_status": "DORMANT", "reason": "quiet"},
            headers=HEADERS,
        )
        assert resp.status_code == 409
        body = resp.json()
        assert body["error_code"] == "INVALID_STATE_TRANSITION"
        assert body["context"]["allowed"] == ["PROBATION", "ACTIVE", "LEFT"]

    def test_left_without_category_is_422(
        self, client: TestClient, club: Any, make_member: Any
    ) -> None:
        member = make_member(club.id)
        resp = client.post(
            f"/clubs/rowing-club/members/{member.id}/status",
            json={"to_status": "LEFT", "reason": "moved"},
            headers=HEADERS,
        )
        assert resp.status_code == 422
        assert resp.json()["context"]["field"] == "left_category"

    def test_change_then_history(self, client: TestClient, club: Any, make_member: Any) -> None:
        member = make_member(club.id)
        resp = client.post(
            f"/clubs/rowing-club/members/{member.id}/status",
            json={"to_status": "SUSPENDED", "reason": "fees unpaid"},
            headers=HEADERS,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "SUSPENDED"

        history = client.get(f"/clubs/rowing-club/members/{member.id}/status-history").json()
        assert [(h["from_status"], h["to_status"]) for h in history] == [("ACTIVE", "SUSPENDED")]
        assert history[0]["actor_id"] == "admin-1"

    def test_bulk_reports_partial_success(
        self, client: TestClient, club: Any, make_member: Any
    ) -> None:
        active = make_member(club.id)
        resp = client.post(
            "/clubs/rowing-club/members/bulk-status",
            json={"member_ids": [active.id, "ghost"], "to_status": "DORMANT", "reason": "winter"},
            headers=HEADERS,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["updated"] == [active.id]
        assert [s["id"] for s in body["skipped"]] == ["ghost"]


@pytest.mark.unit
class TestCancellationEndpoints:
    def test_set_and_revoke(self, client: TestClient, club: Any, make_member: Any) -> None:
        member = make_member(club.id)
        url = f"/clubs/rowing-club/members/{member.id}/cancellation"

        set_resp = client.post(url, json={"cancellation_date": "2026-12-31"}, headers=HEADERS)
        assert set_resp.status_code == 200
        assert set_resp.json()["cancellation_date"] == "2026-12-31"

        again = client.post(url, json={"cancellation_date": "2027-01-31"}, headers=HEADERS)
        assert again.status_code == 409

        revoked = client.delete(url, params={"reason": "stays"}, headers=HEADERS)
        assert revoked.status_code == 200
        assert revoked.json()["cancellation_date"] is None

    def test_past_date_is_422(self, client: TestClient, club: Any, make_member: Any) -> None:
        member = make_member(club.id)
        resp = client.post(
            f"/clubs/rowing-club/members/{member.id}/cancellation",
            json={"cancellation_date": "2020-01-01"},
            headers=HEADERS,
        )
        assert resp.status_code == 422
