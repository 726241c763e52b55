"""Unit tests for clubkeep.infra.fastapi.middleware.deactivated_club."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from clubkeep.infra.fastapi.middleware.deactivated_club import (
    DeactivatedClubMiddleware,
    club_is_deactivated,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session, sessionmaker


def _make_app(checker: Callable[[str], bool | None]) -> FastAPI:
    app = FastAPI()
    app.add_middleware(DeactivatedClubMiddleware, club_state_checker=checker)

    @app.get("/clubs/{slug}/members")
    def members(slug: str) -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/clubs/{slug}/members")
    def create_member(slug: str) -> dict[str, str]:
        return {"status": "created"}

    @app.post("/clubs/{slug}/reactivate")
    def reactivate(slug: str) -> dict[str, str]:
        return {"status": "reactivated"}

    @app.post("/admin/clubs/{club_id}/force-delete")
    def force_delete(club_id: str) -> dict[str, str]:
        return {"status": "deleted"}

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app


@pytest.mark.unit
class TestDeactivatedClubMiddleware:
    def test_blocks_writes_to_deactivated_club(self) -> None:
        client = TestClient(_make_app(lambda slug: True))
        resp = client.post("/clubs/rowing-club/members")
        assert resp.status_code == 403
        assert resp.headers["content-type"] == "application/problem+json"
        body = resp.json()
        assert body["error_code"] == "CLUB_DEACTIVATED"
        assert "rowing-club" in body["detail"]

    def test_reads_stay_available(self) -> None:
        client = TestClient(_make_app(lambda slug: True))
        assert client.get("/clubs/rowing-club/members").status_code == 200

    def test_reactivation_stays_reachable(self) -> None:
        client = TestClient(_make_app(lambda slug: True))
        resp = client.post("/clubs/rowing-club/reactivate")
        assert resp.status_code == 200

    def test_admin_paths_skip_the_check(self) -> None:
        calls: list[str] = []

        def checker(slug: str) -> bool:
            calls.append(slug)
            return True

        client = TestClient(_make_app(checker))
        assert client.post("/admin/clubs/c-1/force-delete").status_code == 200
        assert calls == []

    def test_active_club_passes(self) -> None:
        client = TestClient(_make_app(lambda slug: False))
        assert client.post("/clubs/rowing-club/members").status_code == 200

    def test_unknown_club_passes(self) -> None:
        client = TestClient(_make_app(lambda slug: None))
        assert client.post("/clubs/ghost/members").status_code == 200


@pytest.mark.unit
class TestClubIsDeactivated:
    def test_reads_club_state(
        self,
        session_factory: sessionmaker[Session],
        make_club: Callable[..., object],
        clock: Any,
    ) -> None:
        now = clock.now()
        make_club(slug="open-club")
        make_club(
            slug="closed-club",
            deactivated_at=now,
            scheduled_deletion_at=now + timedelta(days=7),
            deactivated_by="admin-1",
            grace_period_days=7,
        )
        make_club(slug="gone-club", deleted_at=now, deleted_by="system")

        with patch(
            "clubkeep.infra.fastapi.middleware.deactivated_club.get_sync_session_factory",
            return_value=session_factory,
        ):
            assert club_is_deactivated("open-club") is False
            assert club_is_deactivated("closed-club") is True
            assert club_is_deactivated("gone-club") is None
            assert club_is_deactivated("missing") is None
