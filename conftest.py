"""Shared fixtures for every workspace package's tests.

Persistence-backed tests run against an in-memory SQLite database with
foreign keys enforced, so an out-of-order delete fails here exactly as it
would on PostgreSQL.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from clubkeep.infra.persistence.models import (
    Club,
    Member,
    MembershipPeriod,
    ensure_schema,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Engine


FIXED_NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, current: datetime = FIXED_NOW) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current

    def set(self, current: datetime) -> None:
        self.current = current


@dataclass
class RecordingObjectStore:
    """Object store double that records attempts and fails on chosen keys."""

    fail_keys: set[str] = field(default_factory=set)
    attempted: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    def delete_object(self, key: str) -> None:
        self.attempted.append(key)
        if key in self.fail_keys:
            msg = f"storage unavailable for {key}"
            raise RuntimeError(msg)
        self.deleted.append(key)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def object_store() -> RecordingObjectStore:
    return RecordingObjectStore()


@pytest.fixture()
def engine() -> Iterator[Engine]:
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(engine, expire_on_commit=False, autoflush=False)


def add_club(
    session_factory: sessionmaker[Session],
    *,
    name: str = "Rowing Club",
    slug: str = "rowing-club",
    **fields: Any,
) -> Club:
    """Insert a club and return the detached row."""
    fields.setdefault("created_at", FIXED_NOW)
    with session_factory() as session, session.begin():
        club = Club(name=name, slug=slug, **fields)
        session.add(club)
    return club


def add_member(
    session_factory: sessionmaker[Session],
    club_id: str,
    *,
    status: str = "ACTIVE",
    join_date: date | None = None,
    **fields: Any,
) -> Member:
    """Insert a member, optionally with an open membership period."""
    fields.setdefault("first_name", "Ada")
    fields.setdefault("last_name", "Lovelace")
    with session_factory() as session, session.begin():
        member = Member(club_id=club_id, status=status, version=1, created_at=FIXED_NOW, **fields)
        session.add(member)
        session.flush()
        if join_date is not None:
            session.add(MembershipPeriod(member_id=member.id, join_date=join_date))
    return member


@pytest.fixture()
def club(session_factory: sessionmaker[Session]) -> Club:
    return add_club(session_factory)


@pytest.fixture()
def make_club(session_factory: sessionmaker[Session]) -> Any:
    """Factory fixture: ``make_club(name=..., slug=..., **fields)``."""

    def _make(**kwargs: Any) -> Club:
        return add_club(session_factory, **kwargs)

    return _make


@pytest.fixture()
def make_member(session_factory: sessionmaker[Session]) -> Any:
    """Factory fixture: ``make_member(club_id, status=..., join_date=..., **fields)``."""

    def _make(club_id: str, **kwargs: Any) -> Member:
        return add_member(session_factory, club_id, **kwargs)

    return _make
