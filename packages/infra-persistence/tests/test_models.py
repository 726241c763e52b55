"""Tests for the ORM schema."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from clubkeep.infra.persistence.models import (
    Club,
    ClubDeletionLog,
    Member,
    MembershipType,
    MemberStatusTransition,
)


@pytest.mark.unit
class TestUTCDateTime:
    def test_aware_values_round_trip_as_utc(self, session_factory, make_club) -> None:
        cet = timezone(timedelta(hours=1))
        club = make_club(deactivated_at=datetime(2026, 3, 1, 10, 0, tzinfo=cet))

        with session_factory() as session:
            loaded = session.get(Club, club.id)
            assert loaded is not None
            assert loaded.deactivated_at == datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
            assert loaded.deactivated_at.tzinfo is UTC

    def test_naive_values_are_treated_as_utc(self, session_factory, make_club) -> None:
        club = make_club(created_at=datetime(2026, 3, 1, 9, 0))

        with session_factory() as session:
            loaded = session.get(Club, club.id)
            assert loaded is not None
            assert loaded.created_at == datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


@pytest.mark.unit
class TestSchemaConstraints:
    def test_foreign_keys_are_enforced(self, session_factory, club, make_member) -> None:
        make_member(club.id)
        with pytest.raises(IntegrityError), session_factory() as session, session.begin():
            session.execute(delete(Club).where(Club.id == club.id))

    def test_default_membership_type_pointer(self, session_factory, club) -> None:
        with session_factory() as session, session.begin():
            mtype = MembershipType(club_id=club.id, name="Adult")
            session.add(mtype)
            session.flush()
            session.get(Club, club.id).default_membership_type_id = mtype.id  # type: ignore[union-attr]

        with session_factory() as session:
            loaded = session.get(Club, club.id)
            assert loaded is not None
            assert loaded.default_membership_type_id is not None

    def test_transition_ids_autoincrement(self, session_factory, club, make_member) -> None:
        member = make_member(club.id)
        with session_factory() as session, session.begin():
            for to_status in ("DORMANT", "ACTIVE"):
                session.add(
                    MemberStatusTransition(
                        member_id=member.id,
                        club_id=club.id,
                        from_status="ACTIVE",
                        to_status=to_status,
                        effective_date=date(2026, 3, 1),
                        actor_id="u-1",
                        created_at=datetime(2026, 3, 1, tzinfo=UTC),
                    )
                )
        with session_factory() as session:
            ids = [t.id for t in session.query(MemberStatusTransition).all()]
            assert sorted(ids) == [1, 2]

    def test_deletion_log_survives_without_club(self, session_factory) -> None:
        now = datetime(2026, 3, 1, tzinfo=UTC)
        with session_factory() as session, session.begin():
            session.add(
                ClubDeletionLog(
                    club_name="Gone",
                    club_slug="gone",
                    initiated_by="u-1",
                    deactivated_at=now,
                    scheduled_deletion_at=now,
                    notification_events=[{"type": "T_GRACE", "daysRemaining": 0}],
                    created_at=now,
                )
            )
        with session_factory() as session:
            log = session.query(ClubDeletionLog).one()
            assert log.event_types == {"T_GRACE"}
            assert log.cancelled is False

    def test_member_defaults(self, session_factory, club) -> None:
        with session_factory() as session, session.begin():
            member = Member(club_id=club.id, first_name="A", last_name="B")
            session.add(member)
        assert member.status == "PENDING"
        assert member.version == 1
