"""Integration tests: a club's life from deactivation to permanent deletion."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import func, select

from clubkeep.domain.membership.member_service import MemberService
from clubkeep.domain.tenancy import (
    ClubLifecycleService,
    LifecycleScheduler,
    PermanentDeletionOrchestrator,
)
from clubkeep.foundation.domain.exceptions import ValidationError
from clubkeep.infra.persistence.models import (
    Club,
    ClubDeletionLog,
    ClubFile,
    File,
    Household,
    Member,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker

    from clubkeep.domain.tenancy.settings import LifecycleSettings


def _attach_files(session_factory: sessionmaker[Session], club_id: str, *keys: str) -> None:
    with session_factory() as session, session.begin():
        for key in keys:
            file = File(s3_key=key)
            session.add(file)
            session.flush()
            session.add(ClubFile(club_id=club_id, file_id=file.id))


def _run_day(scheduler: LifecycleScheduler, clock: Any, day: int) -> None:
    clock.set(datetime(2026, 3, day, 0, 0, tzinfo=UTC))
    scheduler.run_deletion_sweep()
    clock.set(datetime(2026, 3, day, 1, 0, tzinfo=UTC))
    scheduler.run_milestone_sweep()


@pytest.fixture()
def orchestrator(
    session_factory: sessionmaker[Session], object_store: Any, clock: Any
) -> PermanentDeletionOrchestrator:
    return PermanentDeletionOrchestrator(session_factory, object_store, clock)


@pytest.fixture()
def lifecycle(
    session_factory: sessionmaker[Session],
    clock: Any,
    orchestrator: PermanentDeletionOrchestrator,
    lifecycle_settings: LifecycleSettings,
) -> ClubLifecycleService:
    return ClubLifecycleService(
        session_factory, clock, orchestrator=orchestrator, settings=lifecycle_settings
    )


@pytest.fixture()
def scheduler(
    session_factory: sessionmaker[Session],
    orchestrator: PermanentDeletionOrchestrator,
    clock: Any,
) -> LifecycleScheduler:
    return LifecycleScheduler(session_factory, orchestrator, clock)


@pytest.mark.integration
class TestGracePeriodTimeline:
    def test_two_week_grace_period(
        self,
        lifecycle: ClubLifecycleService,
        scheduler: LifecycleScheduler,
        session_factory: sessionmaker[Session],
        object_store: Any,
        club: Any,
        make_member: Any,
        clock: Any,
    ) -> None:
        make_member(club.id)
        _attach_files(session_factory, club.id, "clubs/rowing/a.pdf", "clubs/rowing/b.pdf")
        lifecycle.deactivate(club.id, "Rowing Club", 14, "admin-1")

        recorded_on: dict[str, int] = {}
        deleted_on = None
        for day in range(2, 17):
            _run_day(scheduler, clock, day)
            with session_factory() as session:
                log = session.scalars(select(ClubDeletionLog)).one()
                stored = session.get_one(Club, club.id)
            for kind in log.event_types - recorded_on.keys():
                recorded_on[kind] = day
            if deleted_on is None and stored.deleted_at is not None:
                deleted_on = day

        assert recorded_on == {"T_GRACE": 2, "T-7": 9, "T-1": 15}
        assert deleted_on == 16
        assert log.deleted_at == datetime(2026, 3, 16, 0, 0, tzinfo=UTC)
        assert stored.deleted_by == "system"
        assert sorted(object_store.deleted) == ["clubs/rowing/a.pdf", "clubs/rowing/b.pdf"]

    def test_reactivation_stops_the_clock(
        self,
        lifecycle: ClubLifecycleService,
        scheduler: LifecycleScheduler,
        session_factory: sessionmaker[Session],
        club: Any,
        clock: Any,
    ) -> None:
        lifecycle.deactivate(club.id, "Rowing Club", 7, "admin-1")
        _run_day(scheduler, clock, 4)
        lifecycle.reactivate(club.id, "admin-1")

        for day in range(5, 12):
            _run_day(scheduler, clock, day)

        with session_factory() as session:
            stored = session.get_one(Club, club.id)
            log = session.scalars(select(ClubDeletionLog)).one()
        assert stored.deleted_at is None
        assert log.cancelled is True
        assert log.event_types == {"T_GRACE"}


@pytest.mark.integration
class TestSweepIdempotency:
    def test_sweeps_run_twice_change_nothing(
        self,
        lifecycle: ClubLifecycleService,
        scheduler: LifecycleScheduler,
        session_factory: sessionmaker[Session],
        make_club: Any,
        clock: Any,
    ) -> None:
        for index in range(3):
            target = make_club(name=f"Club {index}", slug=f"club-{index}")
            lifecycle.deactivate(target.id, f"Club {index}", 7, "admin-1")
        clock.set(datetime(2026, 3, 9, 0, 0, tzinfo=UTC))

        first = scheduler.run_deletion_sweep()
        second = scheduler.run_deletion_sweep()

        assert len(first.deleted) == 3
        assert second.eligible == 0
        with session_factory() as session:
            live = session.scalar(
                select(func.count()).select_from(Club).where(Club.deleted_at.is_(None))
            )
        assert live == 0

    def test_partial_object_store_failure_still_purges(
        self,
        lifecycle: ClubLifecycleService,
        scheduler: LifecycleScheduler,
        session_factory: sessionmaker[Session],
        object_store: Any,
        club: Any,
        make_member: Any,
        clock: Any,
    ) -> None:
        make_member(club.id)
        keys = ("clubs/rowing/1.pdf", "clubs/rowing/2.pdf", "clubs/rowing/3.pdf")
        _attach_files(session_factory, club.id, *keys)
        object_store.fail_keys = {keys[1]}
        lifecycle.deactivate(club.id, "Rowing Club", 7, "admin-1")
        clock.set(datetime(2026, 3, 9, 0, 0, tzinfo=UTC))

        result = scheduler.run_deletion_sweep()

        assert result.deleted == [club.id]
        assert len(object_store.deleted) == 2
        assert object_store.attempted.count(keys[1]) == 1
        with session_factory() as session:
            assert session.scalar(select(func.count()).select_from(Member)) == 0
            assert session.scalar(select(func.count()).select_from(File)) == 0


@pytest.mark.integration
class TestClubIsolation:
    def test_deletion_succeeds_while_another_club_keeps_its_members(
        self,
        lifecycle: ClubLifecycleService,
        scheduler: LifecycleScheduler,
        session_factory: sessionmaker[Session],
        club: Any,
        make_club: Any,
        make_member: Any,
        clock: Any,
    ) -> None:
        with session_factory() as session, session.begin():
            household = Household(club_id=club.id, name="Boathouse")
            session.add(household)
        neighbour = make_club(name="Chess Club", slug="chess-club")
        neighbour_member = make_member(neighbour.id)
        members = MemberService(session_factory, clock)

        with pytest.raises(ValidationError):
            members.update_member(
                neighbour.id, neighbour_member.id, 1, {"household_id": household.id}
            )

        lifecycle.deactivate(club.id, "Rowing Club", 7, "admin-1")
        clock.set(datetime(2026, 3, 9, 0, 0, tzinfo=UTC))
        result = scheduler.run_deletion_sweep()

        assert result.deleted == [club.id]
        assert result.failed == {}
        with session_factory() as session:
            kept = session.get_one(Member, neighbour_member.id)
            assert session.get(Household, household.id) is None
        assert kept.club_id == neighbour.id
        assert kept.deleted_at is None
