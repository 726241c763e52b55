"""Tests for the Permanent Deletion Orchestrator."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest
from sqlalchemy import select

from clubkeep.domain.tenancy.deletion import (
    FailurePolicy,
    PermanentDeletionOrchestrator,
)
from clubkeep.foundation.domain.exceptions import NotEligibleError, NotFoundError
from clubkeep.infra.persistence.models import Club, ClubDeletionLog, Member

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker


def _club(session_factory: sessionmaker[Session], club_id: str) -> Club:
    with session_factory() as session:
        return session.get_one(Club, club_id)


@pytest.mark.unit
class TestPhaseList:
    def test_only_relational_phase_aborts(self, orchestrator: PermanentDeletionOrchestrator) -> None:
        assert [(p.name, p.policy) for p in orchestrator.phases] == [
            ("object_storage", FailurePolicy.COLLECT_AND_CONTINUE),
            ("relational", FailurePolicy.ABORT),
            ("deletion_log", FailurePolicy.COLLECT_AND_CONTINUE),
        ]


@pytest.mark.unit
class TestDeleteClub:
    def test_happy_path(
        self,
        orchestrator: PermanentDeletionOrchestrator,
        session_factory: sessionmaker[Session],
        object_store: Any,
        seed_club: Any,
        clock: Any,
    ) -> None:
        seeded = seed_club()

        report = orchestrator.delete_club(seeded.club_id)

        assert sorted(report.files_deleted) == seeded.file_keys
        assert report.files_failed == {}
        assert report.log_completed is True
        assert report.completed_phases == ["object_storage", "relational", "deletion_log"]
        assert _club(session_factory, seeded.club_id).deleted_by == "system"
        with session_factory() as session:
            log = session.get_one(ClubDeletionLog, seeded.log_id)
        assert log.deleted_at == clock.now()

    def test_object_store_failure_does_not_block_purge(
        self,
        orchestrator: PermanentDeletionOrchestrator,
        session_factory: sessionmaker[Session],
        object_store: Any,
        seed_club: Any,
    ) -> None:
        seeded = seed_club()
        failing = seeded.file_keys[1]
        object_store.fail_keys = {failing}

        report = orchestrator.delete_club(seeded.club_id)

        assert sorted(object_store.attempted) == seeded.file_keys
        assert len(report.files_deleted) == 2
        assert list(report.files_failed) == [failing]
        assert "relational" in report.completed_phases
        assert _club(session_factory, seeded.club_id).deleted_at is not None
        with session_factory() as session:
            assert session.scalars(select(Member)).all() == []

    def test_missing_log_only_warns(
        self,
        orchestrator: PermanentDeletionOrchestrator,
        session_factory: sessionmaker[Session],
        seed_club: Any,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        seeded = seed_club()
        with session_factory() as session, session.begin():
            session.delete(session.get_one(ClubDeletionLog, seeded.log_id))

        report = orchestrator.delete_club(seeded.club_id)

        assert report.log_completed is False
        assert _club(session_factory, seeded.club_id).deleted_at is not None
        assert any(r.getMessage() == "deletion_log_missing" for r in caplog.records)

    def test_failing_log_phase_is_collected(
        self,
        orchestrator: PermanentDeletionOrchestrator,
        session_factory: sessionmaker[Session],
        seed_club: Any,
    ) -> None:
        seeded = seed_club()
        with patch(
            "clubkeep.domain.tenancy.deletion.find_open_log",
            side_effect=RuntimeError("log table locked"),
        ):
            report = orchestrator.delete_club(seeded.club_id)

        assert report.phase_errors == {"deletion_log": "log table locked"}
        assert _club(session_factory, seeded.club_id).deleted_at is not None

    def test_purge_failure_rolls_back_and_raises(
        self,
        orchestrator: PermanentDeletionOrchestrator,
        session_factory: sessionmaker[Session],
        seed_club: Any,
    ) -> None:
        seeded = seed_club()
        with (
            patch.object(
                orchestrator._cascade, "purge", side_effect=RuntimeError("fk violation")
            ),
            pytest.raises(RuntimeError, match="fk violation"),
        ):
            orchestrator.delete_club(seeded.club_id)

        club = _club(session_factory, seeded.club_id)
        assert club.deleted_at is None
        assert club.deactivated_at is not None
        with session_factory() as session:
            assert len(session.scalars(select(Member)).all()) == 2
            assert session.get_one(ClubDeletionLog, seeded.log_id).deleted_at is None

    def test_reactivated_between_phases_is_not_eligible(
        self,
        session_factory: sessionmaker[Session],
        object_store: Any,
        seed_club: Any,
        clock: Any,
    ) -> None:
        seeded = seed_club()

        class ReactivatingStore:
            def delete_object(self, key: str) -> None:
                with session_factory() as session, session.begin():
                    club = session.get_one(Club, seeded.club_id)
                    club.deactivated_at = None
                    club.scheduled_deletion_at = None

        orchestrator = PermanentDeletionOrchestrator(session_factory, ReactivatingStore(), clock)

        with pytest.raises(NotEligibleError):
            orchestrator.delete_club(seeded.club_id)
        with session_factory() as session:
            assert len(session.scalars(select(Member)).all()) == 2

    def test_active_club_never_touches_object_store(
        self,
        orchestrator: PermanentDeletionOrchestrator,
        object_store: Any,
        club: Any,
    ) -> None:
        with pytest.raises(NotEligibleError):
            orchestrator.delete_club(club.id)
        assert object_store.attempted == []

    def test_unknown_club(self, orchestrator: PermanentDeletionOrchestrator) -> None:
        with pytest.raises(NotFoundError):
            orchestrator.delete_club("missing")

    def test_second_run_is_not_eligible(
        self, orchestrator: PermanentDeletionOrchestrator, seed_club: Any
    ) -> None:
        seeded = seed_club()
        orchestrator.delete_club(seeded.club_id)
        with pytest.raises(NotEligibleError):
            orchestrator.delete_club(seeded.club_id)

    def test_actor_recorded(
        self,
        orchestrator: PermanentDeletionOrchestrator,
        session_factory: sessionmaker[Session],
        seed_club: Any,
    ) -> None:
        seeded = seed_club()
        orchestrator.delete_club(seeded.club_id, "platform-admin")
        assert _club(session_factory, seeded.club_id).deleted_by == "platform-admin"
