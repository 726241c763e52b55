"""Permanent Deletion Orchestrator.

Deletes one deactivated club as an ordered list of phases. Each phase
declares how its failure is handled:

- ``object_storage`` (collect and continue): every referenced file is
  removed from the object store. Failures are counted, never raised.
- ``relational`` (abort): the eligibility re-check and the full purge run
  in one transaction. Any failure rolls back and propagates.
- ``deletion_log`` (collect and continue): the open compliance log is
  stamped with the deletion time. A missing log is only a warning.

Only the relational phase can fail the operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from clubkeep.domain.tenancy.infrastructure import (
    CascadeDeletionService,
    club_file_keys,
    find_open_log,
    load_club_for_deletion,
)
from clubkeep.infra.persistence.database import run_in_transaction

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy.orm import Session

    from clubkeep.foundation.domain.ports import ClockPort, ObjectStorePort

logger = logging.getLogger(__name__)


class FailurePolicy(StrEnum):
    """What a phase failure does to the rest of the deletion."""

    ABORT = "abort"
    COLLECT_AND_CONTINUE = "collect_and_continue"


@dataclass(frozen=True, slots=True)
class DeletionTarget:
    club_id: str
    slug: str
    name: str
    deleted_by: str


@dataclass
class DeletionReport:
    """Outcome of a permanent deletion.

    Attributes:
        club_id: The deleted club.
        club_slug: Its slug, used to find the compliance log.
        files_deleted: Object keys removed from the object store.
        files_failed: Object key to error for deletions that failed.
        rows_deleted: Table name to rows removed by the relational purge.
        orphaned_files_deleted: File rows removed after the purge.
        log_completed: Whether a compliance log was stamped.
        completed_phases: Phases that finished without error, in order.
        phase_errors: Phase name to error for collect-and-continue phases
            that failed as a whole.
    """

    club_id: str
    club_slug: str
    files_deleted: list[str] = field(default_factory=list)
    files_failed: dict[str, str] = field(default_factory=dict)
    rows_deleted: dict[str, int] = field(default_factory=dict)
    orphaned_files_deleted: int = 0
    log_completed: bool = False
    completed_phases: list[str] = field(default_factory=list)
    phase_errors: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DeletionPhase:
    name: str
    policy: FailurePolicy
    run: Callable[[DeletionTarget, DeletionReport], None]


class PermanentDeletionOrchestrator:
    """Runs the deletion phases for one club at a time.

    Args:
        session_factory: Callable returning a new SQLAlchemy Session.
        object_store: Store holding the club's files.
        clock: Source of the deletion timestamp.
        system_actor_id: ``deleted_by`` when no actor is given.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        object_store: ObjectStorePort,
        clock: ClockPort,
        system_actor_id: str = "system",
    ) -> None:
        self._session_factory = session_factory
        self._object_store = object_store
        self._clock = clock
        self._system_actor_id = system_actor_id
        self._cascade = CascadeDeletionService()
        self.phases: Sequence[DeletionPhase] = (
            DeletionPhase(
                "object_storage", FailurePolicy.COLLECT_AND_CONTINUE, self._delete_objects
            ),
            DeletionPhase("relational", FailurePolicy.ABORT, self._purge_relational),
            DeletionPhase(
                "deletion_log", FailurePolicy.COLLECT_AND_CONTINUE, self._complete_log
            ),
        )

    def delete_club(self, club_id: str, actor_id: str | None = None) -> DeletionReport:
        """Permanently delete a deactivated club.

        Args:
            club_id: Club to delete.
            actor_id: Recorded as ``deleted_by``; defaults to the system actor.

        Returns:
            Per-phase outcome counts.

        Raises:
            NotFoundError: No club with ``club_id``.
            NotEligibleError: The club is tombstoned or no longer deactivated,
                either before the object store is touched or at the re-check
                inside the purge transaction.
        """
        club = run_in_transaction(
            self._session_factory, lambda s: load_club_for_deletion(s, club_id)
        )
        target = DeletionTarget(
            club_id=club.id,
            slug=club.slug,
            name=club.name,
            deleted_by=actor_id or self._system_actor_id,
        )
        report = DeletionReport(club_id=club.id, club_slug=club.slug)
        logger.info("club_deletion_started", extra={"club_id": club_id, "club_slug": club.slug})

        for phase in self.phases:
            try:
                phase.run(target, report)
            except Exception as exc:
                if phase.policy is FailurePolicy.ABORT:
                    logger.error(
                        "club_deletion_aborted",
                        extra={"club_id": club_id, "phase": phase.name, "error": str(exc)},
                    )
                    raise
                logger.warning(
                    "club_deletion_phase_failed",
                    extra={"club_id": club_id, "phase": phase.name},
                    exc_info=True,
                )
                report.phase_errors[phase.name] = str(exc)
            else:
                report.completed_phases.append(phase.name)

        logger.info(
            "club_deletion_completed",
            extra={
                "club_id": club_id,
                "files_deleted": len(report.files_deleted),
                "files_failed": len(report.files_failed),
                "log_completed": report.log_completed,
            },
        )
        return report

    # -- Phases ----------------------------------------------------------------

    def _delete_objects(self, target: DeletionTarget, report: DeletionReport) -> None:
        keys = run_in_transaction(
            self._session_factory, lambda s: club_file_keys(s, target.club_id)
        )
        for key in keys:
            try:
                self._object_store.delete_object(key)
            except Exception as exc:
                logger.warning(
                    "object_delete_failed",
                    extra={"club_id": target.club_id, "key": key, "error": str(exc)},
                )
                report.files_failed[key] = str(exc)
            else:
                report.files_deleted.append(key)

    def _purge_relational(self, target: DeletionTarget, report: DeletionReport) -> None:
        def _purge(session: Session) -> None:
            club = load_club_for_deletion(session, target.club_id, for_update=True)
            result = self._cascade.purge(session, club, target.deleted_by, self._clock.now())
            report.rows_deleted = result.rows_deleted
            report.orphaned_files_deleted = result.orphaned_files_deleted

        run_in_transaction(self._session_factory, _purge)

    def _complete_log(self, target: DeletionTarget, report: DeletionReport) -> None:
        def _stamp(session: Session) -> bool:
            log = find_open_log(session, target.slug)
            if log is None:
                return False
            now = self._clock.now()
            log.deleted_at = now
            log.updated_at = now
            return True

        report.log_completed = run_in_transaction(self._session_factory, _stamp)
        if not report.log_completed:
            logger.warning(
                "deletion_log_missing",
                extra={"club_id": target.club_id, "club_slug": target.slug},
            )
