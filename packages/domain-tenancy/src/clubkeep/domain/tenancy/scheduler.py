"""Lifecycle Scheduler.

Two daily sweeps, both driven by an injected clock so a cron trigger, a
manual operator run and a test harness behave the same:

- the deletion sweep permanently deletes every club whose grace period has
  run out, one club at a time;
- the milestone sweep appends due ``T-7``, ``T-1`` and ``T-0`` events to
  open deletion logs.

A failure for one club or log is logged and counted; the sweep always
moves on to the next.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import select

from clubkeep.domain.tenancy.infrastructure import append_events, find_pending_logs
from clubkeep.domain.tenancy.milestones import due_milestones
from clubkeep.infra.persistence.database import run_in_transaction
from clubkeep.infra.persistence.models import Club, ClubDeletionLog

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from sqlalchemy.orm import Session

    from clubkeep.domain.tenancy.deletion import PermanentDeletionOrchestrator
    from clubkeep.foundation.domain.ports import ClockPort

logger = logging.getLogger(__name__)


@dataclass
class DeletionSweepResult:
    eligible: int = 0
    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


@dataclass
class MilestoneSweepResult:
    """Outcome of a milestone sweep.

    Attributes:
        examined: Open logs looked at.
        updated: Log id to the event types appended to it.
        failed: Log id to error.
    """

    examined: int = 0
    updated: dict[str, list[str]] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)


class LifecycleScheduler:
    """Runs the deletion and milestone sweeps.

    Args:
        session_factory: Callable returning a new SQLAlchemy Session.
        orchestrator: Deletes one club.
        clock: Source of the sweep instant.
        system_actor_id: Recorded as ``deleted_by`` for swept clubs.
        milestone_week_days: Offset of the ``T-7`` milestone.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        orchestrator: PermanentDeletionOrchestrator,
        clock: ClockPort,
        system_actor_id: str = "system",
        milestone_week_days: int = 7,
    ) -> None:
        self._session_factory = session_factory
        self._orchestrator = orchestrator
        self._clock = clock
        self._system_actor_id = system_actor_id
        self._milestone_week_days = milestone_week_days

    def run_deletion_sweep(self) -> DeletionSweepResult:
        """Delete every deactivated club scheduled for deletion up to today.

        "Today" is the start of the current UTC day, so a club scheduled at
        any time on day D is deleted by the first sweep of day D+1.
        """
        today = _start_of_day(self._clock.now())
        club_ids = run_in_transaction(self._session_factory, lambda s: _eligible_clubs(s, today))
        result = DeletionSweepResult(eligible=len(club_ids))
        logger.info("deletion_sweep_started", extra={"eligible": len(club_ids)})

        for club_id in club_ids:
            try:
                self._orchestrator.delete_club(club_id, self._system_actor_id)
            except Exception as exc:
                logger.exception("deletion_sweep_club_failed", extra={"club_id": club_id})
                result.failed[club_id] = str(exc)
            else:
                result.deleted.append(club_id)

        logger.info(
            "deletion_sweep_completed",
            extra={
                "eligible": result.eligible,
                "deleted": len(result.deleted),
                "failed": len(result.failed),
            },
        )
        return result

    def run_milestone_sweep(self) -> MilestoneSweepResult:
        """Append due milestone events to every open deletion log."""
        now = self._clock.now()
        log_ids = run_in_transaction(
            self._session_factory, lambda s: [log.id for log in find_pending_logs(s)]
        )
        result = MilestoneSweepResult(examined=len(log_ids))

        for log_id in log_ids:
            try:
                added = run_in_transaction(
                    self._session_factory, lambda s, log_id=log_id: self._advance(s, log_id, now)
                )
            except Exception as exc:
                logger.exception("milestone_sweep_log_failed", extra={"log_id": log_id})
                result.failed[log_id] = str(exc)
                continue
            if added:
                result.updated[log_id] = added

        logger.info(
            "milestone_sweep_completed",
            extra={
                "examined": result.examined,
                "updated": len(result.updated),
                "failed": len(result.failed),
            },
        )
        return result

    def _advance(self, session: Session, log_id: str, now: datetime) -> list[str]:
        log = session.scalars(
            select(ClubDeletionLog).where(ClubDeletionLog.id == log_id).with_for_update()
        ).one()
        if log.cancelled or log.deleted_at is not None:
            return []
        events = due_milestones(
            log.scheduled_deletion_at,
            log.deactivated_at,
            log.event_types,
            now,
            week_days=self._milestone_week_days,
        )
        if not events:
            return []
        append_events(log, events, now)
        added = [str(event.type) for event in events]
        logger.info(
            "deletion_milestones_recorded",
            extra={"log_id": log_id, "club_slug": log.club_slug, "events": added},
        )
        return added


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _eligible_clubs(session: Session, today: datetime) -> list[str]:
    stmt = (
        select(Club.id)
        .where(
            Club.deactivated_at.is_not(None),
            Club.scheduled_deletion_at <= today,
            Club.deleted_at.is_(None),
        )
        .order_by(Club.scheduled_deletion_at, Club.id)
    )
    return list(session.scalars(stmt))
