"""Daily application of due member cancellations.

A member whose recorded cancellation date has arrived leaves the club:
the sweep runs a regular ``LEFT`` transition for them through the status
engine, so the period is closed at the cancellation date and an audit entry
is written. Members are processed one at a time; one failure never stops
the sweep.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import select

from clubkeep.foundation.domain.member_value_objects import (
    CANCELLABLE_STATUSES,
    LeftCategory,
    MemberStatus,
)
from clubkeep.infra.persistence.database import run_in_transaction
from clubkeep.infra.persistence.models import Club, Member

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import date

    from sqlalchemy.orm import Session

    from clubkeep.domain.membership.status_service import MemberStatusService
    from clubkeep.foundation.domain.ports import ClockPort

logger = logging.getLogger(__name__)

AUTO_LEAVE_REASON = "automatic exit after the cancellation date was reached"


@dataclass
class CancellationSweepResult:
    eligible: int = 0
    transitioned: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


class CancellationSweep:
    """Transitions members with a past-due cancellation date to LEFT.

    Args:
        session_factory: Callable returning a new SQLAlchemy Session.
        status_service: Engine used for each transition.
        clock: Source of the current instant.
        system_actor_id: Actor recorded on the audit entries.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        status_service: MemberStatusService,
        clock: ClockPort,
        system_actor_id: str = "system",
    ) -> None:
        self._session_factory = session_factory
        self._status_service = status_service
        self._clock = clock
        self._system_actor_id = system_actor_id

    def run(self) -> CancellationSweepResult:
        today = self._clock.now().date()
        due = run_in_transaction(self._session_factory, lambda s: self._find_due(s, today))
        result = CancellationSweepResult(eligible=len(due))
        logger.info("cancellation_sweep_started", extra={"eligible": len(due)})

        for member_id, club_id, cancellation_date in due:
            try:
                self._status_service.change_status(
                    club_id,
                    member_id,
                    MemberStatus.LEFT,
                    AUTO_LEAVE_REASON,
                    self._system_actor_id,
                    effective_date=cancellation_date,
                    left_category=LeftCategory.VOLUNTARY,
                )
            except Exception as exc:
                logger.exception(
                    "cancellation_sweep_member_failed",
                    extra={"member_id": member_id, "club_id": club_id},
                )
                result.failed[member_id] = str(exc)
            else:
                result.transitioned.append(member_id)

        logger.info(
            "cancellation_sweep_completed",
            extra={
                "eligible": result.eligible,
                "transitioned": len(result.transitioned),
                "failed": len(result.failed),
            },
        )
        return result

    @staticmethod
    def _find_due(session: Session, today: date) -> list[tuple[str, str, date]]:
        stmt = (
            select(Member.id, Member.club_id, Member.cancellation_date)
            .join(Club, Club.id == Member.club_id)
            .where(
                Member.cancellation_date.is_not(None),
                Member.cancellation_date <= today,
                Member.deleted_at.is_(None),
                Member.status.in_([str(s) for s in CANCELLABLE_STATUSES]),
                Club.deleted_at.is_(None),
            )
            .order_by(Member.cancellation_date, Member.id)
        )
        return [(row.id, row.club_id, row.cancellation_date) for row in session.execute(stmt)]
