"""Club deactivation, reactivation and admin deletion operations.

Deactivation starts a grace period at the end of which the scheduler
permanently deletes the club. The requested grace period is raised to the
platform minimum, never lowered. Every deactivation opens a compliance log
carrying a member count snapshot and a ``T_GRACE`` event; reactivation
cancels it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from clubkeep.domain.tenancy.infrastructure import (
    cancel_open_logs,
    create_deletion_log,
    list_deletion_logs,
)
from clubkeep.domain.tenancy.milestones import days_until
from clubkeep.domain.tenancy.settings import LifecycleSettings, get_lifecycle_settings
from clubkeep.foundation.domain.club_value_objects import NotificationEvent, NotificationEventType
from clubkeep.foundation.domain.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from clubkeep.infra.persistence.database import run_in_transaction
from clubkeep.infra.persistence.models import Club, ClubDeletionLog, Member

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from sqlalchemy.orm import Session

    from clubkeep.domain.tenancy.deletion import DeletionReport, PermanentDeletionOrchestrator
    from clubkeep.foundation.domain.ports import ClockPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PendingDeletion:
    """A deactivated club awaiting permanent deletion."""

    club_id: str
    name: str
    slug: str
    deactivated_at: datetime
    deactivated_by: str | None
    scheduled_deletion_at: datetime
    grace_period_days: int | None
    member_count: int
    days_remaining: int


def _load_club(session: Session, club_id: str) -> Club:
    club = session.scalars(
        select(Club).where(Club.id == club_id, Club.deleted_at.is_(None)).with_for_update()
    ).one_or_none()
    if club is None:
        raise NotFoundError("Club", club_id)
    return club


def _member_count(session: Session, club_id: str) -> int:
    stmt = (
        select(func.count())
        .select_from(Member)
        .where(Member.club_id == club_id, Member.deleted_at.is_(None))
    )
    return session.scalar(stmt) or 0


class ClubLifecycleService:
    """Deactivates and reactivates clubs and exposes the admin deletion view.

    Args:
        session_factory: Callable returning a new SQLAlchemy Session.
        clock: Source of the current instant.
        orchestrator: Used by :meth:`force_delete`.
        settings: Grace period bounds; read from the environment when omitted.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: ClockPort,
        orchestrator: PermanentDeletionOrchestrator | None = None,
        settings: LifecycleSettings | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._orchestrator = orchestrator
        self._settings = settings or get_lifecycle_settings()

    def effective_grace_days(self, requested_grace_days: int) -> int:
        """Apply the platform floor to a requested grace period."""
        return max(requested_grace_days, self._settings.platform_min_grace_days)

    def deactivate(
        self,
        club_id: str,
        confirmation_name: str,
        requested_grace_days: int,
        actor_id: str,
    ) -> Club:
        """Deactivate a club and schedule its permanent deletion.

        Args:
            club_id: Club to deactivate.
            confirmation_name: Must equal the club's current name exactly.
            requested_grace_days: Requested grace period; raised to the
                platform minimum.
            actor_id: Administrator performing the deactivation.

        Returns:
            The deactivated club.

        Raises:
            ValidationError: Grace period out of range or name mismatch.
            NotFoundError: No live club with ``club_id``.
            InvalidStateTransitionError: The club is already deactivated.
        """
        if requested_grace_days < 0 or requested_grace_days > self._settings.max_grace_days:
            raise ValidationError(
                "grace_period_days",
                f"must be between 0 and {self._settings.max_grace_days}",
                requested=requested_grace_days,
            )
        grace_days = self.effective_grace_days(requested_grace_days)

        def _apply(session: Session) -> Club:
            club = _load_club(session, club_id)
            if club.deactivated_at is not None:
                raise InvalidStateTransitionError(
                    f"Club '{club.slug}' is already deactivated",
                    club_id=club_id,
                    scheduled_deletion_at=club.scheduled_deletion_at,
                )
            if confirmation_name != club.name:
                raise ValidationError(
                    "confirmation_name",
                    "does not match the club name",
                    club_id=club_id,
                )

            now = self._clock.now()
            club.deactivated_at = now
            club.deactivated_by = actor_id
            club.scheduled_deletion_at = now + timedelta(days=grace_days)
            club.grace_period_days = grace_days
            session.flush()
            create_deletion_log(
                session,
                club,
                actor_id,
                _member_count(session, club_id),
                NotificationEvent(
                    type=NotificationEventType.T_GRACE, timestamp=now, days_remaining=grace_days
                ),
                now,
            )
            return club

        club = run_in_transaction(self._session_factory, _apply)
        logger.info(
            "club_deactivated",
            extra={
                "club_id": club_id,
                "club_slug": club.slug,
                "actor_id": actor_id,
                "requested_grace_days": requested_grace_days,
                "grace_period_days": grace_days,
                "scheduled_deletion_at": club.scheduled_deletion_at.isoformat(),
            },
        )
        return club

    def reactivate(self, club_id: str, actor_id: str) -> Club:
        """Cancel a pending deletion and clear the deactivation.

        Raises:
            NotFoundError: No live club with ``club_id``.
            InvalidStateTransitionError: The club is not deactivated.
        """

        def _apply(session: Session) -> tuple[Club, int]:
            club = _load_club(session, club_id)
            if club.deactivated_at is None:
                raise InvalidStateTransitionError(
                    f"Club '{club.slug}' is not deactivated", club_id=club_id
                )
            club.deactivated_at = None
            club.deactivated_by = None
            club.scheduled_deletion_at = None
            club.grace_period_days = None
            cancelled = cancel_open_logs(session, club.slug, actor_id, self._clock.now())
            return club, cancelled

        club, cancelled = run_in_transaction(self._session_factory, _apply)
        logger.info(
            "club_reactivated",
            extra={
                "club_id": club_id,
                "club_slug": club.slug,
                "actor_id": actor_id,
                "logs_cancelled": cancelled,
            },
        )
        return club

    def force_delete(self, club_id: str, actor_id: str) -> DeletionReport:
        """Delete a club now, skipping whatever remains of its grace period.

        A club that is not yet deactivated is first deactivated with a
        zero-day grace period and a log whose first event is ``FORCE_DELETE``.

        Raises:
            NotFoundError: No live club with ``club_id``.
        """
        if self._orchestrator is None:
            msg = "force_delete requires a PermanentDeletionOrchestrator"
            raise RuntimeError(msg)

        def _prepare(session: Session) -> None:
            club = _load_club(session, club_id)
            if club.deactivated_at is not None:
                return
            now = self._clock.now()
            club.deactivated_at = now
            club.deactivated_by = actor_id
            club.scheduled_deletion_at = now
            club.grace_period_days = 0
            session.flush()
            create_deletion_log(
                session,
                club,
                actor_id,
                _member_count(session, club_id),
                NotificationEvent(
                    type=NotificationEventType.FORCE_DELETE, timestamp=now, days_remaining=0
                ),
                now,
            )

        run_in_transaction(self._session_factory, _prepare)
        logger.warning(
            "club_force_delete_requested", extra={"club_id": club_id, "actor_id": actor_id}
        )
        return self._orchestrator.delete_club(club_id, actor_id)

    def list_pending_deletions(self) -> list[PendingDeletion]:
        """Deactivated, not yet deleted clubs, soonest deletion first."""
        now = self._clock.now()

        def _read(session: Session) -> list[PendingDeletion]:
            members = (
                select(Member.club_id, func.count().label("member_count"))
                .where(Member.deleted_at.is_(None))
                .group_by(Member.club_id)
                .subquery()
            )
            stmt = (
                select(Club, func.coalesce(members.c.member_count, 0))
                .outerjoin(members, members.c.club_id == Club.id)
                .where(Club.deactivated_at.is_not(None), Club.deleted_at.is_(None))
                .order_by(Club.scheduled_deletion_at, Club.id)
            )
            return [
                PendingDeletion(
                    club_id=club.id,
                    name=club.name,
                    slug=club.slug,
                    deactivated_at=club.deactivated_at,
                    deactivated_by=club.deactivated_by,
                    scheduled_deletion_at=club.scheduled_deletion_at,
                    grace_period_days=club.grace_period_days,
                    member_count=count,
                    days_remaining=max(days_until(club.scheduled_deletion_at, now), 0),
                )
                for club, count in session.execute(stmt)
            ]

        return run_in_transaction(self._session_factory, _read)

    def list_deletion_logs(self) -> list[ClubDeletionLog]:
        """Every compliance log, newest first."""
        return run_in_transaction(self._session_factory, list_deletion_logs)
