"""Queries on the club deletion compliance log.

Every function works on a caller-owned session. ``notification_events`` is
always reassigned, never mutated in place, so the JSON change is flushed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from clubkeep.infra.persistence.models import ClubDeletionLog

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from sqlalchemy.orm import Session

    from clubkeep.foundation.domain.club_value_objects import NotificationEvent
    from clubkeep.infra.persistence.models import Club


def create_deletion_log(
    session: Session,
    club: Club,
    initiated_by: str,
    member_count: int,
    first_event: NotificationEvent,
    now: datetime,
) -> ClubDeletionLog:
    """Open a log for a club that was just deactivated."""
    log = ClubDeletionLog(
        club_name=club.name,
        club_slug=club.slug,
        initiated_by=initiated_by,
        deactivated_at=club.deactivated_at,
        scheduled_deletion_at=club.scheduled_deletion_at,
        member_count=member_count,
        notification_events=[first_event.to_record()],
        created_at=now,
        updated_at=now,
    )
    session.add(log)
    session.flush()
    return log


def find_pending_logs(session: Session) -> list[ClubDeletionLog]:
    """Logs that are neither cancelled nor completed, soonest deletion first."""
    stmt = (
        select(ClubDeletionLog)
        .where(ClubDeletionLog.cancelled.is_(False), ClubDeletionLog.deleted_at.is_(None))
        .order_by(ClubDeletionLog.scheduled_deletion_at, ClubDeletionLog.id)
    )
    return list(session.scalars(stmt))


def list_deletion_logs(session: Session) -> list[ClubDeletionLog]:
    stmt = select(ClubDeletionLog).order_by(
        ClubDeletionLog.created_at.desc(), ClubDeletionLog.id.desc()
    )
    return list(session.scalars(stmt))


def find_open_log(session: Session, club_slug: str) -> ClubDeletionLog | None:
    """Newest log for ``club_slug`` that is still awaiting deletion."""
    stmt = (
        select(ClubDeletionLog)
        .where(
            ClubDeletionLog.club_slug == club_slug,
            ClubDeletionLog.cancelled.is_(False),
            ClubDeletionLog.deleted_at.is_(None),
        )
        .order_by(ClubDeletionLog.created_at.desc(), ClubDeletionLog.id.desc())
        .limit(1)
    )
    return session.scalars(stmt).first()


def append_events(
    log: ClubDeletionLog,
    events: Iterable[NotificationEvent],
    now: datetime,
) -> None:
    log.notification_events = [
        *(log.notification_events or []),
        *(event.to_record() for event in events),
    ]
    log.updated_at = now


def cancel_open_logs(session: Session, club_slug: str, actor_id: str, now: datetime) -> int:
    """Mark every open log of ``club_slug`` cancelled. Returns the number changed."""
    result = session.execute(
        update(ClubDeletionLog)
        .where(
            ClubDeletionLog.club_slug == club_slug,
            ClubDeletionLog.cancelled.is_(False),
            ClubDeletionLog.deleted_at.is_(None),
        )
        .values(cancelled=True, cancelled_at=now, cancelled_by=actor_id, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
