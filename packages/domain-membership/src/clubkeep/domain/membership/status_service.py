"""Member Status Transition Engine.

Validates and applies member status changes against the declarative edge
table in :mod:`clubkeep.foundation.domain.member_value_objects`. Every
change, including cancellation bookkeeping, writes exactly one immutable
``MemberStatusTransition`` row in the same transaction as the member update.

Status changes are read-check-write under a row lock rather than version
gated: re-reading the current status inside the transaction is the
concurrency guard. ``version`` is still incremented so that a concurrent
field edit holding the old version fails with a conflict.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from clubkeep.domain.membership.infrastructure import load_member, open_periods
from clubkeep.foundation.domain.exceptions import (
    ConflictError,
    DomainError,
    InvalidStateTransitionError,
    ValidationError,
)
from clubkeep.foundation.domain.member_value_objects import (
    CANCELLABLE_STATUSES,
    LeftCategory,
    MemberStatus,
    allowed_transitions,
    is_valid_transition,
)
from clubkeep.infra.persistence.database import run_in_transaction
from clubkeep.infra.persistence.models import Member, MemberStatusTransition

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import date, datetime

    from sqlalchemy.orm import Session

    from clubkeep.foundation.domain.ports import ClockPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SkippedMember:
    """A member a bulk change could not apply, with the reason."""

    id: str
    reason: str


@dataclass
class BulkStatusChangeResult:
    """Outcome of a best-effort bulk status change.

    Every distinct input id appears exactly once, either in ``updated`` or
    in ``skipped``. Partial success is the normal outcome.
    """

    updated: list[str] = field(default_factory=list)
    skipped: list[SkippedMember] = field(default_factory=list)


def _parse_status(value: MemberStatus | str) -> MemberStatus:
    try:
        return MemberStatus(value)
    except ValueError:
        raise ValidationError(
            "to_status", f"unknown member status {value!r}", allowed=list(MemberStatus)
        ) from None


def _parse_left_category(value: LeftCategory | str | None) -> LeftCategory | None:
    if value is None:
        return None
    try:
        return LeftCategory(value)
    except ValueError:
        raise ValidationError(
            "left_category", f"unknown left category {value!r}", allowed=list(LeftCategory)
        ) from None


class MemberStatusService:
    """Applies status transitions and cancellation events to members.

    Args:
        session_factory: Callable returning a new SQLAlchemy Session.
        clock: Source of the current instant.
    """

    def __init__(self, session_factory: Callable[[], Session], clock: ClockPort) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def change_status(
        self,
        club_id: str,
        member_id: str,
        to_status: MemberStatus | str,
        reason: str,
        actor_id: str,
        effective_date: date | None = None,
        left_category: LeftCategory | str | None = None,
    ) -> Member:
        """Move a member to ``to_status``.

        Leaving requires a ``left_category``; that check happens before the
        store is touched. When leaving, every open membership period is
        closed at the effective date and a pending cancellation is consumed.

        Args:
            club_id: Owning club.
            member_id: Member to transition.
            to_status: Target status.
            reason: Free-text reason recorded on the audit entry.
            actor_id: User (or system actor) performing the change.
            effective_date: Date the change takes effect. Defaults to today (UTC).
            left_category: Categorical sub-reason, required for LEFT and
                ignored otherwise.

        Returns:
            The updated member.

        Raises:
            ValidationError: Unknown status or category, or LEFT without a category.
            NotFoundError: The member is absent, deleted, or in another club.
            InvalidStateTransitionError: The edge is not in the transition table.
        """
        target = _parse_status(to_status)
        category = _parse_left_category(left_category)
        if target is MemberStatus.LEFT and category is None:
            raise ValidationError(
                "left_category",
                "required when the target status is LEFT",
                member_id=member_id,
            )
        if target is not MemberStatus.LEFT:
            category = None

        def _apply(session: Session) -> tuple[Member, MemberStatus]:
            member = load_member(session, club_id, member_id, for_update=True)
            current = MemberStatus(member.status)
            if not is_valid_transition(current, target):
                raise InvalidStateTransitionError(
                    f"Cannot change member status from {current} to {target}",
                    allowed=allowed_transitions(current),
                    member_id=member_id,
                    current_status=str(current),
                    target_status=str(target),
                )

            now = self._clock.now()
            effective = effective_date or now.date()

            if target is MemberStatus.LEFT:
                for period in open_periods(session, member.id):
                    period.leave_date = effective
                member.left_category = str(category)
                member.cancellation_date = None
                member.cancellation_received_at = None

            member.status = str(target)
            self._stamp(member, now, actor_id, reason)
            session.add(
                MemberStatusTransition(
                    member_id=member.id,
                    club_id=club_id,
                    from_status=str(current),
                    to_status=str(target),
                    reason=reason,
                    left_category=str(category) if category is not None else None,
                    effective_date=effective,
                    actor_id=actor_id,
                    created_at=now,
                )
            )
            session.flush()
            return member, current

        member, previous = run_in_transaction(self._session_factory, _apply)
        logger.info(
            "member_status_changed",
            extra={
                "club_id": club_id,
                "member_id": member_id,
                "from_status": str(previous),
                "to_status": str(target),
                "actor_id": actor_id,
            },
        )
        return member

    def bulk_change_status(
        self,
        club_id: str,
        member_ids: Iterable[str],
        to_status: MemberStatus | str,
        reason: str,
        actor_id: str,
        effective_date: date | None = None,
        left_category: LeftCategory | str | None = None,
    ) -> BulkStatusChangeResult:
        """Apply :meth:`change_status` to each member independently.

        Each member gets its own transaction. Domain and store failures are
        recorded as skipped entries and never abort the batch. Duplicate ids are
        processed once.
        """
        result = BulkStatusChangeResult()
        for member_id in dict.fromkeys(member_ids):
            try:
                self.change_status(
                    club_id,
                    member_id,
                    to_status,
                    reason,
                    actor_id,
                    effective_date=effective_date,
                    left_category=left_category,
                )
            except DomainError as exc:
                result.skipped.append(SkippedMember(id=member_id, reason=exc.message))
            except SQLAlchemyError as exc:
                logger.exception(
                    "member_bulk_status_store_error",
                    extra={"club_id": club_id, "member_id": member_id},
                )
                result.skipped.append(
                    SkippedMember(id=member_id, reason=f"store error: {type(exc).__name__}")
                )
            else:
                result.updated.append(member_id)

        logger.info(
            "member_bulk_status_changed",
            extra={
                "club_id": club_id,
                "to_status": str(to_status),
                "updated": len(result.updated),
                "skipped": len(result.skipped),
            },
        )
        return result

    def set_cancellation(
        self,
        club_id: str,
        member_id: str,
        cancellation_date: date,
        actor_id: str,
        received_at: datetime | None = None,
        reason: str | None = None,
    ) -> Member:
        """Record that a member intends to leave on ``cancellation_date``.

        The status does not change. An audit entry with ``from == to`` makes
        the cancellation traceable.

        Raises:
            ValidationError: ``cancellation_date`` lies in the past.
            NotFoundError: The member is not visible in the club.
            InvalidStateTransitionError: The status does not allow cancellations.
            ConflictError: A cancellation is already recorded.
        """
        if cancellation_date < self._clock.now().date():
            raise ValidationError(
                "cancellation_date",
                "must not be in the past",
                member_id=member_id,
                cancellation_date=cancellation_date.isoformat(),
            )

        def _apply(session: Session) -> Member:
            member = load_member(session, club_id, member_id, for_update=True)
            status = MemberStatus(member.status)
            if status not in CANCELLABLE_STATUSES:
                raise InvalidStateTransitionError(
                    f"Cannot record a cancellation for a member in status {status}",
                    member_id=member_id,
                    current_status=str(status),
                )
            if member.cancellation_date is not None:
                raise ConflictError(
                    "A cancellation is already recorded; revoke it first",
                    member_id=member_id,
                    cancellation_date=member.cancellation_date.isoformat(),
                )

            now = self._clock.now()
            text = reason or f"cancellation recorded for {cancellation_date.isoformat()}"
            member.cancellation_date = cancellation_date
            member.cancellation_received_at = received_at or now
            self._stamp(member, now, actor_id, text)
            self._record_same_status(session, member, text, now.date(), actor_id, now)
            return member

        member = run_in_transaction(self._session_factory, _apply)
        logger.info(
            "member_cancellation_set",
            extra={
                "club_id": club_id,
                "member_id": member_id,
                "cancellation_date": cancellation_date.isoformat(),
                "actor_id": actor_id,
            },
        )
        return member

    def revoke_cancellation(
        self,
        club_id: str,
        member_id: str,
        actor_id: str,
        reason: str | None = None,
    ) -> Member:
        """Withdraw a previously recorded cancellation.

        Raises:
            NotFoundError: The member is not visible in the club.
            InvalidStateTransitionError: The member has already left.
            ConflictError: No cancellation is recorded.
        """

        def _apply(session: Session) -> Member:
            member = load_member(session, club_id, member_id, for_update=True)
            if member.status == MemberStatus.LEFT:
                raise InvalidStateTransitionError(
                    "Cannot revoke the cancellation of a member who has left",
                    member_id=member_id,
                    current_status=member.status,
                )
            if member.cancellation_date is None:
                raise ConflictError("No cancellation is recorded", member_id=member_id)

            now = self._clock.now()
            text = reason or (
                f"cancellation for {member.cancellation_date.isoformat()} revoked"
            )
            member.cancellation_date = None
            member.cancellation_received_at = None
            self._stamp(member, now, actor_id, text)
            self._record_same_status(session, member, text, now.date(), actor_id, now)
            return member

        member = run_in_transaction(self._session_factory, _apply)
        logger.info(
            "member_cancellation_revoked",
            extra={"club_id": club_id, "member_id": member_id, "actor_id": actor_id},
        )
        return member

    def get_status_history(self, club_id: str, member_id: str) -> list[MemberStatusTransition]:
        """Return the member's audit entries, newest first.

        Raises:
            NotFoundError: The member is not visible in the club.
        """

        def _read(session: Session) -> list[MemberStatusTransition]:
            load_member(session, club_id, member_id)
            stmt = (
                select(MemberStatusTransition)
                .where(
                    MemberStatusTransition.member_id == member_id,
                    MemberStatusTransition.club_id == club_id,
                )
                .order_by(
                    MemberStatusTransition.created_at.desc(),
                    MemberStatusTransition.id.desc(),
                )
            )
            return list(session.scalars(stmt))

        return run_in_transaction(self._session_factory, _read)

    @staticmethod
    def _stamp(member: Member, now: datetime, actor_id: str, reason: str) -> None:
        member.status_changed_at = now
        member.status_changed_by = actor_id
        member.status_change_reason = reason
        member.updated_at = now
        member.version = member.version + 1

    @staticmethod
    def _record_same_status(
        session: Session,
        member: Member,
        reason: str,
        effective: date,
        actor_id: str,
        now: datetime,
    ) -> None:
        session.add(
            MemberStatusTransition(
                member_id=member.id,
                club_id=member.club_id,
                from_status=member.status,
                to_status=member.status,
                reason=reason,
                effective_date=effective,
                actor_id=actor_id,
                created_at=now,
            )
        )
