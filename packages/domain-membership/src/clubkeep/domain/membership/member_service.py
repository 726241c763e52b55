"""Member intake, field edits and soft deletion.

Field edits use optimistic locking: the UPDATE is conditioned on the
caller's ``version`` and increments it. A mismatch is a retryable conflict
for the user (reload and retry); it is never retried here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update

from clubkeep.domain.membership.infrastructure import allocate_member_number, load_member
from clubkeep.foundation.domain.exceptions import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from clubkeep.foundation.domain.member_value_objects import MemberStatus
from clubkeep.infra.persistence.database import run_in_transaction
from clubkeep.infra.persistence.models import (
    Club,
    Household,
    Member,
    MembershipPeriod,
    MembershipType,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import date

    from sqlalchemy.orm import Session

    from clubkeep.foundation.domain.ports import ClockPort

logger = logging.getLogger(__name__)

# Plain profile fields a field edit may change.
EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "first_name",
        "last_name",
        "email",
        "phone",
        "street",
        "postal_code",
        "city",
        "notes",
        "household_id",
        "membership_type_id",
    }
)

_INTAKE_STATUSES = frozenset({MemberStatus.PENDING, MemberStatus.PROBATION, MemberStatus.ACTIVE})

# Foreign keys a member may set; each must point at a row of the same club.
_CLUB_REFERENCES: dict[str, type[Household] | type[MembershipType]] = {
    "household_id": Household,
    "membership_type_id": MembershipType,
}


def _check_club_references(session: Session, club_id: str, fields: Mapping[str, Any]) -> None:
    for name, model in _CLUB_REFERENCES.items():
        target = fields.get(name)
        if target is None:
            continue
        owner = session.scalar(select(model.club_id).where(model.id == target))
        if owner != club_id:
            raise ValidationError(name, "must reference a row of the same club", value=target)


class MemberService:
    """Member CRUD that is not a status transition.

    Args:
        session_factory: Callable returning a new SQLAlchemy Session.
        clock: Source of the current instant.
    """

    def __init__(self, session_factory: Callable[[], Session], clock: ClockPort) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def get_member(self, club_id: str, member_id: str) -> Member:
        return run_in_transaction(
            self._session_factory, lambda session: load_member(session, club_id, member_id)
        )

    def create_member(
        self,
        club_id: str,
        first_name: str,
        last_name: str,
        actor_id: str,
        *,
        status: MemberStatus | str = MemberStatus.PENDING,
        join_date: date | None = None,
        **fields: Any,
    ) -> Member:
        """Register a new member.

        A member number is drawn from the club's number range when one is
        configured. ``join_date`` opens the first membership period.

        Raises:
            NotFoundError: The club does not exist or is deleted.
            ValidationError: The initial status is not an intake status, or
                an unknown field is given.
        """
        try:
            initial = MemberStatus(status)
        except ValueError:
            initial = None
        if initial not in _INTAKE_STATUSES:
            raise ValidationError(
                "status",
                f"members cannot be created with status {status!r}",
                allowed=sorted(_INTAKE_STATUSES),
            )
        self._reject_unknown_fields(fields)

        def _create(session: Session) -> Member:
            club = session.scalars(
                select(Club).where(Club.id == club_id, Club.deleted_at.is_(None))
            ).one_or_none()
            if club is None:
                raise NotFoundError("Club", club_id)
            _check_club_references(session, club_id, fields)

            now = self._clock.now()
            member = Member(
                club_id=club_id,
                first_name=first_name,
                last_name=last_name,
                status=str(initial),
                member_number=allocate_member_number(session, club_id),
                status_changed_at=now,
                status_changed_by=actor_id,
                version=1,
                created_at=now,
                updated_at=now,
                **fields,
            )
            session.add(member)
            session.flush()
            if join_date is not None:
                session.add(
                    MembershipPeriod(
                        member_id=member.id,
                        membership_type_id=member.membership_type_id,
                        join_date=join_date,
                    )
                )
            return member

        member = run_in_transaction(self._session_factory, _create)
        logger.info(
            "member_created",
            extra={"club_id": club_id, "member_id": member.id, "status": member.status},
        )
        return member

    def update_member(
        self,
        club_id: str,
        member_id: str,
        version: int,
        changes: Mapping[str, Any],
    ) -> Member:
        """Apply plain field edits guarded by ``version``.

        Args:
            club_id: Owning club.
            member_id: Member to edit.
            version: The version the caller last read.
            changes: Field name to new value; only ``EDITABLE_FIELDS``.

        Returns:
            The member with the incremented version.

        Raises:
            ValidationError: A non-editable field is included.
            NotFoundError: The member is not visible in the club.
            ConflictError: ``version`` is stale. Carries ``retryable=True``.
        """
        self._reject_unknown_fields(changes)

        def _update(session: Session) -> Member:
            member = load_member(session, club_id, member_id)
            if member.version != version:
                raise self._stale(member_id, version, member.version)
            _check_club_references(session, club_id, changes)

            result = session.execute(
                update(Member)
                .where(
                    Member.id == member_id,
                    Member.club_id == club_id,
                    Member.version == version,
                    Member.deleted_at.is_(None),
                )
                .values(**changes, version=Member.version + 1, updated_at=self._clock.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                session.refresh(member)
                raise self._stale(member_id, version, member.version)
            session.refresh(member)
            return member

        member = run_in_transaction(self._session_factory, _update)
        logger.info(
            "member_updated",
            extra={
                "club_id": club_id,
                "member_id": member_id,
                "fields": sorted(changes),
                "version": member.version,
            },
        )
        return member

    def soft_delete_member(
        self,
        club_id: str,
        member_id: str,
        actor_id: str,
    ) -> Member:
        """Tombstone a member who has left.

        Raises:
            NotFoundError: The member is not visible in the club.
            InvalidStateTransitionError: The member has not left.
        """

        def _delete(session: Session) -> Member:
            member = load_member(session, club_id, member_id, for_update=True)
            if member.status != MemberStatus.LEFT:
                raise InvalidStateTransitionError(
                    "Only members with status LEFT can be deleted",
                    member_id=member_id,
                    current_status=member.status,
                )
            now = self._clock.now()
            member.deleted_at = now
            member.deleted_by = actor_id
            member.updated_at = now
            member.version = member.version + 1
            return member

        member = run_in_transaction(self._session_factory, _delete)
        logger.info(
            "member_soft_deleted",
            extra={"club_id": club_id, "member_id": member_id, "actor_id": actor_id},
        )
        return member

    @staticmethod
    def _reject_unknown_fields(fields: Mapping[str, Any]) -> None:
        unknown = sorted(set(fields) - EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(
                unknown[0],
                "field cannot be set here",
                fields=unknown,
            )

    @staticmethod
    def _stale(member_id: str, expected: int, actual: int) -> ConflictError:
        return ConflictError(
            "Member was modified concurrently; reload and retry",
            member_id=member_id,
            expected_version=expected,
            actual_version=actual,
            retryable=True,
        )
