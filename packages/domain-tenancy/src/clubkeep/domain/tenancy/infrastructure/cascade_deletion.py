"""Relational purge of a club's data.

Tables have no ``ON DELETE CASCADE``; children are removed explicitly in
dependency order inside the caller's transaction:

1. status transitions, then membership periods (they reference members)
2. members, then households and number ranges
3. the club's default membership type pointer, then membership types
4. file associations, access requests, club users, audit logs
5. the club row is tombstoned, never removed
6. file rows no longer referenced by any club or user

Any failure raises and the caller's transaction rolls back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, or_, select

from clubkeep.foundation.domain.exceptions import NotEligibleError, NotFoundError
from clubkeep.infra.persistence.models import (
    AccessRequest,
    AuditLog,
    Club,
    ClubFile,
    ClubUser,
    File,
    Household,
    Member,
    MembershipPeriod,
    MembershipType,
    MemberStatusTransition,
    NumberRange,
    UserFile,
)

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy import Delete
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass
class CascadeDeletionResult:
    """Rows removed per table by a purge.

    Attributes:
        rows_deleted: Table name to number of rows removed.
        orphaned_files_deleted: File rows removed because nothing references them.
    """

    rows_deleted: dict[str, int] = field(default_factory=dict)
    orphaned_files_deleted: int = 0


def load_club_for_deletion(session: Session, club_id: str, *, for_update: bool = False) -> Club:
    """Load a club and check it is still eligible for permanent deletion.

    Raises:
        NotFoundError: No club row with ``club_id``.
        NotEligibleError: The club is tombstoned or not deactivated.
    """
    stmt = select(Club).where(Club.id == club_id)
    if for_update:
        stmt = stmt.with_for_update()
    club = session.scalars(stmt).one_or_none()
    if club is None:
        raise NotFoundError("Club", club_id)
    if club.deleted_at is not None or club.deactivated_at is None:
        raise NotEligibleError(
            club_id,
            deleted=club.deleted_at is not None,
            deactivated=club.deactivated_at is not None,
        )
    return club


def club_file_keys(session: Session, club_id: str) -> list[str]:
    """Object keys of the files only this club references, logo included.

    Files also attached to a user or to another club stay in the object
    store; their rows survive the purge as well.
    """
    associated = select(ClubFile.file_id).where(ClubFile.club_id == club_id)
    logo = select(Club.logo_file_id).where(Club.id == club_id, Club.logo_file_id.is_not(None))
    # Must match the orphan sweep in purge(): a row it keeps keeps its object.
    shared_elsewhere = or_(
        select(UserFile.id).where(UserFile.file_id == File.id).exists(),
        select(ClubFile.id)
        .where(ClubFile.file_id == File.id, ClubFile.club_id != club_id)
        .exists(),
        select(Club.id).where(Club.logo_file_id == File.id, Club.id != club_id).exists(),
    )
    stmt = (
        select(File.s3_key)
        .where(or_(File.id.in_(associated), File.id.in_(logo)), ~shared_elsewhere)
        .order_by(File.s3_key)
    )
    return list(session.scalars(stmt))


class CascadeDeletionService:
    """Purges every club-owned row and tombstones the club.

    Runs inside the session passed to :meth:`purge`; the caller owns the
    transaction so eligibility check and purge commit or roll back together.
    """

    def purge(
        self,
        session: Session,
        club: Club,
        deleted_by: str,
        now: datetime,
    ) -> CascadeDeletionResult:
        result = CascadeDeletionResult()
        club_id = club.id
        member_ids = select(Member.id).where(Member.club_id == club_id)

        def _delete(name: str, stmt: Delete) -> None:
            outcome = session.execute(stmt.execution_options(synchronize_session=False))
            result.rows_deleted[name] = outcome.rowcount

        _delete(
            "member_status_transitions",
            delete(MemberStatusTransition).where(
                (MemberStatusTransition.club_id == club_id)
                | MemberStatusTransition.member_id.in_(member_ids)
            ),
        )
        _delete(
            "membership_periods",
            delete(MembershipPeriod).where(MembershipPeriod.member_id.in_(member_ids)),
        )
        _delete("members", delete(Member).where(Member.club_id == club_id))
        _delete("households", delete(Household).where(Household.club_id == club_id))
        _delete("number_ranges", delete(NumberRange).where(NumberRange.club_id == club_id))

        club.default_membership_type_id = None
        session.flush()
        _delete(
            "membership_types", delete(MembershipType).where(MembershipType.club_id == club_id)
        )

        file_ids = list(
            session.scalars(select(ClubFile.file_id).where(ClubFile.club_id == club_id))
        )
        if club.logo_file_id is not None:
            file_ids.append(club.logo_file_id)
        file_ids = list(dict.fromkeys(file_ids))

        _delete("club_files", delete(ClubFile).where(ClubFile.club_id == club_id))
        _delete("access_requests", delete(AccessRequest).where(AccessRequest.club_id == club_id))
        _delete("club_users", delete(ClubUser).where(ClubUser.club_id == club_id))
        _delete("audit_logs", delete(AuditLog).where(AuditLog.club_id == club_id))

        club.deleted_at = now
        club.deleted_by = deleted_by
        club.logo_file_id = None
        club.deactivated_at = None
        club.deactivated_by = None
        club.scheduled_deletion_at = None
        club.grace_period_days = None
        session.flush()

        for file_id in file_ids:
            if _is_referenced(session, file_id):
                continue
            session.execute(
                delete(File)
                .where(File.id == file_id)
                .execution_options(synchronize_session=False)
            )
            result.orphaned_files_deleted += 1

        logger.info(
            "club_data_purged",
            extra={
                "club_id": club_id,
                "rows_deleted": result.rows_deleted,
                "orphaned_files_deleted": result.orphaned_files_deleted,
            },
        )
        return result


def _is_referenced(session: Session, file_id: str) -> bool:
    counts = (
        select(func.count()).select_from(ClubFile).where(ClubFile.file_id == file_id),
        select(func.count()).select_from(UserFile).where(UserFile.file_id == file_id),
        select(func.count()).select_from(Club).where(Club.logo_file_id == file_id),
    )
    return any(session.scalar(stmt) for stmt in counts)
