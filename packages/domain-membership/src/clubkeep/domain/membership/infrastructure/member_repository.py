"""Member lookups shared by the membership services.

Every function works on a caller-owned session so it participates in the
caller's transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from clubkeep.foundation.domain.exceptions import NotFoundError
from clubkeep.infra.persistence.models import Member, MembershipPeriod, NumberRange

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def load_member(
    session: Session,
    club_id: str,
    member_id: str,
    *,
    for_update: bool = False,
) -> Member:
    """Load a live member of ``club_id``.

    Soft-deleted members and members of other clubs are reported as missing.

    Args:
        session: Open session.
        club_id: Owning club.
        member_id: Member identifier.
        for_update: Take a row lock (``SELECT ... FOR UPDATE``).

    Raises:
        NotFoundError: If no visible member matches.
    """
    stmt = select(Member).where(
        Member.id == member_id,
        Member.club_id == club_id,
        Member.deleted_at.is_(None),
    )
    if for_update:
        stmt = stmt.with_for_update()
    member = session.scalars(stmt).one_or_none()
    if member is None:
        raise NotFoundError("Member", member_id, club_id=club_id)
    return member


def open_periods(session: Session, member_id: str) -> list[MembershipPeriod]:
    """Return the member's periods without a leave date, newest first."""
    stmt = (
        select(MembershipPeriod)
        .where(MembershipPeriod.member_id == member_id, MembershipPeriod.leave_date.is_(None))
        .order_by(MembershipPeriod.join_date.desc())
    )
    return list(session.scalars(stmt))


def allocate_member_number(session: Session, club_id: str) -> str | None:
    """Hand out the next member number from the club's number range.

    Returns None when the club has no member number range configured.
    """
    stmt = (
        select(NumberRange)
        .where(NumberRange.club_id == club_id, NumberRange.entity_type == "MEMBER")
        .with_for_update()
    )
    number_range = session.scalars(stmt).first()
    if number_range is None:
        return None
    value = number_range.next_value
    number_range.next_value = value + 1
    return f"{number_range.prefix}{value}"
