"""SQLAlchemy ORM schema for the club and membership lifecycle.

Every club-owned table references ``clubs`` (directly or through a parent)
with a plain foreign key and no ``ON DELETE CASCADE``: permanent deletion
removes children explicitly, in dependency order, inside one transaction.
``club_deletion_logs`` deliberately has no foreign key to ``clubs`` so the
compliance record outlives the club's data.

All timestamps are stored through :class:`UTCDateTime` and always come back
as timezone-aware UTC datetimes, on PostgreSQL and SQLite alike.
"""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.engine import Dialect, Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def new_id() -> str:
    """Generate a primary key for club-scoped rows."""
    return str(uuid.uuid4())


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware datetime column normalized to UTC.

    Naive values are interpreted as UTC on the way in; values loaded from
    backends that drop the offset (SQLite) get UTC re-attached.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Base(DeclarativeBase):
    """Declarative base for all clubkeep tables."""

    type_annotation_map = {datetime: UTCDateTime}


# ---------------------------------------------------------------------------
# Shared resources
# ---------------------------------------------------------------------------


class File(Base):
    """Uploaded blob metadata. Shared between clubs and users."""

    __tablename__ = "files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    s3_key: Mapped[str] = mapped_column(String(512), unique=True)
    filename: Mapped[str] = mapped_column(String(255), default="")
    created_at: Mapped[datetime | None] = mapped_column(default=None)


class UserFile(Base):
    __tablename__ = "user_files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    file_id: Mapped[str] = mapped_column(ForeignKey("files.id"), index=True)


# ---------------------------------------------------------------------------
# Club (tenant)
# ---------------------------------------------------------------------------


class Club(Base):
    """The tenant row.

    The deactivation quartet (``deactivated_at``, ``deactivated_by``,
    ``scheduled_deletion_at``, ``grace_period_days``) is either fully set or
    fully null. ``deleted_at`` is the terminal tombstone.
    """

    __tablename__ = "clubs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(63), unique=True)
    logo_file_id: Mapped[str | None] = mapped_column(ForeignKey("files.id"), default=None)
    default_membership_type_id: Mapped[str | None] = mapped_column(
        ForeignKey(
            "membership_types.id",
            use_alter=True,
            name="fk_clubs_default_membership_type_id",
        ),
        default=None,
    )
    created_at: Mapped[datetime | None] = mapped_column(default=None)

    deactivated_at: Mapped[datetime | None] = mapped_column(default=None)
    deactivated_by: Mapped[str | None] = mapped_column(String(64), default=None)
    scheduled_deletion_at: Mapped[datetime | None] = mapped_column(default=None, index=True)
    grace_period_days: Mapped[int | None] = mapped_column(Integer, default=None)

    deleted_at: Mapped[datetime | None] = mapped_column(default=None)
    deleted_by: Mapped[str | None] = mapped_column(String(64), default=None)

    @property
    def is_deactivated(self) -> bool:
        return self.deactivated_at is not None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class MembershipType(Base):
    __tablename__ = "membership_types"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    club_id: Mapped[str] = mapped_column(ForeignKey("clubs.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))


class Household(Base):
    __tablename__ = "households"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    club_id: Mapped[str] = mapped_column(ForeignKey("clubs.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))


class NumberRange(Base):
    """Per-club counter used to hand out member numbers."""

    __tablename__ = "number_ranges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    club_id: Mapped[str] = mapped_column(ForeignKey("clubs.id"), index=True)
    entity_type: Mapped[str] = mapped_column(String(32), default="MEMBER")
    prefix: Mapped[str] = mapped_column(String(16), default="")
    next_value: Mapped[int] = mapped_column(Integer, default=1)


class ClubFile(Base):
    __tablename__ = "club_files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    club_id: Mapped[str] = mapped_column(ForeignKey("clubs.id"), index=True)
    file_id: Mapped[str] = mapped_column(ForeignKey("files.id"), index=True)


class AccessRequest(Base):
    __tablename__ = "access_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    club_id: Mapped[str] = mapped_column(ForeignKey("clubs.id"), index=True)
    user_id: Mapped[str] = mapped_column(String(64))
    status: Mapped[str] = mapped_column(String(16), default="PENDING")
    created_at: Mapped[datetime | None] = mapped_column(default=None)


class ClubUser(Base):
    __tablename__ = "club_users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    club_id: Mapped[str] = mapped_column(ForeignKey("clubs.id"), index=True)
    user_id: Mapped[str] = mapped_column(String(64))
    role: Mapped[str] = mapped_column(String(32), default="MEMBER")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    club_id: Mapped[str] = mapped_column(ForeignKey("clubs.id"), index=True)
    actor_id: Mapped[str | None] = mapped_column(String(64), default=None)
    action: Mapped[str] = mapped_column(String(64))
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, default=None)
    created_at: Mapped[datetime | None] = mapped_column(default=None)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


class Member(Base):
    """A person tracked by a club.

    ``version`` guards plain field edits; status transitions are guarded by
    re-reading ``status`` under a row lock instead.
    """

    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    club_id: Mapped[str] = mapped_column(ForeignKey("clubs.id"), index=True)
    household_id: Mapped[str | None] = mapped_column(ForeignKey("households.id"), default=None)
    membership_type_id: Mapped[str | None] = mapped_column(
        ForeignKey("membership_types.id"), default=None
    )
    member_number: Mapped[str | None] = mapped_column(String(32), default=None)
    first_name: Mapped[str] = mapped_column(String(255))
    last_name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    phone: Mapped[str | None] = mapped_column(String(64), default=None)
    street: Mapped[str | None] = mapped_column(String(255), default=None)
    postal_code: Mapped[str | None] = mapped_column(String(16), default=None)
    city: Mapped[str | None] = mapped_column(String(128), default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)

    status: Mapped[str] = mapped_column(String(16), default="PENDING")
    status_changed_at: Mapped[datetime | None] = mapped_column(default=None)
    status_changed_by: Mapped[str | None] = mapped_column(String(64), default=None)
    status_change_reason: Mapped[str | None] = mapped_column(Text, default=None)
    left_category: Mapped[str | None] = mapped_column(String(16), default=None)
    cancellation_date: Mapped[date | None] = mapped_column(Date, default=None)
    cancellation_received_at: Mapped[datetime | None] = mapped_column(default=None)

    version: Mapped[int] = mapped_column(Integer, default=1)
    created_at: Mapped[datetime | None] = mapped_column(default=None)
    updated_at: Mapped[datetime | None] = mapped_column(default=None)
    deleted_at: Mapped[datetime | None] = mapped_column(default=None)
    deleted_by: Mapped[str | None] = mapped_column(String(64), default=None)


class MembershipPeriod(Base):
    """A span of membership. ``leave_date`` is null while the period is open."""

    __tablename__ = "membership_periods"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    member_id: Mapped[str] = mapped_column(ForeignKey("members.id"), index=True)
    membership_type_id: Mapped[str | None] = mapped_column(
        ForeignKey("membership_types.id"), default=None
    )
    join_date: Mapped[date] = mapped_column(Date)
    leave_date: Mapped[date | None] = mapped_column(Date, default=None)


class MemberStatusTransition(Base):
    """Immutable audit record of one status change or cancellation event."""

    __tablename__ = "member_status_transitions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[str] = mapped_column(ForeignKey("members.id"), index=True)
    club_id: Mapped[str] = mapped_column(ForeignKey("clubs.id"), index=True)
    from_status: Mapped[str] = mapped_column(String(16))
    to_status: Mapped[str] = mapped_column(String(16))
    reason: Mapped[str] = mapped_column(Text, default="")
    left_category: Mapped[str | None] = mapped_column(String(16), default=None)
    effective_date: Mapped[date] = mapped_column(Date)
    actor_id: Mapped[str] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column()


# ---------------------------------------------------------------------------
# Deletion compliance log
# ---------------------------------------------------------------------------


class ClubDeletionLog(Base):
    """Compliance record of a club's deactivation and deletion.

    ``notification_events`` is an ordered list of
    ``{"type", "timestamp", "daysRemaining"}`` records. Assign a new list to
    change it; in-place mutation of the JSON value is not tracked.
    """

    __tablename__ = "club_deletion_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    club_name: Mapped[str] = mapped_column(String(255))
    club_slug: Mapped[str] = mapped_column(String(63), index=True)
    initiated_by: Mapped[str] = mapped_column(String(64))
    deactivated_at: Mapped[datetime] = mapped_column()
    scheduled_deletion_at: Mapped[datetime] = mapped_column()
    deleted_at: Mapped[datetime | None] = mapped_column(default=None)
    member_count: Mapped[int] = mapped_column(Integer, default=0)
    notification_events: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    cancelled: Mapped[bool] = mapped_column(Boolean, default=False)
    cancelled_at: Mapped[datetime | None] = mapped_column(default=None)
    cancelled_by: Mapped[str | None] = mapped_column(String(64), default=None)
    created_at: Mapped[datetime] = mapped_column()
    updated_at: Mapped[datetime | None] = mapped_column(default=None)

    @property
    def event_types(self) -> set[str]:
        return {str(event.get("type")) for event in self.notification_events or []}


def ensure_schema(engine: Engine) -> None:
    """Create every clubkeep table that does not exist yet.

    Development and test bootstrap only; production schemas are managed
    outside the application.
    """
    Base.metadata.create_all(engine)
