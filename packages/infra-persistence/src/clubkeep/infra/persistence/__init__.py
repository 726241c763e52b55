"""Clubkeep Infra Persistence -- engine, transactions and the ORM schema."""

from clubkeep.infra.persistence.database import (
    DatabaseManager,
    DatabaseSettings,
    SessionFactory,
    dispose_engine,
    get_database_manager,
    get_sync_engine,
    get_sync_session_factory,
    run_in_transaction,
)
from clubkeep.infra.persistence.lifespan import lifespan_contribution
from clubkeep.infra.persistence.models import (
    AccessRequest,
    AuditLog,
    Base,
    Club,
    ClubDeletionLog,
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
    UTCDateTime,
    ensure_schema,
    new_id,
)

__all__ = [
    "AccessRequest",
    "AuditLog",
    "Base",
    "Club",
    "ClubDeletionLog",
    "ClubFile",
    "ClubUser",
    "DatabaseManager",
    "DatabaseSettings",
    "File",
    "Household",
    "Member",
    "MemberStatusTransition",
    "MembershipPeriod",
    "MembershipType",
    "NumberRange",
    "SessionFactory",
    "UTCDateTime",
    "UserFile",
    "dispose_engine",
    "ensure_schema",
    "get_database_manager",
    "get_sync_engine",
    "get_sync_session_factory",
    "lifespan_contribution",
    "new_id",
    "run_in_transaction",
]
