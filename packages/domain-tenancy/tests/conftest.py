"""Shared fixtures for domain-tenancy tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

import pytest

from clubkeep.domain.tenancy.deletion import PermanentDeletionOrchestrator
from clubkeep.domain.tenancy.lifecycle import ClubLifecycleService
from clubkeep.domain.tenancy.settings import LifecycleSettings
from clubkeep.infra.persistence.models import (
    AccessRequest,
    AuditLog,
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
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker


@dataclass
class SeededClub:
    """Identifiers of a deactivated club with data in every club-owned table."""

    club_id: str
    slug: str
    member_ids: list[str]
    file_keys: list[str]
    shared_file_id: str
    log_id: str


@pytest.fixture()
def lifecycle_settings() -> LifecycleSettings:
    return LifecycleSettings(
        platform_min_grace_days=7,
        max_grace_days=90,
        milestone_week_days=7,
        system_actor_id="system",
    )


@pytest.fixture()
def orchestrator(
    session_factory: sessionmaker[Session], object_store: Any, clock: Any
) -> PermanentDeletionOrchestrator:
    return PermanentDeletionOrchestrator(session_factory, object_store, clock)


@pytest.fixture()
def lifecycle(
    session_factory: sessionmaker[Session],
    clock: Any,
    orchestrator: PermanentDeletionOrchestrator,
    lifecycle_settings: LifecycleSettings,
) -> ClubLifecycleService:
    return ClubLifecycleService(
        session_factory, clock, orchestrator=orchestrator, settings=lifecycle_settings
    )


@pytest.fixture()
def seed_club(session_factory: sessionmaker[Session], clock: Any) -> Any:
    """Factory fixture creating a deactivated, fully populated club.

    The club has two members (one with a period and transitions), a default
    membership type, a household, a number range, two associated files plus
    a logo, a file it shares with a user, and an open deletion log.
    """

    def _seed(slug: str = "rowing-club", *, overdue_days: int = 3) -> SeededClub:
        now = clock.now()
        deactivated_at = now - timedelta(days=7 + overdue_days)
        scheduled = deactivated_at + timedelta(days=7)
        with session_factory() as session, session.begin():
            club = Club(
                name=f"Club {slug}",
                slug=slug,
                created_at=now - timedelta(days=400),
                deactivated_at=deactivated_at,
                deactivated_by="admin-1",
                scheduled_deletion_at=scheduled,
                grace_period_days=7,
            )
            session.add(club)
            session.flush()

            membership_type = MembershipType(club_id=club.id, name="Adult")
            household = Household(club_id=club.id, name="Lovelace")
            session.add_all([membership_type, household])
            session.flush()
            club.default_membership_type_id = membership_type.id
            session.add(NumberRange(club_id=club.id, prefix="M-", next_value=3))

            members = [
                Member(
                    club_id=club.id,
                    household_id=household.id,
                    membership_type_id=membership_type.id,
                    first_name="Ada",
                    last_name="Lovelace",
                    status="ACTIVE",
                    version=1,
                ),
                Member(club_id=club.id, first_name="Alan", last_name="Turing", status="PENDING"),
            ]
            session.add_all(members)
            session.flush()
            session.add(
                MembershipPeriod(
                    member_id=members[0].id,
                    membership_type_id=membership_type.id,
                    join_date=date(2020, 1, 1),
                )
            )
            session.add(
                MemberStatusTransition(
                    member_id=members[0].id,
                    club_id=club.id,
                    from_status="PENDING",
                    to_status="ACTIVE",
                    reason="approved",
                    effective_date=date(2020, 1, 1),
                    actor_id="admin-1",
                    created_at=now - timedelta(days=300),
                )
            )

            files = [
                File(s3_key=f"clubs/{slug}/minutes.pdf"),
                File(s3_key=f"clubs/{slug}/statutes.pdf"),
                File(s3_key=f"clubs/{slug}/logo.png"),
            ]
            shared = File(s3_key=f"shared/{slug}/photo.jpg")
            session.add_all([*files, shared])
            session.flush()
            session.add_all(
                [
                    ClubFile(club_id=club.id, file_id=files[0].id),
                    ClubFile(club_id=club.id, file_id=files[1].id),
                    ClubFile(club_id=club.id, file_id=shared.id),
                    UserFile(user_id="user-9", file_id=shared.id),
                ]
            )
            club.logo_file_id = files[2].id
            session.add_all(
                [
                    AccessRequest(club_id=club.id, user_id="user-7"),
                    ClubUser(club_id=club.id, user_id="admin-1", role="OWNER"),
                    AuditLog(club_id=club.id, actor_id="admin-1", action="CLUB_DEACTIVATED"),
                ]
            )
            log = ClubDeletionLog(
                club_name=club.name,
                club_slug=slug,
                initiated_by="admin-1",
                deactivated_at=deactivated_at,
                scheduled_deletion_at=scheduled,
                member_count=2,
                notification_events=[
                    {
                        "type": "T_GRACE",
                        "timestamp": deactivated_at.isoformat(),
                        "daysRemaining": 7,
                    }
                ],
                created_at=deactivated_at,
            )
            session.add(log)
            session.flush()
            return SeededClub(
                club_id=club.id,
                slug=slug,
                member_ids=[m.id for m in members],
                file_keys=sorted(f.s3_key for f in files),
                shared_file_id=shared.id,
                log_id=log.id,
            )

    return _seed
