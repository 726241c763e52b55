"""Club lifecycle REST API routers.

``router`` holds the club-scoped deactivation endpoints; ``admin_router``
holds the platform-admin view of pending deletions and the force delete.
Both are registered through the ``clubkeep.routers`` entry-point group.
"""

from fastapi import APIRouter

from clubkeep.domain.tenancy.dependencies import Lifecycle
from clubkeep.domain.tenancy.schemas import (
    ClubLifecycleResponse,
    DeactivateClubRequest,
    DeletionLogResponse,
    DeletionReportResponse,
    PendingDeletionResponse,
)
from clubkeep.infra.fastapi.dependencies import ActorId, CurrentClub

router = APIRouter(prefix="/clubs/{slug}", tags=["club-lifecycle"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])


# -- Club-scoped -----------------------------------------------------------------


@router.post("/deactivate")
def deactivate_club(
    body: DeactivateClubRequest,
    club: CurrentClub,
    actor_id: ActorId,
    lifecycle: Lifecycle,
) -> ClubLifecycleResponse:
    """Deactivate the club and schedule its permanent deletion."""
    deactivated = lifecycle.deactivate(
        club.id, body.confirmation_name, body.grace_period_days, actor_id
    )
    return ClubLifecycleResponse.model_validate(deactivated)


@router.post("/reactivate")
def reactivate_club(
    club: CurrentClub,
    actor_id: ActorId,
    lifecycle: Lifecycle,
) -> ClubLifecycleResponse:
    return ClubLifecycleResponse.model_validate(lifecycle.reactivate(club.id, actor_id))


# -- Platform admin --------------------------------------------------------------


@admin_router.get("/clubs/pending-deletion")
def list_pending_deletions(lifecycle: Lifecycle) -> list[PendingDeletionResponse]:
    return [
        PendingDeletionResponse.model_validate(pending)
        for pending in lifecycle.list_pending_deletions()
    ]


@admin_router.get("/deletion-logs")
def list_deletion_logs(lifecycle: Lifecycle) -> list[DeletionLogResponse]:
    """Every deletion compliance log, newest first."""
    return [DeletionLogResponse.model_validate(log) for log in lifecycle.list_deletion_logs()]


@admin_router.post("/clubs/{club_id}/force-delete")
def force_delete_club(
    club_id: str,
    actor_id: ActorId,
    lifecycle: Lifecycle,
) -> DeletionReportResponse:
    """Permanently delete a club immediately. Irreversible."""
    report = lifecycle.force_delete(club_id, actor_id)
    return DeletionReportResponse(
        club_id=report.club_id,
        club_slug=report.club_slug,
        files_deleted=len(report.files_deleted),
        files_failed=len(report.files_failed),
        rows_deleted=report.rows_deleted,
        orphaned_files_deleted=report.orphaned_files_deleted,
        log_completed=report.log_completed,
        phase_errors=report.phase_errors,
    )
