"""Membership REST API router.

Club-scoped member endpoints. The club comes from the ``{slug}`` path
parameter and the acting user from the ``X-User-ID`` header; domain errors
are rendered as problem details by the application's error handlers.
"""

from fastapi import APIRouter, Query, status

from clubkeep.domain.membership.dependencies import Members, StatusService
from clubkeep.domain.membership.schemas import (
    BulkChangeStatusRequest,
    BulkChangeStatusResponse,
    ChangeStatusRequest,
    CreateMemberRequest,
    MemberResponse,
    SetCancellationRequest,
    SkippedMemberResponse,
    StatusTransitionResponse,
    UpdateMemberRequest,
)
from clubkeep.infra.fastapi.dependencies import ActorId, CurrentClub

router = APIRouter(prefix="/clubs/{slug}/members", tags=["members"])

_INTAKE_KEYS = {"first_name", "last_name", "status", "join_date"}


# -- Member records ------------------------------------------------------------


@router.post("", status_code=status.HTTP_201_CREATED)
def create_member(
    body: CreateMemberRequest,
    club: CurrentClub,
    actor_id: ActorId,
    members: Members,
) -> MemberResponse:
    """Register a member, optionally opening a membership period."""
    member = members.create_member(
        club.id,
        body.first_name,
        body.last_name,
        actor_id,
        status=body.status,
        join_date=body.join_date,
        **body.model_dump(exclude=_INTAKE_KEYS, exclude_none=True),
    )
    return MemberResponse.model_validate(member)


@router.get("/{member_id}")
def get_member(member_id: str, club: CurrentClub, members: Members) -> MemberResponse:
    return MemberResponse.model_validate(members.get_member(club.id, member_id))


@router.patch("/{member_id}")
def update_member(
    member_id: str,
    body: UpdateMemberRequest,
    club: CurrentClub,
    members: Members,
) -> MemberResponse:
    """Edit profile fields. ``version`` must match the stored version (409 otherwise)."""
    member = members.update_member(club.id, member_id, body.version, body.changes())
    return MemberResponse.model_validate(member)


@router.delete("/{member_id}")
def delete_member(
    member_id: str,
    club: CurrentClub,
    actor_id: ActorId,
    members: Members,
) -> MemberResponse:
    """Soft-delete a member who has left."""
    return MemberResponse.model_validate(members.soft_delete_member(club.id, member_id, actor_id))


# -- Status transitions --------------------------------------------------------


@router.post("/bulk-status")
def bulk_change_status(
    body: BulkChangeStatusRequest,
    club: CurrentClub,
    actor_id: ActorId,
    service: StatusService,
) -> BulkChangeStatusResponse:
    """Best-effort status change for many members; failures are reported, not raised."""
    result = service.bulk_change_status(
        club.id,
        body.member_ids,
        body.to_status,
        body.reason,
        actor_id,
        effective_date=body.effective_date,
        left_category=body.left_category,
    )
    return BulkChangeStatusResponse(
        updated=result.updated,
        skipped=[SkippedMemberResponse(id=s.id, reason=s.reason) for s in result.skipped],
    )


@router.post("/{member_id}/status")
def change_status(
    member_id: str,
    body: ChangeStatusRequest,
    club: CurrentClub,
    actor_id: ActorId,
    service: StatusService,
) -> MemberResponse:
    member = service.change_status(
        club.id,
        member_id,
        body.to_status,
        body.reason,
        actor_id,
        effective_date=body.effective_date,
        left_category=body.left_category,
    )
    return MemberResponse.model_validate(member)


@router.get("/{member_id}/status-history")
def get_status_history(
    member_id: str,
    club: CurrentClub,
    service: StatusService,
) -> list[StatusTransitionResponse]:
    """Audit entries of the member, newest first."""
    return [
        StatusTransitionResponse.model_validate(entry)
        for entry in service.get_status_history(club.id, member_id)
    ]


# -- Cancellation --------------------------------------------------------------


@router.post("/{member_id}/cancellation")
def set_cancellation(
    member_id: str,
    body: SetCancellationRequest,
    club: CurrentClub,
    actor_id: ActorId,
    service: StatusService,
) -> MemberResponse:
    member = service.set_cancellation(
        club.id,
        member_id,
        body.cancellation_date,
        actor_id,
        received_at=body.received_at,
        reason=body.reason,
    )
    return MemberResponse.model_validate(member)


@router.delete("/{member_id}/cancellation")
def revoke_cancellation(
    member_id: str,
    club: CurrentClub,
    actor_id: ActorId,
    service: StatusService,
    reason: str | None = Query(default=None, max_length=500),
) -> MemberResponse:
    member = service.revoke_cancellation(club.id, member_id, actor_id, reason=reason)
    return MemberResponse.model_validate(member)
