"""Request and response models for the membership HTTP surface."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from clubkeep.foundation.domain.member_value_objects import LeftCategory, MemberStatus


class ChangeStatusRequest(BaseModel):
    to_status: MemberStatus
    reason: str = Field(min_length=1, max_length=500)
    effective_date: date | None = None
    left_category: LeftCategory | None = None


class BulkChangeStatusRequest(BaseModel):
    member_ids: list[str] = Field(min_length=1, max_length=500)
    to_status: MemberStatus
    reason: str = Field(min_length=1, max_length=500)
    effective_date: date | None = None
    left_category: LeftCategory | None = None


class SkippedMemberResponse(BaseModel):
    id: str
    reason: str


class BulkChangeStatusResponse(BaseModel):
    updated: list[str]
    skipped: list[SkippedMemberResponse]


class SetCancellationRequest(BaseModel):
    cancellation_date: date
    received_at: datetime | None = None
    reason: str | None = Field(default=None, max_length=500)


class CreateMemberRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    status: MemberStatus = MemberStatus.PENDING
    join_date: date | None = None
    email: str | None = None
    phone: str | None = None
    street: str | None = None
    postal_code: str | None = None
    city: str | None = None
    notes: str | None = None
    household_id: str | None = None
    membership_type_id: str | None = None


class UpdateMemberRequest(BaseModel):
    """Field edit. Only the fields present in the body are changed."""

    model_config = ConfigDict(extra="forbid")

    version: int = Field(ge=1)
    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = None
    phone: str | None = None
    street: str | None = None
    postal_code: str | None = None
    city: str | None = None
    notes: str | None = None
    household_id: str | None = None
    membership_type_id: str | None = None

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True, exclude={"version"})


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    club_id: str
    member_number: str | None
    first_name: str
    last_name: str
    email: str | None
    status: MemberStatus
    left_category: LeftCategory | None
    cancellation_date: date | None
    cancellation_received_at: datetime | None
    status_changed_at: datetime | None
    status_changed_by: str | None
    status_change_reason: str | None
    version: int
    deleted_at: datetime | None


class StatusTransitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: str
    from_status: MemberStatus
    to_status: MemberStatus
    reason: str
    left_category: LeftCategory | None
    effective_date: date
    actor_id: str
    created_at: datetime
