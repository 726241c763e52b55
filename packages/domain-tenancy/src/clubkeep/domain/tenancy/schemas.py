"""Request and response models for the club lifecycle HTTP surface."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DeactivateClubRequest(BaseModel):
    """Deactivation request.

    ``confirmation_name`` must repeat the club's name exactly. A grace
    period below the platform minimum is raised to it.
    """

    confirmation_name: str = Field(min_length=1, max_length=255)
    grace_period_days: int = Field(ge=0)


class ClubLifecycleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    deactivated_at: datetime | None
    deactivated_by: str | None
    scheduled_deletion_at: datetime | None
    grace_period_days: int | None


class PendingDeletionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    club_id: str
    name: str
    slug: str
    deactivated_at: datetime
    deactivated_by: str | None
    scheduled_deletion_at: datetime
    grace_period_days: int | None
    member_count: int
    days_remaining: int


class DeletionLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    club_name: str
    club_slug: str
    initiated_by: str
    deactivated_at: datetime
    scheduled_deletion_at: datetime
    deleted_at: datetime | None
    member_count: int
    notification_events: list[dict[str, Any]]
    cancelled: bool
    cancelled_at: datetime | None
    cancelled_by: str | None
    created_at: datetime


class DeletionReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    club_id: str
    club_slug: str
    files_deleted: int
    files_failed: int
    rows_deleted: dict[str, int]
    orphaned_files_deleted: int
    log_completed: bool
    phase_errors: dict[str, str]
