"""Value objects for the club (tenant) lifecycle.

Milestone events stored on a club deletion log.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class NotificationEventType(StrEnum):
    """Milestone types recorded on a deletion log.

    The wire values are stored verbatim in ``notification_events``.
    """

    T_GRACE = "T_GRACE"
    T_7 = "T-7"
    T_1 = "T-1"
    T_0 = "T-0"
    FORCE_DELETE = "FORCE_DELETE"


class NotificationEvent(BaseModel):
    """One milestone entry of a deletion log.

    Serialized as ``{"type", "timestamp", "daysRemaining"}`` with an ISO-8601
    timestamp.

    Example:
        >>> event = NotificationEvent(type="T-1", timestamp=now, days_remaining=1)
        >>> event.to_record()
        {'type': 'T-1', 'timestamp': '2026-01-01T00:00:00Z', 'daysRemaining': 1}
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: NotificationEventType
    timestamp: datetime
    days_remaining: int = Field(alias="daysRemaining")

    def to_record(self) -> dict[str, object]:
        """Render the JSON structure persisted on the deletion log."""
        return self.model_dump(mode="json", by_alias=True)
