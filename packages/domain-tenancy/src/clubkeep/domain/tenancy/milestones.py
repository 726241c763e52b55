"""Milestone rules for deactivated clubs.

Pure functions: given the schedule of a deletion log, the milestone types
already recorded and the current instant, decide which events are due.
Idempotency comes from the recorded types, so evaluating the same log
twice at the same instant yields nothing the second time.
"""

from __future__ import annotations

import math
from datetime import timedelta
from typing import TYPE_CHECKING

from clubkeep.foundation.domain.club_value_objects import NotificationEvent, NotificationEventType

if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import datetime

ONE_DAY = timedelta(days=1)


def days_until(moment: datetime, now: datetime) -> int:
    """Whole days from ``now`` to ``moment``, rounded up. Negative once passed."""
    return math.ceil((moment - now) / ONE_DAY)


def due_milestones(
    scheduled_deletion_at: datetime,
    deactivated_at: datetime,
    recorded: Collection[str],
    now: datetime,
    week_days: int = 7,
) -> list[NotificationEvent]:
    """Return the milestone events to append, in firing order.

    - ``T-7`` while 1 < days remaining <= ``week_days``, only when the grace
      period itself was longer than ``week_days``.
    - ``T-1`` while 0 < days remaining <= 1.
    - ``T-0`` once the deletion date is reached; recorded with 0 days remaining.

    Args:
        scheduled_deletion_at: When the club becomes eligible for deletion.
        deactivated_at: When the grace period started.
        recorded: Event types already on the log.
        now: Current instant.
        week_days: Offset of the ``T-7`` milestone.
    """
    remaining = days_until(scheduled_deletion_at, now)
    grace_days = math.ceil((scheduled_deletion_at - deactivated_at) / ONE_DAY)
    due: list[NotificationEvent] = []

    if (
        1 < remaining <= week_days
        and grace_days > week_days
        and NotificationEventType.T_7 not in recorded
    ):
        due.append(_event(NotificationEventType.T_7, now, remaining))
    if 0 < remaining <= 1 and NotificationEventType.T_1 not in recorded:
        due.append(_event(NotificationEventType.T_1, now, remaining))
    if remaining <= 0 and NotificationEventType.T_0 not in recorded:
        due.append(_event(NotificationEventType.T_0, now, 0))
    return due


def _event(kind: NotificationEventType, now: datetime, remaining: int) -> NotificationEvent:
    return NotificationEvent(type=kind, timestamp=now, days_remaining=remaining)
