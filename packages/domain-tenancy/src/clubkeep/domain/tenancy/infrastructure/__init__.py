"""Persistence for the club lifecycle."""

from clubkeep.domain.tenancy.infrastructure.cascade_deletion import (
    CascadeDeletionResult,
    CascadeDeletionService,
    club_file_keys,
    load_club_for_deletion,
)
from clubkeep.domain.tenancy.infrastructure.deletion_log import (
    append_events,
    cancel_open_logs,
    create_deletion_log,
    find_open_log,
    find_pending_logs,
    list_deletion_logs,
)

__all__ = [
    "CascadeDeletionResult",
    "CascadeDeletionService",
    "append_events",
    "cancel_open_logs",
    "club_file_keys",
    "create_deletion_log",
    "find_open_log",
    "find_pending_logs",
    "list_deletion_logs",
    "load_club_for_deletion",
]
