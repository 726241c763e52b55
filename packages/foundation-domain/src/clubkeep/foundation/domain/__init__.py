"""Clubkeep Foundation Domain -- pure Python domain primitives.

This package provides the foundational building blocks for the membership
lifecycle core: exceptions, member and club value objects, the member
status transition table, and port interfaces.
"""

from clubkeep.foundation.domain.club_value_objects import (
    NotificationEvent,
    NotificationEventType,
)
from clubkeep.foundation.domain.exceptions import (
    ConflictError,
    DomainError,
    InvalidStateTransitionError,
    NotEligibleError,
    NotFoundError,
    ValidationError,
)
from clubkeep.foundation.domain.member_value_objects import (
    CANCELLABLE_STATUSES,
    VALID_TRANSITIONS,
    LeftCategory,
    MemberStatus,
    allowed_transitions,
    is_valid_transition,
)
from clubkeep.foundation.domain.ports import ClockPort, ObjectStorePort, SystemClock

__all__ = [
    "CANCELLABLE_STATUSES",
    "VALID_TRANSITIONS",
    "ClockPort",
    "ConflictError",
    "DomainError",
    "InvalidStateTransitionError",
    "LeftCategory",
    "MemberStatus",
    "NotEligibleError",
    "NotFoundError",
    "NotificationEvent",
    "NotificationEventType",
    "ObjectStorePort",
    "SystemClock",
    "ValidationError",
    "allowed_transitions",
    "is_valid_transition",
]
