"""Value objects for the member lifecycle.

The member status state machine is declared as data: :data:`VALID_TRANSITIONS`
maps every status to the frozen set of statuses it may move to. All
transition checks go through :func:`is_valid_transition` so the edge table
stays the single reviewable artifact.

    PENDING   -> ACTIVE, PROBATION, LEFT
    PROBATION -> ACTIVE, LEFT
    ACTIVE    -> DORMANT, SUSPENDED, LEFT
    DORMANT   -> ACTIVE, LEFT
    SUSPENDED -> ACTIVE, DORMANT, LEFT
    LEFT      -> (terminal)
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType


class MemberStatus(StrEnum):
    """Member lifecycle states.

    Uses StrEnum for native JSON serialization and database storage.
    """

    PENDING = "PENDING"
    PROBATION = "PROBATION"
    ACTIVE = "ACTIVE"
    DORMANT = "DORMANT"
    SUSPENDED = "SUSPENDED"
    LEFT = "LEFT"


class LeftCategory(StrEnum):
    """Categorical sub-reason recorded when a member leaves.

    Required whenever the target status is LEFT; never inferred.
    """

    VOLUNTARY = "VOLUNTARY"
    EXCLUSION = "EXCLUSION"
    REJECTED = "REJECTED"
    DEATH = "DEATH"
    OTHER = "OTHER"


VALID_TRANSITIONS: Mapping[MemberStatus, frozenset[MemberStatus]] = MappingProxyType(
    {
        MemberStatus.PENDING: frozenset(
            {MemberStatus.ACTIVE, MemberStatus.PROBATION, MemberStatus.LEFT}
        ),
        MemberStatus.PROBATION: frozenset({MemberStatus.ACTIVE, MemberStatus.LEFT}),
        MemberStatus.ACTIVE: frozenset(
            {MemberStatus.DORMANT, MemberStatus.SUSPENDED, MemberStatus.LEFT}
        ),
        MemberStatus.DORMANT: frozenset({MemberStatus.ACTIVE, MemberStatus.LEFT}),
        MemberStatus.SUSPENDED: frozenset(
            {MemberStatus.ACTIVE, MemberStatus.DORMANT, MemberStatus.LEFT}
        ),
        MemberStatus.LEFT: frozenset(),
    }
)

# Statuses in which a future cancellation may be recorded or revoked.
CANCELLABLE_STATUSES: frozenset[MemberStatus] = frozenset(
    {
        MemberStatus.PROBATION,
        MemberStatus.ACTIVE,
        MemberStatus.DORMANT,
        MemberStatus.SUSPENDED,
    }
)


def allowed_transitions(from_status: MemberStatus) -> list[MemberStatus]:
    """Return the allowed target statuses for ``from_status`` in declaration order."""
    targets = VALID_TRANSITIONS[from_status]
    return [status for status in MemberStatus if status in targets]


def is_valid_transition(from_status: MemberStatus, to_status: MemberStatus) -> bool:
    """Check whether ``from_status -> to_status`` is an edge of the state machine."""
    return to_status in VALID_TRANSITIONS[from_status]
