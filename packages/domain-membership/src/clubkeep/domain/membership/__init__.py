"""Clubkeep Domain Membership -- member lifecycle and status transitions."""

from clubkeep.domain.membership.cancellation_sweep import (
    CancellationSweep,
    CancellationSweepResult,
)
from clubkeep.domain.membership.member_service import EDITABLE_FIELDS, MemberService
from clubkeep.domain.membership.settings import MembershipSettings, get_membership_settings
from clubkeep.domain.membership.status_service import (
    BulkStatusChangeResult,
    MemberStatusService,
    SkippedMember,
)

__all__ = [
    "EDITABLE_FIELDS",
    "BulkStatusChangeResult",
    "CancellationSweep",
    "CancellationSweepResult",
    "MemberService",
    "MemberStatusService",
    "MembershipSettings",
    "SkippedMember",
    "get_membership_settings",
]
