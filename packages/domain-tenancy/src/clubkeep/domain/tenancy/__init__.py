"""Clubkeep Domain Tenancy -- club deactivation, deletion and scheduling."""

from clubkeep.domain.tenancy.deletion import (
    DeletionPhase,
    DeletionReport,
    FailurePolicy,
    PermanentDeletionOrchestrator,
)
from clubkeep.domain.tenancy.lifecycle import ClubLifecycleService, PendingDeletion
from clubkeep.domain.tenancy.milestones import days_until, due_milestones
from clubkeep.domain.tenancy.scheduler import (
    DeletionSweepResult,
    LifecycleScheduler,
    MilestoneSweepResult,
)
from clubkeep.domain.tenancy.settings import LifecycleSettings, get_lifecycle_settings

__all__ = [
    "ClubLifecycleService",
    "DeletionPhase",
    "DeletionReport",
    "DeletionSweepResult",
    "FailurePolicy",
    "LifecycleScheduler",
    "LifecycleSettings",
    "MilestoneSweepResult",
    "PendingDeletion",
    "PermanentDeletionOrchestrator",
    "days_until",
    "due_milestones",
    "get_lifecycle_settings",
]
