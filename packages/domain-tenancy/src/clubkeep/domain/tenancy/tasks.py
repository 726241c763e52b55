"""Scheduled club lifecycle tasks.

The deletion sweep runs at midnight UTC and the milestone sweep an hour
later, so milestone events are written against the state the deletion
sweep left behind.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from clubkeep.domain.tenancy.deletion import PermanentDeletionOrchestrator
from clubkeep.domain.tenancy.scheduler import LifecycleScheduler
from clubkeep.domain.tenancy.settings import get_lifecycle_settings
from clubkeep.foundation.domain.ports import SystemClock
from clubkeep.infra.persistence.database import get_sync_session_factory
from clubkeep.infra.storage import get_object_store
from clubkeep.infra.taskiq import broker


def build_scheduler() -> LifecycleScheduler:
    settings = get_lifecycle_settings()
    session_factory = get_sync_session_factory()
    clock = SystemClock()
    orchestrator = PermanentDeletionOrchestrator(
        session_factory,
        get_object_store(),
        clock,
        system_actor_id=settings.system_actor_id,
    )
    return LifecycleScheduler(
        session_factory,
        orchestrator,
        clock,
        system_actor_id=settings.system_actor_id,
        milestone_week_days=settings.milestone_week_days,
    )


@broker.task(
    task_name="clubkeep.tenancy.deletion_sweep",
    schedule=[{"cron": get_lifecycle_settings().deletion_sweep_cron}],
)
def deletion_sweep() -> dict[str, Any]:
    """Permanently delete clubs whose grace period has ended."""
    return asdict(build_scheduler().run_deletion_sweep())


@broker.task(
    task_name="clubkeep.tenancy.milestone_sweep",
    schedule=[{"cron": get_lifecycle_settings().milestone_sweep_cron}],
)
def milestone_sweep() -> dict[str, Any]:
    """Append due deletion milestones to open deletion logs."""
    return asdict(build_scheduler().run_milestone_sweep())
