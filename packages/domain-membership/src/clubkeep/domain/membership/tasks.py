"""Scheduled membership tasks.

Registered under the ``clubkeep.tasks`` entry-point group and loaded by the
worker and scheduler processes.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from clubkeep.domain.membership.cancellation_sweep import CancellationSweep
from clubkeep.domain.membership.settings import get_membership_settings
from clubkeep.domain.membership.status_service import MemberStatusService
from clubkeep.foundation.domain.ports import SystemClock
from clubkeep.infra.persistence.database import get_sync_session_factory
from clubkeep.infra.taskiq import broker


def build_cancellation_sweep() -> CancellationSweep:
    session_factory = get_sync_session_factory()
    clock = SystemClock()
    return CancellationSweep(
        session_factory,
        MemberStatusService(session_factory, clock),
        clock,
        system_actor_id=get_membership_settings().system_actor_id,
    )


@broker.task(
    task_name="clubkeep.membership.cancellation_sweep",
    schedule=[{"cron": get_membership_settings().cancellation_sweep_cron}],
)
def cancellation_sweep() -> dict[str, Any]:
    """Move members whose cancellation date has arrived to LEFT."""
    return asdict(build_cancellation_sweep().run())
