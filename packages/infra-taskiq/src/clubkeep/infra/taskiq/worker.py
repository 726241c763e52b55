"""Worker and scheduler entry point.

Importing this module loads every task module registered under the
``clubkeep.tasks`` entry-point group, so both CLI processes see the same
tasks and schedule labels::

    taskiq worker clubkeep.infra.taskiq.worker:broker
    taskiq scheduler clubkeep.infra.taskiq.worker:scheduler --skip-first-run
"""

from __future__ import annotations

import logging
from typing import Any

from taskiq import TaskiqEvents, TaskiqState

from clubkeep.foundation.application.discovery import discover
from clubkeep.infra.observability.logging import configure_logging
from clubkeep.infra.persistence.database import dispose_engine
from clubkeep.infra.taskiq.broker import get_broker, get_scheduler

TASKS_GROUP = "clubkeep.tasks"

logger = logging.getLogger(__name__)


def load_task_modules() -> list[Any]:
    """Import all registered task modules and return them."""
    return [contribution.value for contribution in discover(TASKS_GROUP)]


async def _on_worker_startup(state: TaskiqState) -> None:
    configure_logging()
    logger.info("taskiq_worker_started")


async def _on_worker_shutdown(state: TaskiqState) -> None:
    dispose_engine()
    logger.info("taskiq_worker_stopped")


broker = get_broker()
broker.add_event_handler(TaskiqEvents.WORKER_STARTUP, _on_worker_startup)
broker.add_event_handler(TaskiqEvents.WORKER_SHUTDOWN, _on_worker_shutdown)
scheduler = get_scheduler()
task_modules = load_task_modules()
