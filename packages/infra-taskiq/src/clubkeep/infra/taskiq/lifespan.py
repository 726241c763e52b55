"""TaskIQ lifespan hook for broker startup/shutdown.

The API process only enqueues (manual sweep triggers); the broker must be
started before ``kiq`` can publish.

Priority 150 ensures TaskIQ starts after persistence (75).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from clubkeep.foundation.application.contributions import (
    LIFESPAN_PRIORITY_TASKIQ,
    LifespanContribution,
)
from clubkeep.infra.taskiq.broker import get_broker
from clubkeep.infra.taskiq.errors import TaskIQBrokerError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _taskiq_lifespan(app: Any) -> AsyncIterator[None]:
    """Start the broker on startup and shut it down on exit.

    Raises:
        TaskIQBrokerError: If the broker cannot start.
    """
    _broker = get_broker()
    try:
        await _broker.startup()
    except Exception as exc:
        msg = f"TaskIQ broker failed to start: {exc}"
        raise TaskIQBrokerError(msg) from exc
    logger.info("taskiq_broker_started")

    try:
        yield
    finally:
        await _broker.shutdown()
        logger.info("taskiq_broker_shut_down")


lifespan_contribution = LifespanContribution(
    hook=_taskiq_lifespan,
    priority=LIFESPAN_PRIORITY_TASKIQ,
)
