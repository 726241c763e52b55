"""Persistence lifespan hook for startup/shutdown resource management.

Handles:
- Database health check on startup (SELECT 1)
- Optional schema bootstrap for development databases
- Engine disposal on shutdown

Priority 75 ensures persistence starts after observability (50) and before
the task broker (150).
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import text

from clubkeep.foundation.application.contributions import (
    LIFESPAN_PRIORITY_PERSISTENCE,
    LifespanContribution,
)
from clubkeep.infra.persistence.database import DatabaseManager, get_database_manager
from clubkeep.infra.persistence.models import ensure_schema

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


def _startup(manager: DatabaseManager) -> None:
    engine = manager.get_sync_engine()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("persistence_health_check_passed")

    if manager.settings.auto_create_schema:
        ensure_schema(engine)
        logger.info("persistence_schema_ensured")


@asynccontextmanager
async def _persistence_lifespan(app: Any) -> AsyncIterator[None]:
    """Check the database on startup and dispose the engine on shutdown.

    The engine is synchronous, so startup work runs in a worker thread.

    Args:
        app: The application instance (unused but required by protocol).
    """
    manager = get_database_manager()
    await asyncio.to_thread(_startup, manager)

    try:
        yield
    finally:
        manager.dispose()
        logger.info("persistence_engine_disposed")


lifespan_contribution = LifespanContribution(
    hook=_persistence_lifespan,
    priority=LIFESPAN_PRIORITY_PERSISTENCE,
)
