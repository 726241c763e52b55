"""Aggregated health check endpoint.

Reports per-subsystem health status and overall application readiness.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from clubkeep.infra.persistence.database import get_sync_engine

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


def _ping_database() -> None:
    with get_sync_engine().connect() as conn:
        conn.execute(text("SELECT 1"))


async def _check_database() -> dict[str, str]:
    """Check database connectivity via SELECT 1."""
    try:
        await asyncio.to_thread(_ping_database)
    except Exception as exc:
        logger.warning("health_check_database_unhealthy", extra={"error": str(exc)})
        return {"status": "error", "detail": type(exc).__name__}
    return {"status": "ok"}


@router.get("/healthz")
async def healthz() -> Any:
    """Aggregated health check.

    Returns HTTP 200 when all subsystems are healthy, HTTP 503 otherwise.
    """
    checks: dict[str, dict[str, str]] = {"database": await _check_database()}

    all_ok = all(c["status"] == "ok" for c in checks.values())
    return JSONResponse(
        content={"status": "ok" if all_ok else "degraded", "checks": checks},
        status_code=200 if all_ok else 503,
    )
