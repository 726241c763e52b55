"""Middleware components for the clubkeep FastAPI integration."""

from clubkeep.infra.fastapi.middleware.deactivated_club import DeactivatedClubMiddleware
from clubkeep.infra.fastapi.middleware.request_context import (
    RequestContextMiddleware,
    club_slug_from_path,
)

__all__ = [
    "DeactivatedClubMiddleware",
    "RequestContextMiddleware",
    "club_slug_from_path",
]
