"""Clubkeep Infra FastAPI -- app factory, error handlers, middleware, dependencies."""

from clubkeep.infra.fastapi.app_factory import create_app
from clubkeep.infra.fastapi.error_handlers import (
    ProblemDetail,
    register_exception_handlers,
)
from clubkeep.infra.fastapi.middleware.deactivated_club import DeactivatedClubMiddleware
from clubkeep.infra.fastapi.middleware.request_context import RequestContextMiddleware
from clubkeep.infra.fastapi.settings import AppSettings, CORSSettings

__all__ = [
    "AppSettings",
    "CORSSettings",
    "DeactivatedClubMiddleware",
    "ProblemDetail",
    "RequestContextMiddleware",
    "create_app",
    "register_exception_handlers",
]
