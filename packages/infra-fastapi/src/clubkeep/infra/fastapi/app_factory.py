"""FastAPI application factory.

:func:`create_app` assembles the clubkeep API from the contributions that
installed workspace packages register under four entry-point groups:

- ``clubkeep.lifespan``: database, broker and logging start-up hooks
- ``clubkeep.middleware``: request context and the deactivated-club guard
- ``clubkeep.error_handlers``: the RFC 7807 domain error translation
- ``clubkeep.routers``: membership, club lifecycle, admin and health routes

Tests and embedding applications pass ``extra_*`` contributions and skip
whole groups or single entry points with the exclusion arguments.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from clubkeep.foundation.application import (
    ErrorHandlerContribution,
    LifespanContribution,
    MiddlewareContribution,
    discover,
)
from clubkeep.infra.fastapi.lifespan import compose_lifespan
from clubkeep.infra.fastapi.settings import AppSettings

if TYPE_CHECKING:
    from collections.abc import Callable

    from fastapi import APIRouter

logger = logging.getLogger(__name__)

GROUP_ROUTERS = "clubkeep.routers"
GROUP_MIDDLEWARE = "clubkeep.middleware"
GROUP_ERROR_HANDLERS = "clubkeep.error_handlers"
GROUP_LIFESPAN = "clubkeep.lifespan"


class _Discovery:
    """Loads one entry-point group at a time, honouring the exclusions."""

    def __init__(self, skip_groups: frozenset[str], skip_names: frozenset[str]) -> None:
        self._skip_groups = skip_groups
        self._skip_names = skip_names

    def values(self, group: str) -> list[tuple[str, Any]]:
        if group in self._skip_groups:
            return []
        return [(c.name, c.value) for c in discover(group, exclude_names=self._skip_names)]


def _lifespan_hooks(
    found: _Discovery, extra: list[LifespanContribution]
) -> list[LifespanContribution]:
    hooks = list(extra)
    for _name, value in found.values(GROUP_LIFESPAN):
        if not isinstance(value, LifespanContribution):
            # Bare async context manager factory, default priority.
            value = LifespanContribution(hook=value)
        hooks.append(value)
    return hooks


def _install_middleware(
    app: FastAPI, found: _Discovery, extra: list[MiddlewareContribution]
) -> None:
    contributions = list(extra)
    for name, value in found.values(GROUP_MIDDLEWARE):
        if not isinstance(value, MiddlewareContribution):
            logger.warning("middleware_entry_point_ignored", extra={"entry_point": name})
            continue
        contributions.append(value)

    # add_middleware wraps the stack, so the lowest priority goes on last.
    for contribution in sorted(contributions, key=lambda c: c.priority, reverse=True):
        app.add_middleware(contribution.middleware_class, **contribution.kwargs)
        logger.info(
            "middleware_registered",
            extra={
                "middleware": contribution.middleware_class.__name__,
                "priority": contribution.priority,
            },
        )


def _install_error_handlers(
    app: FastAPI, found: _Discovery, extra: list[ErrorHandlerContribution]
) -> None:
    handlers = list(extra)
    registrars: list[Callable[[FastAPI], None]] = []
    for name, value in found.values(GROUP_ERROR_HANDLERS):
        if isinstance(value, ErrorHandlerContribution):
            handlers.append(value)
        elif callable(value):
            registrars.append(value)
        else:
            logger.warning("error_handler_entry_point_ignored", extra={"entry_point": name})

    for register in registrars:
        register(app)
    for handler in handlers:
        app.add_exception_handler(handler.exception_class, handler.handler)
        logger.info(
            "error_handler_registered", extra={"exception": handler.exception_class.__name__}
        )


def _include_routers(app: FastAPI, found: _Discovery, extra: list[APIRouter]) -> None:
    routers = [*extra, *(value for _name, value in found.values(GROUP_ROUTERS))]
    for router in routers:
        app.include_router(router)
        logger.info("router_included", extra={"prefix": router.prefix or "/"})


def create_app(
    settings: AppSettings | None = None,
    *,
    extra_routers: list[APIRouter] | None = None,
    extra_middleware: list[MiddlewareContribution] | None = None,
    extra_lifespan_hooks: list[LifespanContribution] | None = None,
    extra_error_handlers: list[ErrorHandlerContribution] | None = None,
    exclude_groups: frozenset[str] | None = None,
    exclude_names: frozenset[str] | None = None,
) -> FastAPI:
    """Build the clubkeep API.

    Args:
        settings: Application settings. Loaded from the environment when ``None``.
        extra_routers: Routers mounted before the discovered ones.
        extra_middleware: Middleware sorted together with the discovered ones.
        extra_lifespan_hooks: Lifespan hooks composed with the discovered ones.
        extra_error_handlers: Exception handlers registered after discovery.
        exclude_groups: Entry-point groups to skip. Defaults to
            ``settings.exclude_groups``.
        exclude_names: Entry-point names to skip in every group. Defaults to
            ``settings.exclude_entry_points``.

    Returns:
        The configured application.
    """
    settings = settings or AppSettings()
    found = _Discovery(
        exclude_groups if exclude_groups is not None else settings.exclude_groups,
        exclude_names if exclude_names is not None else settings.exclude_entry_points,
    )

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        description=settings.description,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        debug=settings.debug,
        lifespan=compose_lifespan(_lifespan_hooks(found, extra_lifespan_hooks or [])),
    )
    cors = settings.cors
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.allow_origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
        expose_headers=cors.expose_headers,
    )

    _install_middleware(app, found, extra_middleware or [])
    _install_error_handlers(app, found, extra_error_handlers or [])
    _include_routers(app, found, extra_routers or [])
    return app
