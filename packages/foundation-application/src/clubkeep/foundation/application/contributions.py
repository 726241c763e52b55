"""Contribution types for entry-point discovery.

A workspace package exposes a router, a middleware, an error handler
registrar or a lifespan hook by naming one of these objects in its entry
points. They carry no FastAPI import so the foundation layer stays free
of web dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

MIDDLEWARE_PRIORITY_MIN = 0
MIDDLEWARE_PRIORITY_MAX = 499

# Middleware bands; lower runs first (outermost).
MIDDLEWARE_PRIORITY_CONTEXT = 100
MIDDLEWARE_PRIORITY_CLUB_STATE = 250

# Lifespan ordering: lower starts first and shuts down last.
LIFESPAN_PRIORITY_OBSERVABILITY = 50
LIFESPAN_PRIORITY_PERSISTENCE = 75
LIFESPAN_PRIORITY_TASKIQ = 150


@dataclass(frozen=True, slots=True)
class MiddlewareContribution:
    """An ASGI middleware class and where it sits in the stack.

    The request-context middleware uses the context band so the club slug
    and correlation id are bound before the deactivated-club guard, in the
    club-state band, logs a rejection.

    Attributes:
        middleware_class: The ASGI middleware class.
        priority: Position in the stack, 0 (outermost) to 499.
        kwargs: Keyword arguments for ``add_middleware()``.
    """

    middleware_class: type[Any]
    priority: int = 400
    kwargs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not MIDDLEWARE_PRIORITY_MIN <= self.priority <= MIDDLEWARE_PRIORITY_MAX:
            msg = (
                f"Middleware priority must be between {MIDDLEWARE_PRIORITY_MIN} "
                f"and {MIDDLEWARE_PRIORITY_MAX}, got {self.priority}"
            )
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ErrorHandlerContribution:
    """One exception type and the async handler that renders it."""

    exception_class: type[BaseException]
    handler: Any


@dataclass(frozen=True, slots=True)
class LifespanContribution:
    """An async context manager factory ``(app) -> AsyncContextManager[None]``.

    Hooks enter in ascending ``priority`` and exit in reverse, so the
    database is up before the broker and logging is configured before both.
    """

    hook: Any
    priority: int = 500
