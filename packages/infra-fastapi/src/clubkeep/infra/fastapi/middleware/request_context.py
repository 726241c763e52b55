"""Middleware for populating request context from HTTP headers.

Extracts the acting user and correlation ID from request headers, and the
club slug from ``/clubs/{slug}/...`` paths, then populates the request
context ContextVar and structlog's context variables for the duration of
the request.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

from clubkeep.foundation.application import MiddlewareContribution
from clubkeep.foundation.application.contributions import MIDDLEWARE_PRIORITY_CONTEXT
from clubkeep.foundation.application.context import (
    clear_request_context,
    set_request_context,
)

if TYPE_CHECKING:
    from collections.abc import Callable

USER_ID_HEADER = "X-User-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"

_CLUB_PATH = re.compile(r"^/clubs/(?P<slug>[^/]+)")


def _extract_header(headers: list[tuple[bytes, bytes]], name: bytes) -> str:
    """Extract a header value from raw ASGI headers."""
    for key, value in headers:
        if key.lower() == name:
            return value.decode("latin-1")
    return ""


def club_slug_from_path(path: str) -> str | None:
    """Return the club slug of a ``/clubs/{slug}/...`` path, if any."""
    match = _CLUB_PATH.match(path)
    return match.group("slug") if match else None


class RequestContextMiddleware:
    """Pure ASGI middleware that populates request context.

    - ``X-User-ID``: acting user, ``None`` when absent
    - ``X-Correlation-ID``: optional, generated when absent and echoed back
      on the response
    - club slug: taken from the request path

    The correlation ID is also stored on the request state so error
    handlers running outside this middleware can still report it.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        headers = scope.get("headers", [])
        actor_id = _extract_header(headers, b"x-user-id") or None
        correlation_id = _extract_header(headers, b"x-correlation-id") or str(uuid4())
        club_slug = club_slug_from_path(scope.get("path", ""))

        scope.setdefault("state", {})["correlation_id"] = correlation_id
        token = set_request_context(
            club_slug=club_slug,
            actor_id=actor_id,
            correlation_id=correlation_id,
        )
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        async def send_with_correlation_id(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                resp_headers = list(message.get("headers", []))
                resp_headers.append((b"x-correlation-id", correlation_id.encode("latin-1")))
                message = {**message, "headers": resp_headers}
            await send(message)

        try:
            await self.app(scope, receive, send_with_correlation_id)
        finally:
            structlog.contextvars.unbind_contextvars("correlation_id")
            clear_request_context(token)


# Module-level contribution for auto-discovery via entry points.
contribution = MiddlewareContribution(
    middleware_class=RequestContextMiddleware,
    priority=MIDDLEWARE_PRIORITY_CONTEXT,
)
