"""Request context for club-scoped operations.

A ContextVar carries the club slug, the acting user and the correlation ID
of the current request so routers, services and log records can read them
without threading extra parameters through every call. Lifecycle services
take the actor explicitly; the context exists for the HTTP edge and logging.

Usage:
    # In middleware
    token = set_request_context(club_slug="rowing", actor_id="u-1", correlation_id=cid)
    try:
        ...
    finally:
        clear_request_context(token)

    # In handlers
    actor = get_current_actor_id()
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Immutable container for request-scoped context data.

    Attributes:
        club_slug: Slug of the club the request is scoped to, if any.
        actor_id: Identifier of the user performing the action, if known.
        correlation_id: Unique ID for correlating logs and error responses.
    """

    club_slug: str | None
    actor_id: str | None
    correlation_id: str


request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


class NoRequestContextError(RuntimeError):
    """Raised when request context is accessed outside of a request."""

    def __init__(self) -> None:
        super().__init__(
            "No request context available. "
            "Ensure this code is called within an HTTP request with context middleware."
        )


def get_current_context() -> RequestContext:
    """Get the current request context.

    Raises:
        NoRequestContextError: If called outside of a request context.
    """
    ctx = request_context.get()
    if ctx is None:
        raise NoRequestContextError()
    return ctx


def get_optional_context() -> RequestContext | None:
    """Get the current request context, or None outside a request."""
    return request_context.get()


def get_current_actor_id() -> str | None:
    """Get the acting user ID of the current request (None when anonymous)."""
    return get_current_context().actor_id


def get_current_club_slug() -> str | None:
    """Get the club slug the current request is scoped to."""
    return get_current_context().club_slug


def get_current_correlation_id() -> str:
    """Get the current correlation ID.

    Raises:
        NoRequestContextError: If called outside of a request context.
    """
    return get_current_context().correlation_id


def set_request_context(
    *,
    club_slug: str | None,
    actor_id: str | None,
    correlation_id: str,
) -> Token[RequestContext | None]:
    """Set the request context for the current async task.

    Returns:
        Token for resetting the context via :func:`clear_request_context`.
    """
    ctx = RequestContext(club_slug=club_slug, actor_id=actor_id, correlation_id=correlation_id)
    return request_context.set(ctx)


def clear_request_context(token: Token[RequestContext | None]) -> None:
    """Reset the request context using the token from :func:`set_request_context`."""
    request_context.reset(token)
