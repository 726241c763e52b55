"""Middleware that blocks requests scoped to a deactivated club.

During the grace period a deactivated club is read-only: every write
request under ``/clubs/{slug}/...`` receives 403 Forbidden with an RFC 7807
body, except reactivation and infrastructure paths. Reads stay available
so members can still see and export their data.

A club that is unknown or already tombstoned passes through; the route's
own club lookup answers 404 for it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from clubkeep.foundation.application import MiddlewareContribution
from clubkeep.foundation.application.contributions import MIDDLEWARE_PRIORITY_CLUB_STATE
from clubkeep.infra.fastapi.middleware.request_context import club_slug_from_path
from clubkeep.infra.persistence.database import get_sync_session_factory
from clubkeep.infra.persistence.models import Club

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_PREFIXES: tuple[str, ...] = (
    "/healthz",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/admin",
)

# Path suffixes under /clubs/{slug} that stay reachable while deactivated.
DEFAULT_EXEMPT_SUFFIXES: tuple[str, ...] = ("/reactivate",)

_PROBLEM_MEDIA_TYPE = "application/problem+json"
_SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def club_is_deactivated(slug: str) -> bool | None:
    """Look up whether the live club ``slug`` is deactivated.

    Returns:
        ``True`` or ``False`` for a live club, ``None`` when no live club
        has that slug.
    """
    session_factory = get_sync_session_factory()
    with session_factory() as session:
        deactivated_at = session.execute(
            select(Club.deactivated_at).where(Club.slug == slug, Club.deleted_at.is_(None))
        ).first()
    if deactivated_at is None:
        return None
    return deactivated_at[0] is not None


class DeactivatedClubMiddleware:
    """Rejects club-scoped writes while the club is deactivated.

    Args:
        app: The ASGI application.
        excluded_prefixes: URL path prefixes that are never checked.
        exempt_suffixes: Suffixes of ``/clubs/{slug}`` paths that stay
            reachable for deactivated clubs.
        club_state_checker: Callable taking a club slug and returning
            whether the club is deactivated, or ``None`` if it is unknown.
            Defaults to a database lookup run off the event loop.
    """

    def __init__(
        self,
        app: Any,
        excluded_prefixes: tuple[str, ...] | None = None,
        exempt_suffixes: tuple[str, ...] | None = None,
        club_state_checker: Callable[[str], bool | None] | None = None,
    ) -> None:
        self.app = app
        self._excluded_prefixes = (
            excluded_prefixes if excluded_prefixes is not None else DEFAULT_EXCLUDED_PREFIXES
        )
        self._exempt_suffixes = (
            exempt_suffixes if exempt_suffixes is not None else DEFAULT_EXEMPT_SUFFIXES
        )
        self._check = club_state_checker or club_is_deactivated

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] != "http" or scope.get("method", "GET") in _SAFE_METHODS:
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        if any(path.startswith(prefix) for prefix in self._excluded_prefixes):
            await self.app(scope, receive, send)
            return

        slug = club_slug_from_path(path)
        if slug is None or path.rstrip("/").endswith(self._exempt_suffixes):
            await self.app(scope, receive, send)
            return

        if not await asyncio.to_thread(self._check, slug):
            await self.app(scope, receive, send)
            return

        logger.info("deactivated_club_request_blocked", extra={"club_slug": slug, "path": path})
        body_bytes = json.dumps(
            {
                "type": "/errors/club-deactivated",
                "title": "Club Deactivated",
                "status": 403,
                "detail": (
                    f"Club '{slug}' is deactivated and scheduled for deletion. "
                    "Reactivate it to make changes."
                ),
                "instance": path,
                "error_code": "CLUB_DEACTIVATED",
            }
        ).encode("utf-8")
        await send(
            {
                "type": "http.response.start",
                "status": 403,
                "headers": [
                    (b"content-type", _PROBLEM_MEDIA_TYPE.encode("latin-1")),
                    (b"content-length", str(len(body_bytes)).encode("latin-1")),
                ],
            }
        )
        await send({"type": "http.response.body", "body": body_bytes})


# Module-level contribution for auto-discovery via entry points.
contribution = MiddlewareContribution(
    middleware_class=DeactivatedClubMiddleware,
    priority=MIDDLEWARE_PRIORITY_CLUB_STATE,
)
