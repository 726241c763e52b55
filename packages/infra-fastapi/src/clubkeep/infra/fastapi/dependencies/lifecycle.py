"""FastAPI dependencies shared by the lifecycle routers.

Usage in endpoint::

    @router.post("/clubs/{slug}/deactivate")
    def deactivate(club: CurrentClub, actor_id: ActorId, clock: Clock): ...

Tests replace ``get_clock`` through ``app.dependency_overrides`` to pin time.
"""

# NOTE: Do NOT use ``from __future__ import annotations`` here.
# FastAPI resolves dependency parameters from runtime annotations, and
# PEP 563 deferred evaluation breaks that under pytest --import-mode=importlib.

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy import select

from clubkeep.foundation.domain.exceptions import NotFoundError, ValidationError
from clubkeep.foundation.domain.ports import ClockPort, SystemClock
from clubkeep.infra.persistence.database import SessionFactory
from clubkeep.infra.persistence.models import Club


def get_clock() -> ClockPort:
    """Provide the wall clock."""
    return SystemClock()


def get_actor_id(
    x_user_id: Annotated[str | None, Header(description="Acting user identifier")] = None,
) -> str:
    """Return the acting user from the ``X-User-ID`` header.

    Raises:
        ValidationError: The header is missing or blank.
    """
    if x_user_id is None or not x_user_id.strip():
        raise ValidationError("X-User-ID", "header is required for lifecycle operations")
    return x_user_id.strip()


def get_club(slug: str, session_factory: SessionFactory) -> Club:
    """Resolve the live club addressed by the ``{slug}`` path parameter.

    Raises:
        NotFoundError: No club has that slug, or it has been permanently deleted.
    """
    with session_factory() as session:
        club = session.scalars(
            select(Club).where(Club.slug == slug, Club.deleted_at.is_(None))
        ).first()
    if club is None:
        raise NotFoundError("Club", slug)
    return club


Clock = Annotated[ClockPort, Depends(get_clock)]
ActorId = Annotated[str, Depends(get_actor_id)]
CurrentClub = Annotated[Club, Depends(get_club)]
