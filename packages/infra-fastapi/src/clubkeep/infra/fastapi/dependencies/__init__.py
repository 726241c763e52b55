"""FastAPI dependencies for clock, acting user and club resolution."""

from clubkeep.infra.fastapi.dependencies.lifecycle import (
    ActorId,
    Clock,
    CurrentClub,
    get_actor_id,
    get_club,
    get_clock,
)

__all__ = [
    "ActorId",
    "Clock",
    "CurrentClub",
    "get_actor_id",
    "get_club",
    "get_clock",
]
