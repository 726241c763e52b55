"""Clubkeep Foundation Application -- request context and discovery."""

from clubkeep.foundation.application.context import (
    NoRequestContextError,
    RequestContext,
    clear_request_context,
    get_current_actor_id,
    get_current_club_slug,
    get_current_context,
    get_current_correlation_id,
    get_optional_context,
    set_request_context,
)
from clubkeep.foundation.application.contributions import (
    ErrorHandlerContribution,
    LifespanContribution,
    MiddlewareContribution,
)
from clubkeep.foundation.application.discovery import (
    DiscoveredContribution,
    discover,
)

__all__ = [
    "DiscoveredContribution",
    "ErrorHandlerContribution",
    "LifespanContribution",
    "MiddlewareContribution",
    "NoRequestContextError",
    "RequestContext",
    "clear_request_context",
    "discover",
    "get_current_actor_id",
    "get_current_club_slug",
    "get_current_context",
    "get_current_correlation_id",
    "get_optional_context",
    "set_request_context",
]
