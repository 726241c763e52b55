"""Unit tests for clubkeep.foundation.application.contributions."""

from __future__ import annotations

import pytest

from clubkeep.foundation.application.contributions import (
    LIFESPAN_PRIORITY_OBSERVABILITY,
    LIFESPAN_PRIORITY_PERSISTENCE,
    LIFESPAN_PRIORITY_TASKIQ,
    MIDDLEWARE_PRIORITY_CLUB_STATE,
    MIDDLEWARE_PRIORITY_CONTEXT,
    ErrorHandlerContribution,
    LifespanContribution,
    MiddlewareContribution,
)


class TestMiddlewareContribution:
    @pytest.mark.unit
    def test_defaults(self) -> None:
        mc = MiddlewareContribution(middleware_class=type)
        assert mc.priority == 400
        assert mc.kwargs == {}

    @pytest.mark.unit
    @pytest.mark.parametrize("priority", [-1, 500])
    def test_rejects_out_of_band_priority(self, priority: int) -> None:
        with pytest.raises(ValueError, match="between 0 and 499"):
            MiddlewareContribution(middleware_class=type, priority=priority)

    @pytest.mark.unit
    def test_context_band_wraps_club_state_band(self) -> None:
        assert MIDDLEWARE_PRIORITY_CONTEXT < MIDDLEWARE_PRIORITY_CLUB_STATE


class TestErrorHandlerContribution:
    @pytest.mark.unit
    def test_fields(self) -> None:
        async def handler(request: object, exc: Exception) -> None:
            return None

        ehc = ErrorHandlerContribution(exception_class=ValueError, handler=handler)
        assert ehc.exception_class is ValueError
        assert ehc.handler is handler


class TestLifespanContribution:
    @pytest.mark.unit
    def test_default_priority(self) -> None:
        assert LifespanContribution(hook=object()).priority == 500

    @pytest.mark.unit
    def test_priority_constants_are_ordered(self) -> None:
        assert (
            LIFESPAN_PRIORITY_OBSERVABILITY
            < LIFESPAN_PRIORITY_PERSISTENCE
            < LIFESPAN_PRIORITY_TASKIQ
        )
