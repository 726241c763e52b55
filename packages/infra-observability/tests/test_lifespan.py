"""Tests for the observability lifespan contribution."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from clubkeep.foundation.application.contributions import LifespanContribution
from clubkeep.infra.observability import lifespan_contribution


@pytest.mark.unit
class TestObservabilityLifespan:
    def test_contribution_shape(self) -> None:
        assert isinstance(lifespan_contribution, LifespanContribution)
        assert lifespan_contribution.priority == 50

    @pytest.mark.asyncio
    async def test_configures_logging_on_startup(self) -> None:
        with patch("clubkeep.infra.observability.configure_logging") as configure:
            async with lifespan_contribution.hook(object()):
                configure.assert_called_once_with()
