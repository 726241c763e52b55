"""Lifespan composition for the clubkeep app factory."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

    from clubkeep.foundation.application import LifespanContribution

logger = logging.getLogger(__name__)


def compose_lifespan(
    hooks: list[LifespanContribution],
) -> object:
    """Create a composite lifespan from ordered :class:`LifespanContribution` hooks.

    Hooks are sorted by priority (ascending). Lower priority hooks start first
    and shut down last.

    Args:
        hooks: List of LifespanContribution instances.

    Returns:
        An async context manager factory suitable for FastAPI's ``lifespan`` parameter.
    """
    sorted_hooks = sorted(hooks, key=lambda h: h.priority)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for contrib in sorted_hooks:
                logger.info(
                    "lifespan_hook_entering",
                    extra={"priority": contrib.priority, "hook": repr(contrib.hook)},
                )
                await stack.enter_async_context(contrib.hook(app))
            yield

    return lifespan
