"""Entry-point-based auto-discovery.

Loads contributions from installed workspace packages through
``importlib.metadata.entry_points()``. Groups are prefixed ``clubkeep.``
(``clubkeep.routers``, ``clubkeep.middleware``, ``clubkeep.lifespan``,
``clubkeep.error_handlers``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiscoveredContribution:
    """A single loaded entry point.

    Attributes:
        name: Entry point name (e.g., ``"membership"``).
        group: Entry point group (e.g., ``"clubkeep.routers"``).
        value: The loaded Python object.
    """

    name: str
    group: str
    value: Any


def discover(
    group: str,
    *,
    exclude_names: frozenset[str] = frozenset(),
) -> list[DiscoveredContribution]:
    """Load every entry point registered under ``group``.

    Entry points that fail to import are logged and skipped so one broken
    package cannot keep the application from starting. Results are sorted by
    entry point name.

    Args:
        group: The entry point group name.
        exclude_names: Entry point names to skip.

    Returns:
        Successfully loaded contributions.
    """
    contributions: list[DiscoveredContribution] = []

    for ep in sorted(entry_points(group=group), key=lambda e: e.name):
        if ep.name in exclude_names:
            logger.debug("entry_point_excluded", extra={"group": group, "entry_point": ep.name})
            continue
        try:
            loaded = ep.load()
        except Exception:
            logger.exception(
                "entry_point_load_failed", extra={"group": group, "entry_point": ep.name}
            )
            continue
        contributions.append(DiscoveredContribution(name=ep.name, group=group, value=loaded))

    logger.info(
        "entry_points_discovered", extra={"group": group, "count": len(contributions)}
    )
    return contributions
