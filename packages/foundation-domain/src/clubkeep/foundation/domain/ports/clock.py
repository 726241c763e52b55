"""Port interface for the current-time source.

Lifecycle operations never read the wall clock ambiently. They receive a
``ClockPort`` so the scheduler sweeps behave identically under a real cron
trigger, a test harness or a manual operator run.

Example:
    >>> from clubkeep.foundation.domain.ports import ClockPort, SystemClock
    >>> def stamp(clock: ClockPort) -> str:
    ...     return clock.now().isoformat()
    >>> stamp(SystemClock())  # doctest: +SKIP
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class ClockPort(Protocol):
    """Source of the current instant.

    Implementations must return timezone-aware UTC datetimes.
    """

    def now(self) -> datetime:
        """Return the current instant as an aware UTC datetime."""
        ...


class SystemClock:
    """Wall-clock implementation of :class:`ClockPort`."""

    def now(self) -> datetime:
        return datetime.now(UTC)
