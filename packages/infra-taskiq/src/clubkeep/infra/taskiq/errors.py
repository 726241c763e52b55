"""TaskIQ infrastructure errors."""

from __future__ import annotations


class TaskIQBrokerError(Exception):
    """Raised when the broker cannot be started or stopped.

    ``transient`` tells operators that a retry can help.
    """

    transient: bool = True
