"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the domain layer uses to interact
with external services. Implementations (adapters) live in infrastructure.
"""

from clubkeep.foundation.domain.ports.clock import ClockPort, SystemClock
from clubkeep.foundation.domain.ports.object_store import ObjectStorePort

__all__ = ["ClockPort", "ObjectStorePort", "SystemClock"]
