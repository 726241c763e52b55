"""Port interface for blob storage cleanup.

Permanent deletion removes every file a club references from the object
store before its relational data is purged. Only deletion is needed by the
lifecycle core.

Example:
    >>> from clubkeep.foundation.domain.ports import ObjectStorePort
    >>> def purge(store: ObjectStorePort, keys: list[str]) -> None:
    ...     for key in keys:
    ...         store.delete_object(key)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ObjectStorePort(Protocol):
    """Port for deleting objects from blob storage.

    Deleting a key that does not exist is a success. Any other failure
    (network, permissions, throttling) is raised to the caller, which
    decides whether it is fatal.
    """

    def delete_object(self, key: str) -> None:
        """Delete the object stored under ``key``.

        Args:
            key: Object key inside the configured bucket.

        Raises:
            Exception: Any storage failure other than a missing key.
        """
        ...
