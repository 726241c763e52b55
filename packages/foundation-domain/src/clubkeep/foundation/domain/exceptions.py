"""Domain exception hierarchy for type-safe error handling.

Every lifecycle failure the core can report derives from :class:`DomainError`
and carries a machine-readable ``error_code`` plus structured ``context``
so the HTTP layer and the scheduler logs can render it consistently.

Example:
    >>> from clubkeep.foundation.domain.exceptions import NotFoundError
    >>> raise NotFoundError("Member", "m-123", club_id="c-1")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

__all__ = [
    "ConflictError",
    "DomainError",
    "InvalidStateTransitionError",
    "NotEligibleError",
    "NotFoundError",
    "ValidationError",
]


class DomainError(Exception):
    """Base class for all domain errors.

    Attributes:
        error_code: Machine-readable error code for client handling.
        message: Human-readable error description.
        context: Structured debugging information (entity IDs, field names).

    Example:
        >>> raise DomainError("Operation failed", context={"club_id": "123"})
        DomainError: Operation failed (club_id=123)
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """Raised when an entity is absent or not visible in the caller's club scope.

    Maps to HTTP 404 Not Found. Soft-deleted members and tombstoned clubs
    are reported through this error as well.

    Example:
        >>> raise NotFoundError("Member", "m-1", club_id="c-1")
        NotFoundError: Member not found: m-1 (resource_type=Member, ...)
    """

    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: UUID | str, **extra_context: Any) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": str(resource_id), **extra_context},
        )


class ValidationError(DomainError):
    """Raised when command input fails a domain rule.

    Maps to HTTP 422 Unprocessable Entity. Caller-fixable, never retried.

    Example:
        >>> raise ValidationError("left_category", "required when leaving")
        ValidationError: Validation failed for 'left_category': required when leaving
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str, **extra_context: Any) -> None:
        self.field = field
        self.reason = reason
        super().__init__(
            f"Validation failed for '{field}': {reason}",
            {"field": field, "reason": reason, **extra_context},
        )


class ConflictError(DomainError):
    """Raised when an operation conflicts with the current stored state.

    Maps to HTTP 409 Conflict. The caller must reload state and decide
    whether to retry; the core never retries on its own.

    Example:
        >>> raise ConflictError(
        ...     "Optimistic lock failure",
        ...     expected_version=5,
        ...     actual_version=7,
        ... )
        ConflictError: Conflict: Optimistic lock failure (expected_version=5, actual_version=7)
    """

    error_code: str = "CONFLICT"

    def __init__(self, reason: str, **context: Any) -> None:
        self.reason = reason
        super().__init__(f"Conflict: {reason}", context)


class InvalidStateTransitionError(ConflictError):
    """Raised when a lifecycle transition is not allowed from the current state.

    Maps to HTTP 409 Conflict. When the allowed next states are known they
    are listed in the message and exposed as ``allowed``.

    Example:
        >>> raise InvalidStateTransitionError(
        ...     "Cannot change member status from LEFT to ACTIVE",
        ...     allowed=[],
        ... )
    """

    error_code: str = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        message: str,
        *,
        allowed: Iterable[str] | None = None,
        **context: Any,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            message: Description of the invalid transition attempt.
            allowed: Allowed target states from the current state, if applicable.
            **context: Additional debugging context (e.g., current_state, target_state).
        """
        self.allowed: list[str] = list(allowed) if allowed is not None else []
        if allowed is not None:
            listed = ", ".join(self.allowed) if self.allowed else "none (terminal state)"
            message = f"{message}. Allowed transitions: {listed}"
            context = {**context, "allowed": self.allowed}
        super().__init__(message, **context)


class NotEligibleError(ConflictError):
    """Raised when a club no longer qualifies for permanent deletion.

    The eligibility re-check inside the deletion transaction found the club
    already tombstoned or no longer deactivated (a concurrent sweep or a
    reactivation won the race). The whole deletion transaction is rolled back.
    """

    error_code: str = "NOT_ELIGIBLE_FOR_DELETION"

    def __init__(self, club_id: str, **context: Any) -> None:
        self.club_id = club_id
        super().__init__(
            f"Club {club_id} is not eligible for deletion "
            "(already deleted or not deactivated)",
            club_id=club_id,
            **context,
        )
