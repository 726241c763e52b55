"""Persistence queries for the membership context."""

from clubkeep.domain.membership.infrastructure.member_repository import (
    allocate_member_number,
    load_member,
    open_periods,
)

__all__ = ["allocate_member_number", "load_member", "open_periods"]
