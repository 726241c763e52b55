"""Configuration for the membership context."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MembershipSettings(BaseSettings):
    """Membership settings from environment variables (``MEMBERSHIP_`` prefix).

    Attributes:
        system_actor_id: Actor recorded for transitions applied by the sweep.
        cancellation_sweep_cron: When due cancellations are applied (UTC).
    """

    model_config = SettingsConfigDict(
        env_prefix="MEMBERSHIP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system_actor_id: str = Field(default="system", min_length=1)
    cancellation_sweep_cron: str = Field(default="30 0 * * *")


@lru_cache(maxsize=1)
def get_membership_settings() -> MembershipSettings:
    """Get cached MembershipSettings. Clear with ``cache_clear()`` in tests."""
    return MembershipSettings()
