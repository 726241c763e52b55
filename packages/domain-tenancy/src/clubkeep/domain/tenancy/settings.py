"""Configuration for the club lifecycle."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LifecycleSettings(BaseSettings):
    """Club lifecycle settings from environment variables (``LIFECYCLE_`` prefix).

    Attributes:
        platform_min_grace_days: Floor applied to every requested grace period.
        max_grace_days: Largest grace period a caller may request.
        milestone_week_days: Offset of the ``T-7`` milestone. Grace periods
            of this length or shorter get no ``T-7`` event.
        system_actor_id: Actor recorded on scheduler-driven deletions.
        deletion_sweep_cron: When eligible clubs are permanently deleted (UTC).
        milestone_sweep_cron: When milestone events are appended (UTC).
    """

    model_config = SettingsConfigDict(
        env_prefix="LIFECYCLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    platform_min_grace_days: int = Field(default=7, ge=0, le=365)
    max_grace_days: int = Field(default=90, ge=1, le=365)
    milestone_week_days: int = Field(default=7, ge=2, le=90)
    system_actor_id: str = Field(default="system", min_length=1)
    deletion_sweep_cron: str = Field(default="0 0 * * *")
    milestone_sweep_cron: str = Field(default="0 1 * * *")

    @model_validator(mode="after")
    def _validate_bounds(self) -> LifecycleSettings:
        if self.platform_min_grace_days > self.max_grace_days:
            msg = (
                f"platform_min_grace_days ({self.platform_min_grace_days}) "
                f"exceeds max_grace_days ({self.max_grace_days})"
            )
            raise ValueError(msg)
        return self


@lru_cache(maxsize=1)
def get_lifecycle_settings() -> LifecycleSettings:
    """Get cached LifecycleSettings. Clear with ``cache_clear()`` in tests."""
    return LifecycleSettings()
