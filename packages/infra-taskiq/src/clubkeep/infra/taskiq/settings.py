"""TaskIQ configuration using Pydantic settings.

Settings are loaded from environment variables with ``TASKIQ_`` prefix.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaskIQSettings(BaseSettings):
    """Configuration for the TaskIQ broker and scheduler.

    Environment Variables:
        TASKIQ_REDIS_URL: Redis URL for broker and result backend
            (default: redis://localhost:6379/1)
        TASKIQ_RESULT_TTL: Result backend TTL in seconds (default: 86400)
        TASKIQ_QUEUE_NAME: Redis stream holding lifecycle jobs (default: clubkeep)

    Example:
        >>> TaskIQSettings().queue_name
        'clubkeep'
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKIQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    redis_url: str = Field(
        default="redis://localhost:6379/1",
        description="Redis URL for the TaskIQ broker",
    )
    result_ttl: int = Field(
        default=86400,
        ge=60,
        le=7 * 86400,
        description="Result backend TTL in seconds; sweep reports stay inspectable for a day",
    )
    queue_name: str = Field(
        default="clubkeep",
        min_length=1,
        description="Redis stream name",
    )


@lru_cache(maxsize=1)
def get_taskiq_settings() -> TaskIQSettings:
    """Get cached TaskIQ settings singleton."""
    return TaskIQSettings()
