"""Object storage configuration."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """S3-compatible object storage settings from environment variables.

    Loads configuration from environment variables with ``STORAGE_`` prefix:
    - STORAGE_ENDPOINT_URL: Custom endpoint (MinIO, R2, ...); None means AWS
    - STORAGE_REGION: Region name (default: eu-central-1)
    - STORAGE_BUCKET: Bucket holding club files
    - STORAGE_ACCESS_KEY_ID / STORAGE_SECRET_ACCESS_KEY: Credentials
    - STORAGE_MAX_ATTEMPTS: botocore retry budget per request
    """

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    endpoint_url: str | None = Field(default=None, description="Custom S3 endpoint URL")
    region: str = Field(default="eu-central-1", description="Storage region")
    bucket: str = Field(default="clubkeep-files", description="Bucket holding club files")
    access_key_id: str | None = Field(default=None, repr=False, description="Access key ID")
    secret_access_key: str | None = Field(
        default=None, repr=False, description="Secret access key"
    )
    max_attempts: int = Field(default=3, ge=1, le=10, description="Retry attempts per request")


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """Get cached StorageSettings. Clear with ``get_storage_settings.cache_clear()``."""
    return StorageSettings()
