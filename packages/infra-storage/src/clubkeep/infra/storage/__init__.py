"""Clubkeep Infra Storage -- S3-compatible object store adapter."""

from __future__ import annotations

from functools import lru_cache

from clubkeep.infra.storage.s3 import S3ObjectStore
from clubkeep.infra.storage.settings import StorageSettings, get_storage_settings


@lru_cache(maxsize=1)
def get_object_store() -> S3ObjectStore:
    """Get the process-wide object store built from environment settings."""
    return S3ObjectStore.from_settings(get_storage_settings())


__all__ = [
    "S3ObjectStore",
    "StorageSettings",
    "get_object_store",
    "get_storage_settings",
]
