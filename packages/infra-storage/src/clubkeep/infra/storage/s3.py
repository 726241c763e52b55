"""S3-compatible implementation of the object store port.

Usage:
    store = S3ObjectStore.from_settings(get_storage_settings())
    store.delete_object("clubs/rowing-club/logo.png")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

if TYPE_CHECKING:
    from clubkeep.infra.storage.settings import StorageSettings

logger = logging.getLogger(__name__)

# Error codes meaning the object is already gone.
_MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3ObjectStore:
    """Deletes club files from an S3-compatible bucket.

    Implements :class:`clubkeep.foundation.domain.ports.ObjectStorePort`.
    A missing object counts as deleted; every other client error propagates.
    """

    def __init__(self, client: Any, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> S3ObjectStore:
        client = boto3.client(
            "s3",
            endpoint_url=settings.endpoint_url,
            region_name=settings.region,
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.secret_access_key,
            config=Config(
                signature_version="s3v4",
                retries={"max_attempts": settings.max_attempts, "mode": "standard"},
            ),
        )
        return cls(client, settings.bucket)

    @property
    def bucket(self) -> str:
        return self._bucket

    def delete_object(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_OBJECT_CODES:
                logger.debug("object_already_absent", extra={"key": key, "bucket": self._bucket})
                return
            raise
        logger.debug("object_deleted", extra={"key": key, "bucket": self._bucket})
