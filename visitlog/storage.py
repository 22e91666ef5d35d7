"""
Storage abstraction for S3 photo storage and in-memory testing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

# S3 DeleteObjects accepts at most this many keys per call.
DELETE_BATCH_SIZE = 1000


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def presign_put(
        self, path: str, expires_in: int = 3600, content_type: str = "image/jpeg"
    ) -> str:
        ...

    def delete_objects(self, paths: Iterable[str]) -> None:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}

    def presign_put(
        self, path: str, expires_in: int = 3600, content_type: str = "image/jpeg"
    ) -> str:
        return f"{self.base_url}/{path}?op=put&expires={expires_in}"

    def put_bytes(self, path: str, data: bytes) -> None:
        """Stand-in for a client uploading to a presigned URL."""
        self.stored_objects[path] = data

    def delete_objects(self, paths: Iterable[str]) -> None:
        for path in paths:
            self.stored_objects.pop(path, None)


@dataclass
class S3StorageClient:
    """
    boto3-backed client for the photo bucket. Credentials, region and endpoint
    fall back to the default boto3 chain when not set.
    """

    bucket: str
    region: Optional[str] = None
    endpoint: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def presign_put(
        self, path: str, expires_in: int = 3600, content_type: str = "image/jpeg"
    ) -> str:
        # Uploaders must send the same Content-Type or the signature will not match.
        return self._client.generate_presigned_url(
            ClientMethod="put_object",
            Params={
                "Bucket": self.bucket,
                "Key": path,
                "ContentType": content_type,
            },
            ExpiresIn=expires_in,
        )

    def delete_objects(self, paths: Iterable[str]) -> None:
        keys = list(paths)
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start : start + DELETE_BATCH_SIZE]
            response = self._client.delete_objects(
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
            )
            for error in response.get("Errors", []):
                logger.warning(
                    "Could not delete %s: %s", error.get("Key"), error.get("Message")
                )
