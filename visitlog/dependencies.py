"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from visitlog.config import get_settings
from visitlog.cursor import CursorCodec
from visitlog.db import InMemoryRecordDb, RecordDb, SqlRecordDb
from visitlog.storage import InMemoryStorageClient, S3StorageClient, StorageClient
from visitlog.utils import utcnow

_record_db: RecordDb | None = None
_storage_client: StorageClient | None = None


def get_record_db() -> RecordDb:
    """
    Return a singleton record store so in-memory data persists across requests.
    """
    global _record_db
    if _record_db:
        return _record_db

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _record_db = InMemoryRecordDb()
    else:
        _record_db = SqlRecordDb(settings.database_url)
    return _record_db


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.photo_bucket:
        _storage_client = InMemoryStorageClient(
            base_url=settings.resolved_photo_base_url()
        )
    else:
        _storage_client = S3StorageClient(
            bucket=settings.photo_bucket,
            region=settings.s3_region,
            endpoint=settings.s3_endpoint,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )
    return _storage_client


def get_cursor_codec() -> CursorCodec:
    return CursorCodec(secret=get_settings().cursor_secret)


def get_photo_base_url() -> str:
    return get_settings().resolved_photo_base_url()


def get_upload_expires_in() -> int:
    return get_settings().upload_url_expires_in


def get_clock() -> Callable[[], datetime]:
    return utcnow
