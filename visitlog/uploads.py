"""
Presigned upload slots for record photos.

Slots are not persisted. A client uploads to each ``uploadUrl`` and then
sends the matching ``key`` values as ``photoKeys`` on a record create or
update.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from visitlog.errors import ValidationError
from visitlog.schemas import UploadSlot, UploadUrlResponse
from visitlog.storage import StorageClient
from visitlog.utils import format_timestamp, new_record_id, utcnow

logger = logging.getLogger(__name__)

MAX_UPLOAD_COUNT = 5
DEFAULT_EXPIRES_IN = 3600
UPLOAD_CONTENT_TYPE = "image/jpeg"


def photo_key(user_id: str, record_id: str, index: int) -> str:
    return f"photos/{user_id}/{record_id}/original/{index}.jpg"


def issue_upload_slots(
    storage: StorageClient,
    user_id: str,
    *,
    count: int = 1,
    record_id: Optional[str] = None,
    expires_in: int = DEFAULT_EXPIRES_IN,
    now: Optional[datetime] = None,
) -> UploadUrlResponse:
    if record_id and "/" in record_id:
        raise ValidationError(
            "recordId must be a single path segment",
            details={"fields": ["recordId"]},
        )
    slot_count = max(1, min(count, MAX_UPLOAD_COUNT))
    record_id = record_id or new_record_id()
    issued_at = now or utcnow()
    expires_at = format_timestamp(issued_at + timedelta(seconds=expires_in))

    # Indices restart at 1 on every call, so two batches for the same
    # record_id hand out the same keys.
    slots = []
    for index in range(1, slot_count + 1):
        key = photo_key(user_id, record_id, index)
        slots.append(
            UploadSlot(
                index=index,
                upload_url=storage.presign_put(
                    key, expires_in=expires_in, content_type=UPLOAD_CONTENT_TYPE
                ),
                key=key,
                expires_at=expires_at,
            )
        )
    logger.info(
        "Issued %d upload slots for record %s of user %s", slot_count, record_id, user_id
    )
    return UploadUrlResponse(record_id=record_id, upload_urls=slots)
