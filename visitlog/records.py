"""
Record operations: listing, creation, retrieval, partial update and delete.

These functions hold the request semantics; the HTTP layer in
``visitlog.routes`` only resolves dependencies and wraps results.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from visitlog.cursor import CursorCodec
from visitlog.db import RecordDb, RecordItem
from visitlog.errors import InvalidCursorError, RecordNotFoundError
from visitlog.projection import thumbnail_key, to_detail, to_list_item
from visitlog.schemas import (
    CreateRecordPayload,
    CreateRecordResponse,
    RecordDetail,
    RecordListResponse,
    UpdateRecordPayload,
    UpdateRecordResponse,
)
from visitlog.storage import StorageClient
from visitlog.utils import format_timestamp, new_record_id

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
CLEARED_TO_EMPTY = ("companions", "photo_keys")


def _resume_position(codec: CursorCodec, cursor: Optional[str]) -> Optional[dict]:
    if not cursor:
        return None
    position = codec.decode(cursor)
    if not isinstance(position.get("visitDate"), str) or not isinstance(
        position.get("recordId"), str
    ):
        raise InvalidCursorError()
    return position


def matches_keyword(item: RecordItem, keyword: str) -> bool:
    needle = keyword.lower()
    if needle in item.store_name.lower():
        return True
    if item.note and needle in item.note.lower():
        return True
    return any(needle in companion.lower() for companion in item.companions)


def list_records(
    db: RecordDb,
    codec: CursorCodec,
    user_id: str,
    *,
    base_url: str,
    ascending: bool = False,
    limit: int = DEFAULT_PAGE_SIZE,
    cursor: Optional[str] = None,
    keyword: Optional[str] = None,
) -> RecordListResponse:
    start_after = _resume_position(codec, cursor)
    page = db.query_records(
        user_id,
        ascending=ascending,
        limit=max(1, min(limit, MAX_PAGE_SIZE)),
        start_after=start_after,
    )
    items = page.items
    if keyword:
        # Filters the fetched page only; matches on other pages are not pulled in.
        items = [item for item in items if matches_keyword(item, keyword)]
    return RecordListResponse(
        records=[to_list_item(item, base_url) for item in items],
        next_cursor=codec.encode(page.last_key) if page.last_key else None,
        has_more=page.last_key is not None,
    )


def create_record(
    db: RecordDb, user_id: str, payload: CreateRecordPayload, now: datetime
) -> CreateRecordResponse:
    timestamp = format_timestamp(now)
    item = RecordItem(
        user_id=user_id,
        record_id=new_record_id(),
        store_name=payload.store_name,
        place_id=payload.place_id,
        latitude=payload.latitude,
        longitude=payload.longitude,
        address=payload.address,
        visit_date=payload.visit_date.isoformat(),
        rating=payload.rating,
        note=payload.note,
        companions=list(payload.companions or []),
        photo_keys=list(payload.photo_keys or []),
        created_at=timestamp,
        updated_at=timestamp,
    )
    db.put_record(item)
    logger.info("Created record %s for user %s", item.record_id, user_id)
    return CreateRecordResponse(record_id=item.record_id, created_at=timestamp)


def get_record(
    db: RecordDb, user_id: str, record_id: str, *, base_url: str
) -> RecordDetail:
    item = db.get_record(user_id, record_id)
    if item is None:
        raise RecordNotFoundError()
    return to_detail(item, base_url)


def update_record(
    db: RecordDb,
    user_id: str,
    record_id: str,
    payload: UpdateRecordPayload,
    now: datetime,
) -> UpdateRecordResponse:
    changes = payload.model_dump(exclude_unset=True)
    if "visit_date" in changes:
        changes["visit_date"] = changes["visit_date"].isoformat()
    for name in CLEARED_TO_EMPTY:
        if name in changes and changes[name] is None:
            changes[name] = []
    updated_at = format_timestamp(now)
    item = db.update_record(user_id, record_id, changes, updated_at)
    if item is None:
        raise RecordNotFoundError()
    logger.info(
        "Updated record %s for user %s (%s)",
        record_id,
        user_id,
        ", ".join(sorted(changes)) or "timestamp only",
    )
    return UpdateRecordResponse(record_id=record_id, updated_at=updated_at)


def owned_photo_objects(user_id: str, photo_keys: Iterable[str]) -> list[str]:
    """Original and thumbnail keys for the photos stored under the user's prefix."""
    prefix = f"photos/{user_id}/"
    paths: list[str] = []
    for key in photo_keys:
        if not key.startswith(prefix):
            continue
        for path in (key, thumbnail_key(key)):
            if path not in paths:
                paths.append(path)
    return paths


def photo_keys_in_use(db: RecordDb, user_id: str) -> set[str]:
    """Every photo key referenced by the user's remaining records."""
    in_use: set[str] = set()
    start_after: Optional[dict] = None
    while True:
        page = db.query_records(
            user_id, ascending=True, limit=MAX_PAGE_SIZE, start_after=start_after
        )
        for item in page.items:
            in_use.update(item.photo_keys)
        if page.last_key is None:
            return in_use
        start_after = page.last_key


def delete_record(
    db: RecordDb, storage: StorageClient, user_id: str, record_id: str
) -> None:
    removed = db.delete_record(user_id, record_id)
    if removed is None:
        return
    logger.info("Deleted record %s for user %s", record_id, user_id)
    try:
        # Keys shared with another record of the same user stay in storage.
        in_use = photo_keys_in_use(db, user_id) if removed.photo_keys else set()
        paths = owned_photo_objects(
            user_id, [key for key in removed.photo_keys if key not in in_use]
        )
        if not paths:
            return
        storage.delete_objects(paths)
    except Exception:
        # The record is already gone; orphaned objects are left for cleanup.
        logger.exception(
            "Failed to reclaim photo objects of record %s", record_id
        )
