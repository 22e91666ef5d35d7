"""
Public read shapes of a stored record.
"""

from __future__ import annotations

from typing import Optional

from visitlog.db import RecordItem
from visitlog.schemas import PhotoUrls, RecordDetail, RecordListItem


def photo_url(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/{key}"


def thumbnail_key(key: str) -> str:
    # Plain first-occurrence text replacement; keys without the segment pass through.
    return key.replace("/original/", "/thumbnail/", 1)


def _first_photo_url(item: RecordItem, base_url: str) -> Optional[str]:
    if not item.photo_keys:
        return None
    return photo_url(base_url, item.photo_keys[0])


def to_list_item(item: RecordItem, base_url: str) -> RecordListItem:
    return RecordListItem(
        record_id=item.record_id,
        store_name=item.store_name,
        latitude=item.latitude,
        longitude=item.longitude,
        visit_date=item.visit_date,
        rating=item.rating,
        note=item.note,
        companions=list(item.companions),
        thumbnail_url=_first_photo_url(item, base_url),
        created_at=item.created_at,
    )


def to_detail(item: RecordItem, base_url: str) -> RecordDetail:
    photos = [
        PhotoUrls(
            original_url=photo_url(base_url, key),
            thumbnail_url=photo_url(base_url, thumbnail_key(key)),
        )
        for key in item.photo_keys
    ]
    return RecordDetail(
        record_id=item.record_id,
        store_name=item.store_name,
        place_id=item.place_id,
        latitude=item.latitude,
        longitude=item.longitude,
        address=item.address,
        visit_date=item.visit_date,
        rating=item.rating,
        note=item.note,
        companions=list(item.companions),
        photos=photos,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )
