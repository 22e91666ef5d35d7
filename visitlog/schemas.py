"""
Pydantic schemas for the visit-log API. Field names are snake_case in Python
and camelCase on the wire.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DataEnvelope(BaseModel, Generic[T]):
    data: T


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class ErrorEnvelope(BaseModel):
    error: ErrorBody


class CreateRecordPayload(CamelModel):
    store_name: str = Field(..., min_length=1)
    place_id: Optional[str] = None
    latitude: float
    longitude: float
    address: Optional[str] = None
    visit_date: date
    rating: float
    note: Optional[str] = None
    companions: Optional[list[str]] = None
    photo_keys: Optional[list[str]] = None


class UpdateRecordPayload(CamelModel):
    """
    Partial update. Only fields present in the request body are applied;
    ``model_fields_set`` tells an omitted field apart from an explicit null.
    """

    store_name: Optional[str] = Field(default=None, min_length=1)
    visit_date: Optional[date] = None
    rating: Optional[float] = None
    note: Optional[str] = None
    companions: Optional[list[str]] = None
    photo_keys: Optional[list[str]] = None

    @field_validator("store_name", "visit_date", "rating")
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise ValueError("field is required and cannot be cleared")
        return value


class CreateRecordResponse(CamelModel):
    record_id: str
    created_at: str


class UpdateRecordResponse(CamelModel):
    record_id: str
    updated_at: str


class RecordListItem(CamelModel):
    record_id: str
    store_name: str
    latitude: float
    longitude: float
    visit_date: str
    rating: float
    note: Optional[str] = None
    companions: list[str]
    thumbnail_url: Optional[str] = None
    created_at: str


class RecordListResponse(CamelModel):
    records: list[RecordListItem]
    next_cursor: Optional[str] = None
    has_more: bool


class PhotoUrls(CamelModel):
    original_url: str
    thumbnail_url: str


class RecordDetail(CamelModel):
    record_id: str
    store_name: str
    place_id: Optional[str] = None
    latitude: float
    longitude: float
    address: Optional[str] = None
    visit_date: str
    rating: float
    note: Optional[str] = None
    companions: list[str]
    photos: list[PhotoUrls]
    created_at: str
    updated_at: str


class UploadSlot(CamelModel):
    index: int
    upload_url: str
    key: str
    expires_at: str


class UploadUrlResponse(CamelModel):
    record_id: str
    upload_urls: list[UploadSlot]
