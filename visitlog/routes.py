"""
HTTP routes for the visit-log API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response

from visitlog import records, uploads
from visitlog.cursor import CursorCodec
from visitlog.db import RecordDb
from visitlog.dependencies import (
    get_clock,
    get_cursor_codec,
    get_photo_base_url,
    get_record_db,
    get_storage_client,
    get_upload_expires_in,
)
from visitlog.errors import internal_errors
from visitlog.identity import get_user_id
from visitlog.schemas import (
    CreateRecordPayload,
    CreateRecordResponse,
    DataEnvelope,
    RecordDetail,
    RecordListResponse,
    UpdateRecordPayload,
    UpdateRecordResponse,
    UploadUrlResponse,
)
from visitlog.storage import StorageClient

router = APIRouter()


@router.get("/records", response_model=DataEnvelope[RecordListResponse])
def list_records(
    user_id: str = Depends(get_user_id),
    sort: Literal["visitDate"] = Query("visitDate"),
    order: Literal["asc", "desc"] = Query("desc"),
    limit: int = Query(records.DEFAULT_PAGE_SIZE, ge=1),
    cursor: Optional[str] = Query(None),
    keyword: Optional[str] = Query(None),
    db: RecordDb = Depends(get_record_db),
    codec: CursorCodec = Depends(get_cursor_codec),
    base_url: str = Depends(get_photo_base_url),
):
    with internal_errors("ListRecords", "Failed to load records"):
        page = records.list_records(
            db,
            codec,
            user_id,
            base_url=base_url,
            ascending=order == "asc",
            limit=limit,
            cursor=cursor,
            keyword=keyword,
        )
    return DataEnvelope[RecordListResponse](data=page)


@router.post(
    "/records", response_model=DataEnvelope[CreateRecordResponse], status_code=201
)
def create_record(
    payload: CreateRecordPayload,
    user_id: str = Depends(get_user_id),
    db: RecordDb = Depends(get_record_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    with internal_errors("CreateRecord", "Failed to create the record"):
        created = records.create_record(db, user_id, payload, clock())
    return DataEnvelope[CreateRecordResponse](data=created)


@router.get("/records/{record_id}", response_model=DataEnvelope[RecordDetail])
def get_record(
    record_id: str,
    user_id: str = Depends(get_user_id),
    db: RecordDb = Depends(get_record_db),
    base_url: str = Depends(get_photo_base_url),
):
    with internal_errors("GetRecord", "Failed to load the record"):
        detail = records.get_record(db, user_id, record_id, base_url=base_url)
    return DataEnvelope[RecordDetail](data=detail)


@router.api_route(
    "/records/{record_id}",
    methods=["PUT", "PATCH"],
    response_model=DataEnvelope[UpdateRecordResponse],
)
def update_record(
    record_id: str,
    payload: UpdateRecordPayload,
    user_id: str = Depends(get_user_id),
    db: RecordDb = Depends(get_record_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    with internal_errors("UpdateRecord", "Failed to update the record"):
        updated = records.update_record(db, user_id, record_id, payload, clock())
    return DataEnvelope[UpdateRecordResponse](data=updated)


@router.delete("/records/{record_id}", status_code=204, response_class=Response)
def delete_record(
    record_id: str,
    user_id: str = Depends(get_user_id),
    db: RecordDb = Depends(get_record_db),
    storage: StorageClient = Depends(get_storage_client),
):
    with internal_errors("DeleteRecord", "Failed to delete the record"):
        records.delete_record(db, storage, user_id, record_id)
    return Response(status_code=204)


@router.get("/s3-upload-url", response_model=DataEnvelope[UploadUrlResponse])
def get_upload_urls(
    user_id: str = Depends(get_user_id),
    count: int = Query(1, ge=1),
    record_id: Optional[str] = Query(None, alias="recordId"),
    storage: StorageClient = Depends(get_storage_client),
    expires_in: int = Depends(get_upload_expires_in),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    with internal_errors("GetUploadUrl", "Failed to issue upload URLs"):
        batch = uploads.issue_upload_slots(
            storage,
            user_id,
            count=count,
            record_id=record_id,
            expires_in=expires_in,
            now=clock(),
        )
    return DataEnvelope[UploadUrlResponse](data=batch)
