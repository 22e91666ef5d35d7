"""
Uniform ``{"data": ...}`` / ``{"error": {...}}`` response bodies.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from visitlog.errors import ApiError
from visitlog.schemas import ErrorBody, ErrorEnvelope

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


def error_body(code: str, message: str, details: Optional[dict[str, Any]] = None) -> dict:
    envelope = ErrorEnvelope(error=ErrorBody(code=code, message=message, details=details))
    return jsonable_encoder(envelope, exclude_none=True)


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(code, message, details),
        headers=CORS_HEADERS,
    )


def api_error_response(exc: ApiError) -> JSONResponse:
    return error_response(exc.status_code, exc.code.value, exc.message, exc.details)
