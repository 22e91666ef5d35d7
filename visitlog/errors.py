"""
Error taxonomy for the visit-log API.

Every failure the backend reports is an ``ApiError`` subclass. Handlers
registered in ``visitlog.app`` turn them into the ``{"error": {...}}``
envelope with the matching HTTP status.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_CURSOR = "INVALID_CURSOR"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    # Reported by clients, never raised here.
    UPLOAD_FAILED = "UPLOAD_FAILED"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    HTTP_ERROR = "HTTP_ERROR"


class ApiError(Exception):
    """Base class for errors that map onto the error envelope."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class UnauthorizedError(ApiError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401
    default_message = "A user ID is required"


class ValidationError(ApiError):
    code = ErrorCode.VALIDATION_ERROR
    status_code = 400
    default_message = "Required fields are missing or invalid"


class InvalidCursorError(ApiError):
    code = ErrorCode.INVALID_CURSOR
    status_code = 400
    default_message = "The pagination cursor is invalid"


class RecordNotFoundError(ApiError):
    code = ErrorCode.RECORD_NOT_FOUND
    status_code = 404
    default_message = "The requested record was not found"


class InternalError(ApiError):
    code = ErrorCode.INTERNAL_ERROR
    status_code = 500


@contextmanager
def internal_errors(operation: str, message: str) -> Iterator[None]:
    """
    Run an operation, converting unexpected failures into ``InternalError``.

    ``ApiError`` passes through untouched. Anything else is logged with its
    traceback and replaced by a generic error carrying ``message``.
    """
    try:
        yield
    except ApiError:
        raise
    except Exception:
        logger.exception("%s failed", operation)
        raise InternalError(message) from None
