"""
FastAPI application entry point for the visit-log backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from visitlog.config import DEFAULT_CURSOR_SECRET, get_settings
from visitlog.envelope import CORS_HEADERS, api_error_response, error_response
from visitlog.errors import ApiError, ErrorCode, UnauthorizedError, ValidationError
from visitlog.identity import USER_ID_HEADER, resolve_user_id
from visitlog.routes import router

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}


def _field_name(err: dict) -> str:
    if err.get("type") == "json_invalid":
        return "body"
    loc = tuple(err.get("loc", ()))
    parts = [str(part) for part in loc[1:]] or [str(part) for part in loc]
    return ".".join(parts)


async def _handle_api_error(request: Request, exc: ApiError):
    return api_error_response(exc)


async def _handle_validation_error(request: Request, exc: RequestValidationError):
    # Body parsing runs before dependencies, so the identity check is repeated here.
    try:
        resolve_user_id(request.headers.get(USER_ID_HEADER))
    except UnauthorizedError as unauthorized:
        return api_error_response(unauthorized)
    fields = sorted({_field_name(err) for err in exc.errors()})
    return api_error_response(ValidationError(details={"fields": fields}))


async def _handle_http_error(request: Request, exc: StarletteHTTPException):
    response = error_response(
        exc.status_code,
        HTTP_ERROR_CODES.get(exc.status_code, ErrorCode.HTTP_ERROR.value),
        str(exc.detail),
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(
        500, ErrorCode.INTERNAL_ERROR.value, "An unexpected error occurred"
    )


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    if (
        settings.cursor_secret == DEFAULT_CURSOR_SECRET
        and not settings.use_in_memory_backends
    ):
        logger.warning(
            "CURSOR_SECRET is not set; pagination cursors are signed with the development default"
        )
    app = FastAPI(title="Visit Log Backend (FastAPI)", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def allow_any_origin(request: Request, call_next):
        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    app.add_exception_handler(ApiError, _handle_api_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
