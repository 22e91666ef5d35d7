"""
Caller identity. The ``X-User-ID`` header is trusted as supplied; there is no
token verification behind it.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header

from visitlog.errors import UnauthorizedError

USER_ID_HEADER = "X-User-ID"


def resolve_user_id(value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise UnauthorizedError()
    user_id = value.strip()
    # The id becomes a storage path segment.
    if "/" in user_id:
        raise UnauthorizedError("The user ID is not valid")
    return user_id


def get_user_id(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
) -> str:
    return resolve_user_id(x_user_id)
