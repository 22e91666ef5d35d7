"""
Opaque pagination cursors.

A cursor is an HS256-signed JWT whose claims wrap the store's resume position
in a versioned payload (``{"v": 1, "p": {...}}``). Clients echo the token back
verbatim; anything that does not verify is rejected with ``InvalidCursorError``.
"""

from __future__ import annotations

from dataclasses import dataclass

import jwt

from visitlog.errors import InvalidCursorError

CURSOR_VERSION = 1
CURSOR_ALGORITHM = "HS256"


@dataclass(frozen=True)
class CursorCodec:
    secret: str

    def encode(self, position: dict) -> str:
        claims = {"v": CURSOR_VERSION, "p": dict(sorted(position.items()))}
        return jwt.encode(claims, self.secret, algorithm=CURSOR_ALGORITHM)

    def decode(self, token: str) -> dict:
        try:
            claims = jwt.decode(token, self.secret, algorithms=[CURSOR_ALGORITHM])
        except jwt.InvalidTokenError:
            raise InvalidCursorError() from None
        if claims.get("v") != CURSOR_VERSION:
            raise InvalidCursorError("Unsupported cursor version")
        position = claims.get("p")
        if not isinstance(position, dict):
            raise InvalidCursorError()
        return position
