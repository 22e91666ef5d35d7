from __future__ import annotations

from datetime import datetime, timezone

from ulid import ULID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with microseconds and a ``Z`` suffix."""
    return (
        moment.astimezone(timezone.utc)
        .isoformat(timespec="microseconds")
        .replace("+00:00", "Z")
    )


def new_record_id() -> str:
    """Return a ULID string; these sort lexicographically by creation time."""
    return str(ULID())
