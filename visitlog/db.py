"""
Record storage for Postgres and an in-memory test implementation.

Records live in a per-user partition keyed by ``(user_id, record_id)`` and
are listed through an ordering on ``(visit_date, record_id)``. Listing is
keyset-paginated: callers pass the last position they saw and get the next
slice back together with the position to resume from.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Protocol

from sqlalchemy import (
    JSON,
    Column,
    Float,
    Index,
    String,
    Text,
    and_,
    create_engine,
    or_,
    select,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

UPDATABLE_FIELDS = (
    "store_name",
    "visit_date",
    "rating",
    "note",
    "companions",
    "photo_keys",
)


@dataclass
class RecordItem:
    user_id: str
    record_id: str
    store_name: str
    latitude: float
    longitude: float
    visit_date: str
    rating: float
    created_at: str
    updated_at: str
    place_id: Optional[str] = None
    address: Optional[str] = None
    note: Optional[str] = None
    companions: list[str] = field(default_factory=list)
    photo_keys: list[str] = field(default_factory=list)

    def position(self) -> dict:
        """Resume position for listing after this item."""
        return {"visitDate": self.visit_date, "recordId": self.record_id}

    def copy(self) -> "RecordItem":
        return replace(
            self, companions=list(self.companions), photo_keys=list(self.photo_keys)
        )


@dataclass
class RecordPage:
    items: list[RecordItem]
    last_key: Optional[dict] = None


class RecordDb(Protocol):
    """Interface for record persistence."""

    def put_record(self, item: RecordItem) -> None:
        ...

    def get_record(self, user_id: str, record_id: str) -> Optional[RecordItem]:
        ...

    def update_record(
        self, user_id: str, record_id: str, changes: dict, updated_at: str
    ) -> Optional[RecordItem]:
        """Apply ``changes`` only if the record exists; ``None`` otherwise."""
        ...

    def delete_record(self, user_id: str, record_id: str) -> Optional[RecordItem]:
        """Remove the record if present and return what was removed."""
        ...

    def query_records(
        self,
        user_id: str,
        *,
        ascending: bool,
        limit: int,
        start_after: Optional[dict] = None,
    ) -> RecordPage:
        ...


def _sort_key(item: RecordItem) -> tuple[str, str]:
    return (item.visit_date, item.record_id)


class InMemoryRecordDb:
    """Simple in-memory record table for development and tests."""

    def __init__(self):
        self.items: Dict[tuple[str, str], RecordItem] = {}
        self._lock = threading.Lock()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.items.clear()

    def put_record(self, item: RecordItem) -> None:
        with self._lock:
            self.items[(item.user_id, item.record_id)] = item.copy()

    def get_record(self, user_id: str, record_id: str) -> Optional[RecordItem]:
        with self._lock:
            item = self.items.get((user_id, record_id))
            return item.copy() if item else None

    def update_record(
        self, user_id: str, record_id: str, changes: dict, updated_at: str
    ) -> Optional[RecordItem]:
        with self._lock:
            item = self.items.get((user_id, record_id))
            if item is None:
                return None
            for name, value in changes.items():
                if name in UPDATABLE_FIELDS:
                    setattr(item, name, list(value) if isinstance(value, list) else value)
            item.updated_at = updated_at
            return item.copy()

    def delete_record(self, user_id: str, record_id: str) -> Optional[RecordItem]:
        with self._lock:
            return self.items.pop((user_id, record_id), None)

    def query_records(
        self,
        user_id: str,
        *,
        ascending: bool,
        limit: int,
        start_after: Optional[dict] = None,
    ) -> RecordPage:
        with self._lock:
            items = [
                item.copy()
                for (owner, _), item in self.items.items()
                if owner == user_id
            ]
        items.sort(key=_sort_key, reverse=not ascending)
        if start_after:
            marker = (start_after["visitDate"], start_after["recordId"])
            if ascending:
                items = [item for item in items if _sort_key(item) > marker]
            else:
                items = [item for item in items if _sort_key(item) < marker]
        page = items[:limit]
        last_key = page[-1].position() if len(items) > limit and page else None
        return RecordPage(items=page, last_key=last_key)


class SqlRecordDb:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlRecordDb")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_item(self, row: "RecordRow") -> RecordItem:
        return RecordItem(
            user_id=row.user_id,
            record_id=row.record_id,
            store_name=row.store_name,
            place_id=row.place_id,
            latitude=row.latitude,
            longitude=row.longitude,
            address=row.address,
            visit_date=row.visit_date,
            rating=row.rating,
            note=row.note,
            companions=list(row.companions or []),
            photo_keys=list(row.photo_keys or []),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def put_record(self, item: RecordItem) -> None:
        with self.Session() as session:
            session.add(
                RecordRow(
                    user_id=item.user_id,
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
                    photo_keys=list(item.photo_keys),
                    created_at=item.created_at,
                    updated_at=item.updated_at,
                )
            )
            session.commit()

    def get_record(self, user_id: str, record_id: str) -> Optional[RecordItem]:
        with self.Session() as session:
            row = session.get(RecordRow, (user_id, record_id))
            return self._to_item(row) if row else None

    def update_record(
        self, user_id: str, record_id: str, changes: dict, updated_at: str
    ) -> Optional[RecordItem]:
        values = {
            getattr(RecordRow, name): value
            for name, value in changes.items()
            if name in UPDATABLE_FIELDS
        }
        values[RecordRow.updated_at] = updated_at
        with self.Session() as session:
            # One conditional UPDATE; no matching row means the record is absent.
            updated = (
                session.query(RecordRow)
                .filter(
                    RecordRow.user_id == user_id,
                    RecordRow.record_id == record_id,
                )
                .update(values, synchronize_session=False)
            )
            session.commit()
            if not updated:
                return None
            row = session.get(RecordRow, (user_id, record_id))
            return self._to_item(row) if row else None

    def delete_record(self, user_id: str, record_id: str) -> Optional[RecordItem]:
        with self.Session() as session:
            row = session.get(RecordRow, (user_id, record_id))
            if not row:
                return None
            item = self._to_item(row)
            session.delete(row)
            session.commit()
            return item

    def query_records(
        self,
        user_id: str,
        *,
        ascending: bool,
        limit: int,
        start_after: Optional[dict] = None,
    ) -> RecordPage:
        stmt = select(RecordRow).where(RecordRow.user_id == user_id)
        if start_after:
            visit_date = start_after["visitDate"]
            record_id = start_after["recordId"]
            if ascending:
                stmt = stmt.where(
                    or_(
                        RecordRow.visit_date > visit_date,
                        and_(
                            RecordRow.visit_date == visit_date,
                            RecordRow.record_id > record_id,
                        ),
                    )
                )
            else:
                stmt = stmt.where(
                    or_(
                        RecordRow.visit_date < visit_date,
                        and_(
                            RecordRow.visit_date == visit_date,
                            RecordRow.record_id < record_id,
                        ),
                    )
                )
        if ascending:
            stmt = stmt.order_by(RecordRow.visit_date.asc(), RecordRow.record_id.asc())
        else:
            stmt = stmt.order_by(RecordRow.visit_date.desc(), RecordRow.record_id.desc())
        # One extra row tells us whether another page exists.
        stmt = stmt.limit(limit + 1)
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            items = [self._to_item(row) for row in rows[:limit]]
        last_key = items[-1].position() if len(rows) > limit and items else None
        return RecordPage(items=items, last_key=last_key)


Base = declarative_base()


class RecordRow(Base):
    __tablename__ = "records"

    user_id = Column(String, primary_key=True)
    record_id = Column(String, primary_key=True)
    store_name = Column(String, nullable=False)
    place_id = Column(String, nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    address = Column(String, nullable=True)
    visit_date = Column(String(10), nullable=False)
    rating = Column(Float, nullable=False)
    note = Column(Text, nullable=True)
    companions = Column(JSON, nullable=False, default=list)
    photo_keys = Column(JSON, nullable=False, default=list)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    __table_args__ = (
        Index("ix_records_user_visit_date", "user_id", "visit_date", "record_id"),
    )
