"""Authoritative SQLite repository for Tagged Record state."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from packages.tagcheck_shared.errors import ConstraintError, NotFoundError
from resources.substrates.sqlite import StoreHandle, to_store_error
from services.state.tag_authority.domain import (
    RecordPage,
    TaggedRecord,
    TaggedRecordInput,
)
from services.state.tag_authority.interfaces import TagRepository


def utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


class SqliteTagRepository(TagRepository):
    """SQL repository over the Tagged Record table."""

    def __init__(
        self,
        handle: StoreHandle,
        table: Table,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._handle = handle
        self._table = table
        self._clock = clock

    @property
    def handle(self) -> StoreHandle:
        """Return the store handle this repository writes through."""
        return self._handle

    @property
    def table(self) -> Table:
        """Return the backing table."""
        return self._table

    def create(self, record: TaggedRecordInput) -> TaggedRecord:
        """Insert one row; id and timestamps are assigned here."""
        with _store_errors("create"):
            with self._handle.session() as session:
                now = _to_utc(self._clock())
                record_id = self._insert(
                    session,
                    record,
                    created_at=now,
                    updated_at=now,
                )
                return self._read(session, record_id)

    def fetch_first(self) -> TaggedRecord:
        """Return the row with the lowest id."""
        with _store_errors("fetch_first"):
            with self._handle.session() as session:
                row = (
                    session.execute(
                        select(self._table).order_by(self._table.c.id).limit(1)
                    )
                    .mappings()
                    .first()
                )
        if row is None:
            raise NotFoundError.from_message(
                f"no rows in {self._table.name}",
                metadata={"table": self._table.name},
            )
        return _to_record(row)

    def get_by_id(self, record_id: int) -> TaggedRecord:
        """Return one row by id."""
        with _store_errors("get_by_id"):
            with self._handle.session() as session:
                return self._read(session, record_id)

    def persist(self, record: TaggedRecord | TaggedRecordInput) -> TaggedRecord:
        """Write every mutable field of ``record`` and refresh ``updated_at``.

        Records without an id are created. A record whose id no longer exists
        is re-inserted under that same id.
        """
        if not isinstance(record, TaggedRecord):
            return self.create(record)

        with _store_errors("persist"):
            with self._handle.session() as session:
                now = _to_utc(self._clock())
                current = (
                    session.execute(
                        select(self._table.c.updated_at).where(
                            self._table.c.id == record.id
                        )
                    )
                    .mappings()
                    .one_or_none()
                )
                if current is None:
                    self._insert(
                        session,
                        record,
                        record_id=record.id,
                        created_at=_to_utc(record.created_at),
                        updated_at=max(now, _to_utc(record.updated_at)),
                    )
                else:
                    session.execute(
                        update(self._table)
                        .where(self._table.c.id == record.id)
                        .values(
                            owner_id=record.owner_id,
                            tag_key=record.key,
                            tag_value=record.value,
                            updated_by=record.updated_by,
                            updated_at=max(now, _row_dt(current, "updated_at")),
                        )
                    )
                return self._read(session, record.id)

    def delete_by_id(self, record_id: int) -> bool:
        """Delete one row by id and return whether it existed."""
        with _store_errors("delete_by_id"):
            with self._handle.session() as session:
                result = session.execute(
                    delete(self._table).where(self._table.c.id == record_id)
                )
                return int(result.rowcount or 0) > 0

    def upsert_value(self, record: TaggedRecordInput) -> TaggedRecord:
        """Insert, or refresh only value/updated fields on owner/key conflict."""
        with _store_errors("upsert_value"):
            with self._handle.session() as session:
                now = _to_utc(self._clock())
                stmt = sqlite_insert(self._table).values(
                    owner_id=record.owner_id,
                    tag_key=record.key,
                    tag_value=record.value,
                    created_at=now,
                    updated_at=now,
                    created_by=record.created_by,
                    updated_by=record.updated_by,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[self._table.c.owner_id, self._table.c.tag_key],
                    set_={
                        "tag_value": stmt.excluded.tag_value,
                        "updated_at": stmt.excluded.updated_at,
                        "updated_by": stmt.excluded.updated_by,
                    },
                )
                session.execute(stmt)
                row = (
                    session.execute(
                        select(self._table).where(
                            self._table.c.owner_id == record.owner_id,
                            self._table.c.tag_key == record.key,
                        )
                    )
                    .mappings()
                    .one()
                )
                return _to_record(row)

    def list_records(
        self,
        *,
        owner_id: int | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> RecordPage:
        """Return one page of rows ordered by id plus the unpaged total."""
        if offset < 0:
            raise ValueError("offset must be >= 0")
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")

        conditions = []
        if owner_id is not None:
            conditions.append(self._table.c.owner_id == owner_id)

        with _store_errors("list_records"):
            with self._handle.session() as session:
                total = session.execute(
                    select(func.count()).select_from(self._table).where(*conditions)
                ).scalar_one()
                query = (
                    select(self._table)
                    .where(*conditions)
                    .order_by(self._table.c.id)
                    .offset(offset)
                )
                if limit is not None:
                    query = query.limit(limit)
                rows = session.execute(query).mappings().all()

        return RecordPage(
            records=tuple(_to_record(row) for row in rows),
            total=int(total),
            offset=offset,
            limit=limit,
        )

    def _insert(
        self,
        session: Session,
        record: TaggedRecordInput,
        *,
        created_at: datetime,
        updated_at: datetime,
        record_id: int | None = None,
    ) -> int:
        values: dict[str, Any] = {
            "owner_id": record.owner_id,
            "tag_key": record.key,
            "tag_value": record.value,
            "created_at": created_at,
            "updated_at": updated_at,
            "created_by": record.created_by,
            "updated_by": record.updated_by,
        }
        if record_id is not None:
            values["id"] = record_id
        result = session.execute(insert(self._table).values(**values))
        return int(result.inserted_primary_key[0])

    def _read(self, session: Session, record_id: int) -> TaggedRecord:
        row = (
            session.execute(select(self._table).where(self._table.c.id == record_id))
            .mappings()
            .one_or_none()
        )
        if row is None:
            raise NotFoundError.from_message(
                f"no row with id {record_id} in {self._table.name}",
                metadata={"table": self._table.name, "record_id": str(record_id)},
            )
        return _to_record(row)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate driver failures into typed store errors."""
    try:
        yield
    except SQLAlchemyError as exc:
        error = to_store_error(exc)
        if isinstance(error, ConstraintError):
            error = ConstraintError.from_message(
                f"{operation}: owner_id/key pair already exists",
                metadata={**error.detail.metadata, "operation": operation},
            )
        raise error from exc


def _to_record(row: Any) -> TaggedRecord:
    """Map one SQL row to a strict domain record."""
    return TaggedRecord(
        id=int(row["id"]),
        owner_id=int(row["owner_id"]),
        key=str(row["tag_key"]),
        value=str(row["tag_value"]),
        created_at=_row_dt(row, "created_at"),
        updated_at=_row_dt(row, "updated_at"),
        created_by=int(row["created_by"]),
        updated_by=int(row["updated_by"]),
    )


def _row_dt(row: Any, column: str) -> datetime:
    """Read and normalize one timezone-aware datetime field from a SQL row."""
    value = row.get(column)
    if not isinstance(value, datetime):
        raise ValueError(f"expected datetime column for {column}")
    return _to_utc(value)


def _to_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
