"""Scoped handle over one embedded SQLite store."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy import Engine, MetaData, Table, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from packages.tagcheck_shared.config import StoreSettings
from packages.tagcheck_shared.errors import (
    SchemaError,
    StoreConnectionError,
    codes,
)
from packages.tagcheck_shared.logging import fields
from resources.substrates.sqlite.config import SqliteConfig
from resources.substrates.sqlite.engine import create_sqlite_engine
from resources.substrates.sqlite.errors import driver_reason
from resources.substrates.sqlite.health import ping
from resources.substrates.sqlite.schema import RecordSchema, describe_mismatches

logger = logging.getLogger(__name__)


@dataclass
class StoreHandle:
    """Concrete handle for one engine, its sessions and its ensured tables."""

    config: SqliteConfig
    engine: Engine
    metadata: MetaData = field(default_factory=MetaData)
    tables: dict[str, Table] = field(default_factory=dict)
    _sessions: sessionmaker[Session] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # Records read inside a session are handed back after commit.
        self._sessions = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session whose transaction commits on exit, rolls back on error."""
        with self._sessions() as session, session.begin():
            yield session

    def is_healthy(self) -> bool:
        """Return ``True`` when the backing store answers a trivial query."""
        return ping(self.engine)

    def close(self) -> None:
        """Release every pooled connection held by this handle."""
        self.engine.dispose()

    def __enter__(self) -> StoreHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb
        self.close()


def open_store(
    path: str | Path = "", *, settings: StoreSettings | None = None
) -> StoreHandle:
    """Open (or create) the SQLite store at ``path``.

    An empty path opens an ephemeral in-memory store. ``file:`` URIs are passed
    to SQLite as-is, so ``file:tags.db?mode=ro`` opens read-only. File-backed
    stores are probed with a header write so unopenable or read-only paths fail
    here.
    """
    store_settings = settings if settings is not None else StoreSettings()
    try:
        config = SqliteConfig.from_settings(store_settings, path=path)
    except ValueError as exc:
        raise StoreConnectionError.from_message(
            f"invalid sqlite store path {str(path)!r}: {exc}",
            metadata={fields.STORE_PATH: str(path)},
        ) from exc

    engine = create_sqlite_engine(config)
    try:
        _probe(engine, writable=not config.in_memory)
    except SQLAlchemyError as exc:
        engine.dispose()
        raise StoreConnectionError.from_message(
            f"cannot open sqlite store at {config.path or ':memory:'}: "
            f"{driver_reason(exc)}",
            metadata={
                fields.STORE_PATH: config.path,
                "exception_type": type(exc).__name__,
            },
        ) from exc

    logger.debug("sqlite store opened: %s", config.path or ":memory:")
    return StoreHandle(config=config, engine=engine)


def ensure_schema(handle: StoreHandle, schema: RecordSchema) -> Table:
    """Create the table for ``schema`` if absent, else verify compatibility."""
    table_name = schema.table_name(handle.config.table_prefix)
    try:
        inspector = inspect(handle.engine)
        exists = inspector.has_table(table_name)
        if exists:
            indexes = inspector.get_indexes(table_name)
            constraints = inspector.get_unique_constraints(table_name)
            problems = describe_mismatches(
                schema,
                columns=inspector.get_columns(table_name),
                primary_key=inspector.get_pk_constraint(table_name).get(
                    "constrained_columns", []
                ),
                unique_groups=[
                    tuple(index["column_names"])
                    for index in indexes
                    if index.get("unique")
                ]
                + [tuple(item["column_names"]) for item in constraints],
            )
            if problems:
                raise SchemaError.from_message(
                    f"table {table_name} is incompatible: {'; '.join(problems)}",
                    metadata={fields.TABLE: table_name},
                )

        table = schema.build_table(handle.metadata, prefix=handle.config.table_prefix)
        if not exists:
            handle.metadata.create_all(handle.engine, tables=[table])
            logger.info("table created: %s", table_name)
    except SQLAlchemyError as exc:
        raise SchemaError.from_message(
            f"could not ensure table {table_name}: {driver_reason(exc)}",
            code=codes.SCHEMA_CREATE_FAILED,
            metadata={fields.TABLE: table_name, "exception_type": type(exc).__name__},
        ) from exc

    handle.tables[schema.name] = table
    return table


def _probe(engine: Engine, *, writable: bool) -> None:
    """Run a trivial query and, for files, rewrite the header version."""
    with engine.begin() as conn:
        conn.execute(text("SELECT 1"))
        if writable:
            version = conn.exec_driver_sql("PRAGMA user_version").scalar() or 0
            conn.exec_driver_sql(f"PRAGMA user_version = {int(version)}")
