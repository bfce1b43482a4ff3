"""Embedded SQLite store primitives for tagcheck."""

from resources.substrates.sqlite.config import SqliteConfig
from resources.substrates.sqlite.engine import create_sqlite_engine
from resources.substrates.sqlite.errors import normalize_sqlite_error, to_store_error
from resources.substrates.sqlite.handle import StoreHandle, ensure_schema, open_store
from resources.substrates.sqlite.health import ping
from resources.substrates.sqlite.schema import FieldSpec, RecordSchema, UniqueSpec

__all__ = [
    "FieldSpec",
    "RecordSchema",
    "SqliteConfig",
    "StoreHandle",
    "UniqueSpec",
    "create_sqlite_engine",
    "ensure_schema",
    "normalize_sqlite_error",
    "open_store",
    "ping",
    "to_store_error",
]
