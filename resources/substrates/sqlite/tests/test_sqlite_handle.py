"""Tests for opening SQLite stores and ensuring record tables."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import inspect, text

from packages.tagcheck_shared.config import StoreSettings
from packages.tagcheck_shared.errors import SchemaError, StoreConnectionError, codes
from resources.substrates.sqlite import ensure_schema, open_store
from resources.substrates.sqlite.schema import FieldSpec, RecordSchema, UniqueSpec

PAIR_SCHEMA = RecordSchema(
    name="pair",
    fields=(
        FieldSpec("id", "integer", primary_key=True),
        FieldSpec("group_id", "integer", default=0),
        FieldSpec("label", "string", column="label_text", default=""),
        FieldSpec("seen_at", "timestamp"),
    ),
    unique=(UniqueSpec("idx_pair_group_label", ("group_id", "label")),),
)


def test_empty_path_opens_shared_in_memory_store() -> None:
    """Every session of an in-memory handle must see the same database."""
    with open_store("") as handle:
        assert handle.config.in_memory is True
        with handle.session() as session:
            session.execute(text("CREATE TABLE scratch (id INTEGER PRIMARY KEY)"))
        with handle.session() as session:
            count = session.execute(text("SELECT count(*) FROM scratch")).scalar_one()
        assert count == 0
        assert handle.is_healthy() is True


def test_file_path_creates_database_file(tmp_path: Path) -> None:
    db_path = tmp_path / "store.db"

    with open_store(db_path) as handle:
        assert handle.config.in_memory is False
        assert handle.config.path == str(db_path)

    assert db_path.exists()


def test_unopenable_path_raises_connection_error(tmp_path: Path) -> None:
    """Missing parent directories cannot hold a database file."""
    with pytest.raises(StoreConnectionError) as excinfo:
        open_store(tmp_path / "missing" / "store.db")

    assert excinfo.value.code == codes.DEPENDENCY_UNAVAILABLE
    assert excinfo.value.detail.category.value == "dependency"


def test_directory_path_raises_connection_error(tmp_path: Path) -> None:
    with pytest.raises(StoreConnectionError):
        open_store(tmp_path)


def test_nul_byte_path_raises_connection_error() -> None:
    with pytest.raises(StoreConnectionError, match="invalid sqlite store path"):
        open_store("bad\x00name.db")


def test_ensure_schema_creates_table_with_unique_index() -> None:
    with open_store("") as handle:
        table = ensure_schema(handle, PAIR_SCHEMA)

        inspector = inspect(handle.engine)
        columns = [column["name"] for column in inspector.get_columns("tb_pair")]
        indexes = inspector.get_indexes("tb_pair")

    assert table.name == "tb_pair"
    assert columns == ["id", "group_id", "label_text", "seen_at"]
    assert indexes[0]["name"] == "idx_pair_group_label"
    assert indexes[0]["column_names"] == ["group_id", "label_text"]
    assert indexes[0]["unique"]
    assert handle.tables["pair"] is table


def test_ensure_schema_is_idempotent_for_one_handle() -> None:
    with open_store("") as handle:
        first = ensure_schema(handle, PAIR_SCHEMA)
        second = ensure_schema(handle, PAIR_SCHEMA)

    assert first is second


def test_ensure_schema_accepts_compatible_existing_table(tmp_path: Path) -> None:
    """Reopening a file store verifies rather than recreates the table."""
    db_path = tmp_path / "store.db"
    with open_store(db_path) as handle:
        ensure_schema(handle, PAIR_SCHEMA)

    with open_store(db_path) as handle:
        table = ensure_schema(handle, PAIR_SCHEMA)

    assert table.name == "tb_pair"


def test_ensure_schema_honors_table_prefix() -> None:
    with open_store("", settings=StoreSettings(table_prefix="t_")) as handle:
        table = ensure_schema(handle, PAIR_SCHEMA)

    assert table.name == "t_pair"


def test_ensure_schema_rejects_missing_columns() -> None:
    with open_store("") as handle:
        with handle.session() as session:
            session.execute(
                text("CREATE TABLE tb_pair (id INTEGER PRIMARY KEY, group_id INTEGER)")
            )

        with pytest.raises(SchemaError) as excinfo:
            ensure_schema(handle, PAIR_SCHEMA)

    assert excinfo.value.code == codes.SCHEMA_MISMATCH
    assert "missing column label_text" in str(excinfo.value)
    assert "missing column seen_at" in str(excinfo.value)


def test_ensure_schema_rejects_missing_unique_constraint() -> None:
    with open_store("") as handle:
        with handle.session() as session:
            session.execute(
                text(
                    "CREATE TABLE tb_pair (id INTEGER PRIMARY KEY, group_id INTEGER, "
                    "label_text VARCHAR, seen_at DATETIME)"
                )
            )

        with pytest.raises(SchemaError, match="missing unique constraint"):
            ensure_schema(handle, PAIR_SCHEMA)


def test_ensure_schema_accepts_inline_unique_constraint() -> None:
    """A UNIQUE table constraint satisfies the declared uniqueness group."""
    with open_store("") as handle:
        with handle.session() as session:
            session.execute(
                text(
                    "CREATE TABLE tb_pair (id INTEGER PRIMARY KEY, group_id INTEGER, "
                    "label_text VARCHAR, seen_at DATETIME, UNIQUE (group_id, label_text))"
                )
            )

        table = ensure_schema(handle, PAIR_SCHEMA)

    assert table.name == "tb_pair"


def test_session_rolls_back_on_error() -> None:
    with open_store("") as handle:
        with handle.session() as session:
            session.execute(text("CREATE TABLE scratch (id INTEGER PRIMARY KEY)"))

        with pytest.raises(RuntimeError, match="boom"):
            with handle.session() as session:
                session.execute(text("INSERT INTO scratch (id) VALUES (1)"))
                raise RuntimeError("boom")

        with handle.session() as session:
            count = session.execute(text("SELECT count(*) FROM scratch")).scalar_one()

    assert count == 0


def test_ensure_schema_rejects_extra_required_column() -> None:
    """A NOT NULL column without a default would make every insert fail."""
    with open_store("") as handle:
        with handle.session() as session:
            session.execute(
                text(
                    "CREATE TABLE tb_pair (id INTEGER PRIMARY KEY, group_id INTEGER, "
                    "label_text VARCHAR, seen_at DATETIME, tenant VARCHAR NOT NULL)"
                )
            )
            session.execute(
                text(
                    "CREATE UNIQUE INDEX idx_pair_group_label "
                    "ON tb_pair (group_id, label_text)"
                )
            )

        with pytest.raises(SchemaError) as excinfo:
            ensure_schema(handle, PAIR_SCHEMA)

    assert excinfo.value.code == codes.SCHEMA_MISMATCH
    assert "extra column tenant is NOT NULL without a default" in str(excinfo.value)


def test_ensure_schema_tolerates_extra_optional_columns() -> None:
    with open_store("") as handle:
        with handle.session() as session:
            session.execute(
                text(
                    "CREATE TABLE tb_pair (id INTEGER PRIMARY KEY, group_id INTEGER, "
                    "label_text VARCHAR, seen_at DATETIME, note VARCHAR, "
                    "tenant VARCHAR NOT NULL DEFAULT 'main', "
                    "UNIQUE (group_id, label_text))"
                )
            )

        table = ensure_schema(handle, PAIR_SCHEMA)

    assert table.name == "tb_pair"


def test_read_only_store_raises_connection_error(tmp_path: Path) -> None:
    """The open-time header write fails on a store SQLite opened read-only."""
    db_path = tmp_path / "store.db"
    with open_store(db_path):
        pass

    with pytest.raises(StoreConnectionError, match="readonly") as excinfo:
        open_store(f"file:{db_path}?mode=ro")

    assert excinfo.value.code == codes.DEPENDENCY_UNAVAILABLE
    assert excinfo.value.detail.metadata["store_path"] == f"file:{db_path}?mode=ro"


def test_uri_path_opens_writable_store(tmp_path: Path) -> None:
    db_path = tmp_path / "store.db"

    with open_store(f"file:{db_path}?mode=rwc") as handle:
        ensure_schema(handle, PAIR_SCHEMA)

    with open_store(db_path) as handle:
        assert inspect(handle.engine).has_table("tb_pair")
