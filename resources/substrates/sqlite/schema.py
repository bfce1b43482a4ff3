"""Explicit record-shape descriptions and their SQLite table realization.

A ``RecordSchema`` lists fields and uniqueness groups as plain values; it is
turned into a SQLAlchemy ``Table`` at runtime and compared against whatever
table already exists in the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
)
from sqlalchemy.types import TypeEngine

FieldType = Literal["integer", "string", "timestamp"]

_COLUMN_TYPES: dict[str, type[TypeEngine[Any]]] = {
    "integer": Integer,
    "string": String,
    "timestamp": DateTime,
}


@dataclass(frozen=True)
class FieldSpec:
    """One declared field of a record shape."""

    name: str
    type: FieldType
    column: str | None = None
    primary_key: bool = False
    nullable: bool = False
    default: Any = None

    @property
    def column_name(self) -> str:
        """Return the stored column name (defaults to the field name)."""
        return self.column or self.name

    def to_column(self) -> Column[Any]:
        """Realize this field as a SQLAlchemy column."""
        column_type = _COLUMN_TYPES[self.type]
        type_instance = DateTime(timezone=True) if self.type == "timestamp" else column_type()
        if self.primary_key:
            return Column(
                self.column_name, type_instance, primary_key=True, autoincrement=True
            )
        return Column(
            self.column_name,
            type_instance,
            nullable=self.nullable,
            default=self.default,
        )


@dataclass(frozen=True)
class UniqueSpec:
    """A named group of fields whose combined values must be unique."""

    name: str
    fields: tuple[str, ...]


@dataclass(frozen=True)
class RecordSchema:
    """Complete description of one record shape and its table."""

    name: str
    fields: tuple[FieldSpec, ...]
    unique: tuple[UniqueSpec, ...] = ()

    def __post_init__(self) -> None:
        names = [spec.name for spec in self.fields]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate field names in schema {self.name}")
        primary = [spec for spec in self.fields if spec.primary_key]
        if len(primary) != 1:
            raise ValueError(f"schema {self.name} must declare exactly one primary key")
        for group in self.unique:
            unknown = [name for name in group.fields if name not in names]
            if unknown:
                raise ValueError(
                    f"unique group {group.name} references unknown fields: {unknown}"
                )

    @property
    def primary_key(self) -> FieldSpec:
        """Return the single primary-key field."""
        return next(spec for spec in self.fields if spec.primary_key)

    def get_field(self, name: str) -> FieldSpec:
        """Return one field spec by name."""
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def table_name(self, prefix: str = "") -> str:
        """Return the stored table name for a naming prefix."""
        return f"{prefix}{self.name}"

    def unique_columns(self, group: UniqueSpec) -> tuple[str, ...]:
        """Return stored column names for one uniqueness group."""
        return tuple(self.get_field(name).column_name for name in group.fields)

    def build_table(self, metadata: MetaData, *, prefix: str = "") -> Table:
        """Realize the schema as a table registered on ``metadata``."""
        table_name = self.table_name(prefix)
        existing = metadata.tables.get(table_name)
        if existing is not None:
            return existing
        columns = [spec.to_column() for spec in self.fields]
        table = Table(
            table_name,
            metadata,
            *columns,
            sqlite_autoincrement=True,
        )
        for group in self.unique:
            Index(
                group.name,
                *(table.c[column] for column in self.unique_columns(group)),
                unique=True,
            )
        return table


def describe_mismatches(
    schema: RecordSchema,
    *,
    columns: list[dict[str, Any]],
    primary_key: list[str],
    unique_groups: list[tuple[str, ...]],
) -> list[str]:
    """Compare reflected table details to ``schema`` and list incompatibilities."""
    problems: list[str] = []
    reflected = {str(column["name"]): column for column in columns}

    for spec in schema.fields:
        column = reflected.get(spec.column_name)
        if column is None:
            problems.append(f"missing column {spec.column_name}")
            continue
        expected_type = _COLUMN_TYPES[spec.type]
        if not isinstance(column["type"], expected_type):
            problems.append(
                f"column {spec.column_name} has type {column['type']!r}, expected {spec.type}"
            )

    declared = {spec.column_name for spec in schema.fields}
    for name, column in reflected.items():
        if name in declared or column.get("primary_key"):
            continue
        if not column.get("nullable", True) and column.get("default") is None:
            problems.append(f"extra column {name} is NOT NULL without a default")

    expected_pk = [schema.primary_key.column_name]
    if list(primary_key) != expected_pk:
        problems.append(f"primary key is {list(primary_key)}, expected {expected_pk}")

    present = {frozenset(group) for group in unique_groups}
    for group in schema.unique:
        columns_for_group = schema.unique_columns(group)
        if frozenset(columns_for_group) not in present:
            problems.append(f"missing unique constraint on {list(columns_for_group)}")

    return problems
