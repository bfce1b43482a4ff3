"""Shared fixtures for tag authority tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest

from resources.substrates.sqlite import StoreHandle, ensure_schema, open_store
from services.state.tag_authority.data import SqliteTagRepository, TAGGED_RECORD_SCHEMA


class SteppingClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 2, 23, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


@pytest.fixture
def store() -> Iterator[StoreHandle]:
    """Provide an in-memory store and ensure engine cleanup."""
    with open_store("") as handle:
        yield handle


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def repository(store: StoreHandle, clock: SteppingClock) -> SqliteTagRepository:
    """Provide a repository over a freshly ensured Tagged Record table."""
    table = ensure_schema(store, TAGGED_RECORD_SCHEMA)
    return SqliteTagRepository(store, table, clock=clock)
