"""SQLAlchemy engine construction for the embedded SQLite store."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

from resources.substrates.sqlite.config import SqliteConfig


def create_sqlite_engine(config: SqliteConfig) -> Engine:
    """Construct a configured SQLAlchemy engine for one SQLite database.

    In-memory stores are pinned to a single shared connection so every session
    sees the same database for the lifetime of the engine.
    """
    config.validate()
    connect_args: dict[str, object] = {"timeout": config.busy_timeout_seconds}
    if not config.in_memory:
        return create_engine(config.url, echo=config.echo, connect_args=connect_args)

    connect_args["check_same_thread"] = False
    return create_engine(
        config.url,
        echo=config.echo,
        connect_args=connect_args,
        poolclass=StaticPool,
    )
