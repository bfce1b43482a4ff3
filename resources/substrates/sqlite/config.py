"""Configuration model for embedded SQLite store access."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from packages.tagcheck_shared.config import StoreSettings

MEMORY_URL = "sqlite://"
URI_SCHEME = "file:"


@dataclass(frozen=True)
class SqliteConfig:
    """Runtime settings for constructing one SQLite engine."""

    path: str
    table_prefix: str = "tb_"
    echo: bool = False
    busy_timeout_seconds: float = 5.0

    @classmethod
    def from_settings(
        cls, settings: StoreSettings, *, path: str | Path | None = None
    ) -> SqliteConfig:
        """Build SQLite settings, letting an explicit path override config."""
        resolved = settings.path if path is None else str(path)
        instance = cls(
            path=resolved.strip(),
            table_prefix=settings.table_prefix,
            echo=settings.echo,
            busy_timeout_seconds=settings.busy_timeout_seconds,
        )
        instance.validate()
        return instance

    @property
    def in_memory(self) -> bool:
        """Return ``True`` when no backing file was requested."""
        return self.path in {"", ":memory:"}

    @property
    def is_uri(self) -> bool:
        """Return ``True`` when the path is a SQLite ``file:`` URI."""
        return self.path.startswith(URI_SCHEME)

    @property
    def url(self) -> str:
        """Return the SQLAlchemy URL for this store."""
        if self.in_memory:
            return MEMORY_URL
        if self.is_uri:
            separator = "&" if "?" in self.path else "?"
            return f"sqlite:///{self.path}{separator}uri=true"
        return f"sqlite:///{Path(self.path).expanduser()}"

    def validate(self) -> None:
        """Validate settings required to open the store."""
        if self.busy_timeout_seconds <= 0:
            raise ValueError("store.busy_timeout_seconds must be > 0")
        if "\x00" in self.path:
            raise ValueError("store.path must not contain NUL bytes")
