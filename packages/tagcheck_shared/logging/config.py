"""Root logging setup for tagcheck.

Command output owns stdout, so log lines go to stderr unless another stream
is passed. Each line is a JSON object or plain text with the bound fields
appended as ``key=value`` pairs.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from . import fields
from .context import bind_context, get_context


class ContextFilter(logging.Filter):
    """Attach the currently bound fields to each record as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = get_context()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: core fields first, then bound context."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }
        payload.update(getattr(record, "context", {}))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-readable line with sorted ``key=value`` context at the end."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", {})
        if not context:
            return line
        pairs = " ".join(f"{key}={context[key]}" for key in sorted(context))
        return f"{line} {pairs}"


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = False,
    service: str | None = None,
    environment: str | None = None,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install one root handler writing to ``stream`` (stderr by default).

    Earlier root handlers are removed, so repeated calls do not duplicate
    lines. Returns the installed handler.
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())
    root.addHandler(handler)

    # SQLAlchemy only reports errors unless echo is requested explicitly.
    logging.getLogger("sqlalchemy").setLevel(logging.ERROR)

    bind_context(**{fields.SERVICE: service, fields.ENVIRONMENT: environment})
    return handler
