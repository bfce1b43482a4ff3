"""Public logging API for tagcheck.

Wraps Python's ``logging`` module with a single stderr handler and
``contextvars``-scoped structured fields.
"""

from . import fields
from .config import configure_logging
from .context import bind_context, clear_context, get_context, log_context

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "fields",
    "get_context",
    "log_context",
]
