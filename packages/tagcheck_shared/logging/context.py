"""Log fields bound to the current store operation or verification step.

Fields live in a ``ContextVar`` as a read-only mapping. Scopes layer on top
of each other (store path, then step, then record id) and unwind on exit;
``bind_context`` sets run-wide fields such as service and environment.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType

_NO_FIELDS: Mapping[str, str] = MappingProxyType({})
_FIELDS: ContextVar[Mapping[str, str]] = ContextVar(
    "tagcheck_log_fields", default=_NO_FIELDS
)


def _layered(values: Mapping[str, object]) -> Mapping[str, str]:
    merged = dict(_FIELDS.get())
    merged.update((key, str(value)) for key, value in values.items() if value is not None)
    return MappingProxyType(merged)


def get_context() -> dict[str, str]:
    """Return the fields bound at this point."""
    return dict(_FIELDS.get())


def bind_context(**values: object) -> None:
    """Bind fields for the rest of the run. ``None`` values are skipped."""
    _FIELDS.set(_layered(values))


def clear_context() -> None:
    """Drop every bound field."""
    _FIELDS.set(_NO_FIELDS)


@contextmanager
def log_context(**values: object) -> Iterator[None]:
    """Layer ``values`` over the current fields until the block exits."""
    token = _FIELDS.set(_layered(values))
    try:
        yield
    finally:
        _FIELDS.reset(token)
