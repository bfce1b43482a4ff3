"""Structured error shape carried by every tagcheck exception."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ErrorCategory(str, Enum):
    """What kind of failure a store or verification error reports."""

    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    DEPENDENCY = "dependency"
    SCHEMA = "schema"
    VERIFICATION = "verification"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """Machine-readable description of one failure.

    ``retryable`` is only ever true for transient SQLite lock contention.
    """

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-ready view for CLI error output."""
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
            "metadata": dict(self.metadata),
        }
