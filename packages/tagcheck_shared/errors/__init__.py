"""Public shared error API for tagcheck components."""

from . import codes
from .exceptions import (
    ConstraintError,
    NotFoundError,
    SchemaError,
    StoreConnectionError,
    StoreError,
    VerificationError,
)
from .types import ErrorCategory, ErrorDetail

__all__ = [
    "ConstraintError",
    "ErrorCategory",
    "ErrorDetail",
    "NotFoundError",
    "SchemaError",
    "StoreConnectionError",
    "StoreError",
    "VerificationError",
    "codes",
]
