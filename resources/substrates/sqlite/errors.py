"""SQLite/SQLAlchemy exception normalization helpers.

SQLite reports most failures through a handful of DB-API classes, so the
driver's reason text decides the category: a uniqueness violation is a
conflict, a missing table or column is a schema problem, and only genuine
open/IO failures mean the store is unavailable.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, OperationalError

from packages.tagcheck_shared.errors import (
    ConstraintError,
    ErrorCategory,
    ErrorDetail,
    SchemaError,
    StoreConnectionError,
    StoreError,
    codes,
)

_SCHEMA_REASONS = ("no such table", "no such column", "has no column named")
_TRANSIENT_REASONS = ("database is locked", "database table is locked")

_TYPED_ERRORS: dict[str, type[StoreError]] = {
    codes.ALREADY_EXISTS: ConstraintError,
    codes.SCHEMA_MISMATCH: SchemaError,
    codes.DEPENDENCY_UNAVAILABLE: StoreConnectionError,
}


def driver_reason(exc: BaseException) -> str:
    """Return the DB-API message without SQLAlchemy's statement suffix."""
    original = getattr(exc, "orig", None)
    return str(original if original is not None else exc)


def normalize_sqlite_error(exc: Exception) -> ErrorDetail:
    """Map low-level DB exceptions into shared structured error semantics."""
    reason = driver_reason(exc)
    lowered = reason.lower()
    exc_type_name = type(exc).__name__
    metadata = {"exception_type": exc_type_name, "reason": reason}

    if "unique constraint failed" in lowered:
        return ErrorDetail(
            code=codes.ALREADY_EXISTS,
            message=f"resource already exists: {reason}",
            category=ErrorCategory.CONFLICT,
            metadata=metadata,
        )

    if isinstance(exc, IntegrityError):
        return ErrorDetail(
            code=codes.INTEGRITY_VIOLATION,
            message=f"sqlite integrity check failed: {reason}",
            category=ErrorCategory.INTERNAL,
            metadata=metadata,
        )

    if any(marker in lowered for marker in _SCHEMA_REASONS):
        return ErrorDetail(
            code=codes.SCHEMA_MISMATCH,
            message=f"sqlite schema mismatch: {reason}",
            category=ErrorCategory.SCHEMA,
            metadata=metadata,
        )

    if isinstance(exc, OperationalError) or "unable to open" in lowered:
        return ErrorDetail(
            code=codes.DEPENDENCY_UNAVAILABLE,
            message=f"sqlite store unavailable: {reason}",
            category=ErrorCategory.DEPENDENCY,
            retryable=any(marker in lowered for marker in _TRANSIENT_REASONS),
            metadata=metadata,
        )

    if "InterfaceError" in exc_type_name or "ProgrammingError" in exc_type_name:
        return ErrorDetail(
            code=codes.DEPENDENCY_FAILURE,
            message=f"sqlite request failed: {reason}",
            category=ErrorCategory.DEPENDENCY,
            metadata=metadata,
        )

    return ErrorDetail(
        code=codes.UNEXPECTED_EXCEPTION,
        message=f"unexpected sqlite failure: {reason}",
        category=ErrorCategory.INTERNAL,
        metadata=metadata,
    )


def to_store_error(exc: Exception) -> StoreError:
    """Build the typed store exception matching one driver failure."""
    detail = normalize_sqlite_error(exc)
    return _TYPED_ERRORS.get(detail.code, StoreError)(detail)
