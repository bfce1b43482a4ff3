"""Exception types raised by the store substrate and tag authority.

Every exception carries one structured ``ErrorDetail`` so callers can branch on
type (``except NotFoundError``) or on the machine-readable code/category. Each
subclass fixes its category and default code; ``from_message`` fills the rest.
"""

from __future__ import annotations

from typing import ClassVar, Mapping

from . import codes
from .types import ErrorCategory, ErrorDetail


class StoreError(Exception):
    """Base error type for embedded store failures."""

    category: ClassVar[ErrorCategory] = ErrorCategory.INTERNAL
    default_code: ClassVar[str] = codes.INTERNAL_ERROR

    def __init__(self, detail: ErrorDetail) -> None:
        super().__init__(detail.message)
        self.detail = detail

    @classmethod
    def from_message(
        cls,
        message: str,
        *,
        code: str | None = None,
        retryable: bool = False,
        metadata: Mapping[str, str] | None = None,
    ) -> StoreError:
        """Build this error type with its own category."""
        return cls(
            ErrorDetail(
                code=code or cls.default_code,
                message=message,
                category=cls.category,
                retryable=retryable,
                metadata=dict(metadata or {}),
            )
        )

    @property
    def code(self) -> str:
        """Return the machine-readable error code."""
        return self.detail.code

    def __str__(self) -> str:
        return self.detail.message


class StoreConnectionError(StoreError):
    """Backing store could not be opened or reached."""

    category = ErrorCategory.DEPENDENCY
    default_code = codes.DEPENDENCY_UNAVAILABLE


class SchemaError(StoreError):
    """Table creation failed or the existing table is incompatible."""

    category = ErrorCategory.SCHEMA
    default_code = codes.SCHEMA_MISMATCH


class ConstraintError(StoreError):
    """A write violated a uniqueness constraint."""

    category = ErrorCategory.CONFLICT
    default_code = codes.ALREADY_EXISTS


class NotFoundError(StoreError):
    """No row matched a fetch."""

    category = ErrorCategory.NOT_FOUND
    default_code = codes.RESOURCE_NOT_FOUND


class VerificationError(Exception):
    """One verification step observed a state other than the expected one."""

    def __init__(
        self,
        *,
        step: str,
        expected: str,
        observed: str,
        cause: BaseException | None = None,
    ) -> None:
        message = f"step {step} failed: expected {expected}, observed {observed}"
        super().__init__(message)
        self.step = step
        self.expected = expected
        self.observed = observed
        self.detail = ErrorDetail(
            code=codes.VERIFICATION_FAILED,
            message=message,
            category=ErrorCategory.VERIFICATION,
            metadata={"step": step},
        )
        if cause is not None:
            self.__cause__ = cause
