"""Domain contracts for Tagged Record payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TaggedRecordInput(BaseModel):
    """Caller-supplied fields of one Tagged Record."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    owner_id: int = Field(default=0, ge=0)
    key: str = ""
    value: str = ""
    created_by: int = Field(default=0, ge=0)
    updated_by: int = Field(default=0, ge=0)


class TaggedRecord(TaggedRecordInput):
    """Stored Tagged Record including store-assigned identity and timestamps."""

    id: int = Field(gt=0)
    created_at: datetime
    updated_at: datetime

    def payload(self) -> TaggedRecordInput:
        """Return only the caller-supplied fields of this record."""
        return TaggedRecordInput(
            owner_id=self.owner_id,
            key=self.key,
            value=self.value,
            created_by=self.created_by,
            updated_by=self.updated_by,
        )

    def with_changes(self, **changes: Any) -> TaggedRecord:
        """Return a validated copy with ``changes`` applied."""
        return TaggedRecord.model_validate({**self.model_dump(), **changes})


class RecordPage(BaseModel):
    """One page of records plus the unpaged total count."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    records: tuple[TaggedRecord, ...]
    total: int
    offset: int
    limit: int | None
