"""Storage-neutral protocol interfaces used by the tag authority."""

from __future__ import annotations

from typing import Protocol

from services.state.tag_authority.domain import (
    RecordPage,
    TaggedRecord,
    TaggedRecordInput,
)


class TagRepository(Protocol):
    """Protocol for authoritative Tagged Record persistence operations."""

    def create(self, record: TaggedRecordInput) -> TaggedRecord:
        """Insert one record and return it with store-assigned fields."""

    def fetch_first(self) -> TaggedRecord:
        """Return the record with the lowest id or raise ``NotFoundError``."""

    def get_by_id(self, record_id: int) -> TaggedRecord:
        """Return one record by id or raise ``NotFoundError``."""

    def persist(self, record: TaggedRecord | TaggedRecordInput) -> TaggedRecord:
        """Update a record in place when it has an id, else create it."""

    def delete_by_id(self, record_id: int) -> bool:
        """Delete one record by id and return whether it existed."""

    def upsert_value(self, record: TaggedRecordInput) -> TaggedRecord:
        """Insert, or update only the value of the existing owner/key row."""

    def list_records(
        self,
        *,
        owner_id: int | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> RecordPage:
        """Return one page of records ordered by id plus the unpaged total."""
