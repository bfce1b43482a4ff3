"""Data-layer exports for the tag authority."""

from services.state.tag_authority.data.repository import SqliteTagRepository
from services.state.tag_authority.data.schema import TAGGED_RECORD_SCHEMA

__all__ = ["SqliteTagRepository", "TAGGED_RECORD_SCHEMA"]
