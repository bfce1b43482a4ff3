"""Tag authority package exports."""

from services.state.tag_authority.data import SqliteTagRepository, TAGGED_RECORD_SCHEMA
from services.state.tag_authority.domain import (
    RecordPage,
    TaggedRecord,
    TaggedRecordInput,
)
from services.state.tag_authority.interfaces import TagRepository
from services.state.tag_authority.verification import (
    VerificationReport,
    VerificationStep,
    run_verification,
    verify_store,
)

__all__ = [
    "RecordPage",
    "SqliteTagRepository",
    "TAGGED_RECORD_SCHEMA",
    "TagRepository",
    "TaggedRecord",
    "TaggedRecordInput",
    "VerificationReport",
    "VerificationStep",
    "run_verification",
    "verify_store",
]
