"""Tests for the linear CRUD verification sequence."""

from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import pytest

from packages.tagcheck_shared.config import StoreSettings
from packages.tagcheck_shared.errors import (
    ConstraintError,
    StoreConnectionError,
    VerificationError,
)
from packages.tagcheck_shared.logging import clear_context, configure_logging
from resources.substrates.sqlite import ensure_schema, open_store
from services.state.tag_authority.data import SqliteTagRepository, TAGGED_RECORD_SCHEMA
from services.state.tag_authority.domain import TaggedRecordInput
from services.state.tag_authority.verification import (
    VerificationStep,
    run_verification,
    verify_store,
)


def test_seed_scenario_passes_against_in_memory_store() -> None:
    """Create {owner_id:1}, persist owner_id 100, delete, then expect absence."""
    report = verify_store("")

    assert report.steps == tuple(VerificationStep)
    assert report.created.id == 1
    assert report.created.owner_id == 1
    assert report.updated.id == 1
    assert report.updated.owner_id == 100
    assert report.updated.updated_at >= report.created.updated_at
    assert report.deleted_existing is True


def test_verification_passes_against_file_store(tmp_path: Path) -> None:
    db_path = tmp_path / "tags.db"

    report = verify_store(db_path, settings=StoreSettings(actor_id=5))

    assert db_path.exists()
    assert report.created.created_by == 5
    assert report.updated.updated_by == 5


def test_verification_fails_when_store_already_holds_rows(tmp_path: Path) -> None:
    """A pre-existing lower id makes the first fetch disagree with the insert."""
    db_path = tmp_path / "tags.db"
    with open_store(db_path) as handle:
        table = ensure_schema(handle, TAGGED_RECORD_SCHEMA)
        SqliteTagRepository(handle, table).create(
            TaggedRecordInput(owner_id=7, key="existing")
        )

    with pytest.raises(VerificationError) as excinfo:
        verify_store(db_path)

    assert excinfo.value.step == VerificationStep.FETCHED_V1.value


def test_verification_fails_when_persist_loses_update(
    repository: SqliteTagRepository,
) -> None:
    class _StickyOwnerRepository(SqliteTagRepository):
        def persist(self, record):
            return super().persist(record.with_changes(owner_id=1))

    sticky = _StickyOwnerRepository(repository.handle, repository.table)

    with pytest.raises(VerificationError) as excinfo:
        run_verification(sticky)

    assert excinfo.value.step == VerificationStep.FETCHED_V2.value
    assert excinfo.value.expected == "id=1 owner_id=100"
    assert excinfo.value.observed == "id=1 owner_id=1"


def test_verification_fails_when_delete_leaves_row(
    repository: SqliteTagRepository,
) -> None:
    class _NoopDeleteRepository(SqliteTagRepository):
        def delete_by_id(self, record_id: int) -> bool:
            return True

    noop = _NoopDeleteRepository(repository.handle, repository.table)

    with pytest.raises(VerificationError) as excinfo:
        run_verification(noop)

    assert excinfo.value.step == VerificationStep.FETCHED_V3.value
    assert excinfo.value.expected == "NotFoundError"


def test_verification_rejects_other_error_kinds_after_delete(
    repository: SqliteTagRepository,
) -> None:
    """Only NotFoundError counts as absence; other store errors fail the step."""

    class _BrokenAfterDeleteRepository(SqliteTagRepository):
        deleted = False

        def delete_by_id(self, record_id: int) -> bool:
            self.deleted = True
            return super().delete_by_id(record_id)

        def fetch_first(self):
            if self.deleted:
                raise StoreConnectionError.from_message("store went away")
            return super().fetch_first()

    broken = _BrokenAfterDeleteRepository(repository.handle, repository.table)

    with pytest.raises(VerificationError) as excinfo:
        run_verification(broken)

    assert excinfo.value.step == VerificationStep.FETCHED_V3.value
    assert "StoreConnectionError" in excinfo.value.observed
    assert isinstance(excinfo.value.__cause__, StoreConnectionError)


def test_verification_reports_failing_create(repository: SqliteTagRepository) -> None:
    repository.create(TaggedRecordInput(owner_id=1))

    with pytest.raises(VerificationError) as excinfo:
        run_verification(repository)

    assert excinfo.value.step == VerificationStep.CREATED.value
    assert isinstance(excinfo.value.__cause__, ConstraintError)
    assert excinfo.value.detail.metadata == {"step": "created"}


def test_verification_logs_carry_step_record_and_duration_fields() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    stream = io.StringIO()
    clear_context()
    try:
        configure_logging(level="DEBUG", json_output=True, stream=stream)
        verify_store("")
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        clear_context()

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    persisted = [line for line in lines if line.get("step") == "mutated_persisted"]
    assert persisted and persisted[0]["record_id"] == "1"
    assert persisted[0]["store_path"] == ":memory:"
    (passed,) = [line for line in lines if line["message"] == "verification passed"]
    assert "duration_ms" in passed
