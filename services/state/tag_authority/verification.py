"""End-to-end create/read/update/delete verification for one Tagged Record.

The sequence is strictly linear:

``START -> CREATED -> FETCHED_V1 -> MUTATED_PERSISTED -> FETCHED_V2 -> DELETED
-> FETCHED_V3 -> DONE``

Every step either passes or raises ``VerificationError`` naming the step and
the expected versus observed state. Nothing is retried.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ConfigDict

from packages.tagcheck_shared.config import StoreSettings
from packages.tagcheck_shared.errors import (
    NotFoundError,
    StoreError,
    VerificationError,
)
from packages.tagcheck_shared.logging import fields, log_context
from resources.substrates.sqlite import ensure_schema, open_store
from services.state.tag_authority.data import SqliteTagRepository, TAGGED_RECORD_SCHEMA
from services.state.tag_authority.data.repository import utc_now
from services.state.tag_authority.domain import TaggedRecord, TaggedRecordInput
from services.state.tag_authority.interfaces import TagRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

INITIAL_OWNER_ID = 1
UPDATED_OWNER_ID = 100


class VerificationStep(str, Enum):
    """Ordered states of the verification sequence."""

    START = "start"
    CREATED = "created"
    FETCHED_V1 = "fetched_v1"
    MUTATED_PERSISTED = "mutated_persisted"
    FETCHED_V2 = "fetched_v2"
    DELETED = "deleted"
    FETCHED_V3 = "fetched_v3"
    DONE = "done"


class VerificationReport(BaseModel):
    """Outcome of one successful verification run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    steps: tuple[VerificationStep, ...]
    created: TaggedRecord
    updated: TaggedRecord
    deleted_existing: bool
    duration_ms: float


def run_verification(
    repository: TagRepository,
    *,
    actor_id: int = 0,
    initial_owner_id: int = INITIAL_OWNER_ID,
    updated_owner_id: int = UPDATED_OWNER_ID,
) -> VerificationReport:
    """Run the full sequence against an empty Tagged Record table."""
    started = time.perf_counter()
    completed: list[VerificationStep] = [VerificationStep.START]

    payload = TaggedRecordInput(
        owner_id=initial_owner_id, created_by=actor_id, updated_by=actor_id
    )
    created = _run_step(VerificationStep.CREATED, lambda: repository.create(payload))
    _expect(
        VerificationStep.CREATED,
        created.payload() == payload,
        expected=repr(payload),
        observed=repr(created.payload()),
    )
    completed.append(VerificationStep.CREATED)

    fetched = _run_step(
        VerificationStep.FETCHED_V1, repository.fetch_first, record_id=created.id
    )
    _expect(
        VerificationStep.FETCHED_V1,
        fetched.id == created.id and fetched.payload() == created.payload(),
        expected=repr(created),
        observed=repr(fetched),
    )
    completed.append(VerificationStep.FETCHED_V1)

    mutated = fetched.with_changes(owner_id=updated_owner_id, updated_by=actor_id)
    persisted = _run_step(
        VerificationStep.MUTATED_PERSISTED,
        lambda: repository.persist(mutated),
        record_id=fetched.id,
    )
    _expect(
        VerificationStep.MUTATED_PERSISTED,
        persisted.id == fetched.id and persisted.updated_at >= fetched.updated_at,
        expected=f"id={fetched.id} updated_at>={fetched.updated_at.isoformat()}",
        observed=f"id={persisted.id} updated_at={persisted.updated_at.isoformat()}",
    )
    completed.append(VerificationStep.MUTATED_PERSISTED)

    refetched = _run_step(
        VerificationStep.FETCHED_V2, repository.fetch_first, record_id=persisted.id
    )
    _expect(
        VerificationStep.FETCHED_V2,
        refetched.id == persisted.id and refetched.owner_id == updated_owner_id,
        expected=f"id={persisted.id} owner_id={updated_owner_id}",
        observed=f"id={refetched.id} owner_id={refetched.owner_id}",
    )
    completed.append(VerificationStep.FETCHED_V2)

    existed = _run_step(
        VerificationStep.DELETED,
        lambda: repository.delete_by_id(persisted.id),
        record_id=persisted.id,
    )
    completed.append(VerificationStep.DELETED)

    _expect_absent(repository)
    completed.append(VerificationStep.FETCHED_V3)
    completed.append(VerificationStep.DONE)

    duration_ms = (time.perf_counter() - started) * 1000
    with log_context(**{fields.DURATION_MS: f"{duration_ms:.1f}"}):
        logger.info("verification passed")
    return VerificationReport(
        steps=tuple(completed),
        created=created,
        updated=refetched,
        deleted_existing=existed,
        duration_ms=duration_ms,
    )


def verify_store(
    path: str | Path = "",
    *,
    settings: StoreSettings | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> VerificationReport:
    """Open the store, ensure the Tagged Record table and run the sequence."""
    store_settings = settings if settings is not None else StoreSettings()
    with open_store(path, settings=store_settings) as handle:
        with log_context(**{fields.STORE_PATH: handle.config.path or ":memory:"}):
            table = ensure_schema(handle, TAGGED_RECORD_SCHEMA)
            repository = SqliteTagRepository(handle, table, clock=clock)
            return run_verification(repository, actor_id=store_settings.actor_id)


def _run_step(
    step: VerificationStep,
    action: Callable[[], T],
    *,
    record_id: int | None = None,
) -> T:
    """Run one store call, converting store failures into step failures."""
    with log_context(**{fields.STEP: step.value, fields.RECORD_ID: record_id}):
        try:
            result = action()
        except StoreError as exc:
            logger.error("step failed: %s", exc)
            raise VerificationError(
                step=step.value,
                expected="success",
                observed=f"{type(exc).__name__}: {exc}",
                cause=exc,
            ) from exc
        logger.debug("step completed")
        return result


def _expect(
    step: VerificationStep, condition: bool, *, expected: str, observed: str
) -> None:
    if condition:
        return
    with log_context(**{fields.STEP: step.value}):
        logger.error("assertion failed: expected %s, observed %s", expected, observed)
    raise VerificationError(step=step.value, expected=expected, observed=observed)


def _expect_absent(repository: TagRepository) -> None:
    """After deletion the table must report ``NotFoundError`` and nothing else."""
    step = VerificationStep.FETCHED_V3
    with log_context(**{fields.STEP: step.value}):
        try:
            leftover = repository.fetch_first()
        except NotFoundError:
            logger.debug("step completed")
            return
        except StoreError as exc:
            logger.error("step failed: %s", exc)
            raise VerificationError(
                step=step.value,
                expected="NotFoundError",
                observed=f"{type(exc).__name__}: {exc}",
                cause=exc,
            ) from exc
    _expect(step, False, expected="NotFoundError", observed=repr(leftover))
