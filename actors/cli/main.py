"""tagcheck command-line interface implemented with Typer."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import typer

from packages.tagcheck_shared.config import TagcheckSettings, load_settings
from packages.tagcheck_shared.errors import StoreError, VerificationError
from packages.tagcheck_shared.logging import configure_logging
from resources.substrates.sqlite import ensure_schema, open_store
from services.state.tag_authority import TAGGED_RECORD_SCHEMA, verify_store

SUCCESS_EXIT_CODE = 0
VERIFICATION_FAILED_EXIT_CODE = 2
STORE_ERROR_EXIT_CODE = 3


class LogLevel(str, Enum):
    """Supported root log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class CliConfig:
    """Resolved settings and output options shared by every command."""

    settings: TagcheckSettings
    as_json: bool


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""

    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date, Path)):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize(item) for item in value]
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump(mode="python"))
    return str(value)


def _emit_output(result: Any, as_json: bool) -> None:
    """Render command output in requested format."""

    data = _serialize(result)
    if as_json:
        typer.echo(json.dumps(data, sort_keys=True, separators=(",", ":")))
        return
    if isinstance(data, dict) and "steps" in data:
        typer.echo(_render_report(data))
        return
    typer.echo(json.dumps(data, indent=2, sort_keys=True))


def _emit_error(exc: Exception, as_json: bool) -> None:
    """Render failures to stderr."""

    if as_json:
        payload: dict[str, Any] = {"error": str(exc), "type": type(exc).__name__}
        detail = getattr(exc, "detail", None)
        if detail is not None:
            payload["detail"] = detail.as_dict()
        if isinstance(exc, VerificationError):
            payload.update(
                step=exc.step, expected=exc.expected, observed=exc.observed
            )
        typer.echo(json.dumps(payload, sort_keys=True), err=True)
        return
    typer.echo(f"error: {exc}", err=True)


def _render_report(data: dict[str, Any]) -> str:
    """Render a verification report for human scanning."""
    lines = [f"Verification: passed ({float(data.get('duration_ms', 0.0)):.1f} ms)"]
    for step in data.get("steps", []):
        lines.append(f"  - {step}")
    updated = data.get("updated", {})
    if isinstance(updated, dict):
        lines.append(
            f"Record {updated.get('id')}: owner_id={updated.get('owner_id')} "
            f"updated_at={updated.get('updated_at')}"
        )
    return "\n".join(lines)


def _run_command(cfg: CliConfig, invoke: Callable[[TagcheckSettings], Any]) -> None:
    """Execute one command and map outputs/errors to process semantics."""
    try:
        result = invoke(cfg.settings)
    except VerificationError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=VERIFICATION_FAILED_EXIT_CODE) from exc
    except StoreError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=STORE_ERROR_EXIT_CODE) from exc

    _emit_output(result, cfg.as_json)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""

    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


def _describe_schema(settings: TagcheckSettings) -> dict[str, Any]:
    """Ensure the Tagged Record table and describe its columns."""
    with open_store(settings.store.path, settings=settings.store) as handle:
        table = ensure_schema(handle, TAGGED_RECORD_SCHEMA)
        return {
            "table": table.name,
            "columns": [
                {
                    "name": column.name,
                    "type": str(column.type),
                    "primary_key": column.primary_key,
                }
                for column in table.columns
            ],
            "unique": [
                [column.name for column in index.columns]
                for index in table.indexes
                if index.unique
            ],
        }


app = typer.Typer(no_args_is_help=True, help="Embedded store CRUD verification")


@app.callback()
def main(
    ctx: typer.Context,
    db: str | None = typer.Option(
        None,
        "--db",
        help="SQLite database file; empty or unset for an in-memory store",
    ),
    config: Path | None = typer.Option(None, help="YAML settings file"),
    log_level: LogLevel | None = typer.Option(
        None, case_sensitive=False, help="Root log level"
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
) -> None:
    """Resolve settings and logging for all commands."""

    settings = load_settings(
        cli_params={
            "store": {"path": db},
            "logging": {"level": log_level.value if log_level else None},
        },
        config_path=config,
    )
    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
    )
    ctx.obj = CliConfig(settings=settings, as_json=as_json)


@app.command("verify")
def verify_command(ctx: typer.Context) -> None:
    """Run create/fetch/persist/fetch/delete/fetch against the store."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda settings: verify_store(settings.store.path, settings=settings.store),
    )


@app.command("schema")
def schema_command(ctx: typer.Context) -> None:
    """Ensure the Tagged Record table exists and print its layout."""
    cfg = _require_config(ctx)
    _run_command(cfg, _describe_schema)


if __name__ == "__main__":
    app()
