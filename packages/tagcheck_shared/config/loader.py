"""Configuration loading with deterministic precedence.

The cascade is always:
1) CLI params
2) Environment variables
3) ~/.config/tagcheck/tagcheck.yaml (or an explicit ``config_path``)
4) Built-in model defaults

Environment variable format:
- Prefix: ``TAGCHECK_``
- Nested keys: ``__`` separator
- Example: ``TAGCHECK_STORE__PATH=/tmp/tags.db`` -> ``store.path = "/tmp/tags.db"``
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from pydantic_settings import SettingsConfigDict

from .models import DEFAULT_CONFIG_PATH, TagcheckSettings


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> TagcheckSettings:
    """Resolve settings from CLI params, environment and YAML file."""
    resolved_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    init_values = _drop_unset(cli_params) if cli_params is not None else {}

    class _ResolvedSettings(TagcheckSettings):
        model_config = SettingsConfigDict(yaml_file=resolved_path)

    return _ResolvedSettings(**init_values)


def _drop_unset(values: Mapping[str, Any]) -> dict[str, Any]:
    """Remove ``None`` leaves so unset CLI options do not mask lower sources."""
    output: dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            nested = _drop_unset(value)
            if nested:
                output[str(key)] = nested
            continue
        output[str(key)] = value
    return output
