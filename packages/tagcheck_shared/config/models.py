"""Typed configuration models for tagcheck runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "tagcheck" / "tagcheck.yaml"


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = False
    service: str = "tagcheck"
    environment: str = "dev"


class StoreSettings(BaseModel):
    """Embedded SQLite store settings.

    An empty ``path`` selects an ephemeral in-memory database.
    """

    path: str = ""
    table_prefix: str = "tb_"
    echo: bool = False
    busy_timeout_seconds: float = Field(default=5.0, gt=0)
    actor_id: int = Field(default=0, ge=0)

    @field_validator("table_prefix")
    @classmethod
    def _validate_table_prefix(cls, value: str) -> str:
        """Table prefixes end up in DDL and must stay identifier-safe."""
        if value and not value.replace("_", "").isalnum():
            raise ValueError("store.table_prefix must be alphanumeric/underscore")
        return value


class TagcheckSettings(BaseSettings):
    """Root runtime settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="TAGCHECK_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
        yaml_file=DEFAULT_CONFIG_PATH,
        yaml_file_encoding="utf-8",
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply precedence: init > env > yaml > model defaults."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
        )
