"""Public API for tagcheck configuration utilities."""

from .loader import load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    LoggingSettings,
    StoreSettings,
    TagcheckSettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "LoggingSettings",
    "StoreSettings",
    "TagcheckSettings",
    "load_settings",
]
