"""Canonical logging field names for structured log output."""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"

# Verification fields.
STEP = "step"
RECORD_ID = "record_id"
DURATION_MS = "duration_ms"

# Store fields.
STORE_PATH = "store_path"
TABLE = "table"

# Run-wide fields.
SERVICE = "service"
ENVIRONMENT = "environment"
