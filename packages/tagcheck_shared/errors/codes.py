"""Shared error code constants.

These constants are stable machine-readable identifiers attached to every
``ErrorDetail`` raised by the store and verification layers.
"""

# Lookups
RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

# Writes
ALREADY_EXISTS = "ALREADY_EXISTS"
INTEGRITY_VIOLATION = "INTEGRITY_VIOLATION"

# Embedded store
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"

# Schema
SCHEMA_MISMATCH = "SCHEMA_MISMATCH"
SCHEMA_CREATE_FAILED = "SCHEMA_CREATE_FAILED"

# Verification
VERIFICATION_FAILED = "VERIFICATION_FAILED"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
