"""Typed failures raised by the exposure report store.

Every error carries a stable ``error_code`` and a ``details`` dict so callers
can branch on the failure kind without parsing messages. A missing report is
not an error: lookups return ``None``.
"""

from typing import Any, Optional


class ExposureStoreError(Exception):
    """Base class for all exposure store failures."""

    error_code = "EXPOSURE_STORE_ERROR"
    retryable = False

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __repr__(self):
        return f"{type(self).__name__}(code={self.error_code!r}, message={self.message!r})"


class InvalidOwnerError(ExposureStoreError):
    """Owner reference is missing, malformed, or names both owner kinds."""

    error_code = "INVALID_OWNER"

    def __init__(self, reason: str, **details: Any):
        super().__init__(f"Invalid owner: {reason}", details=details)


class InvalidCountError(ExposureStoreError):
    """Exposed count is negative, too large for the column, or not an integer."""

    error_code = "INVALID_COUNT"

    def __init__(self, count: Any):
        super().__init__(
            f"Exposed count must be an integer between 0 and 2147483647, got {count!r}",
            details={"count": repr(count)},
        )


class InvalidTimestampError(ExposureStoreError):
    """A naive or non-datetime value was given where a UTC instant is required."""

    error_code = "INVALID_TIMESTAMP"

    def __init__(self, value: Any):
        super().__init__(
            f"Expected a timezone-aware datetime, got {value!r}",
            details={"value": repr(value)},
        )


class ForeignKeyViolationError(ExposureStoreError):
    """The referenced user or organization does not exist (or still has reports)."""

    error_code = "FOREIGN_KEY_VIOLATION"


class DuplicateReportError(ExposureStoreError):
    """A report already exists for the owner passed to ``create``."""

    error_code = "DUPLICATE_REPORT"


class StorageUnavailableError(ExposureStoreError):
    """Transient backend failure. Safe to retry with backoff."""

    error_code = "STORAGE_UNAVAILABLE"
    retryable = True
