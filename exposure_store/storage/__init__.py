"""Storage adapter: backend-specific SQL and error translation."""

from exposure_store.storage.backends import StorageBackend, backend_for_dialect, upsert_statement
from exposure_store.storage.errors import translate_db_error, translate_errors

__all__ = [
    "StorageBackend",
    "backend_for_dialect",
    "upsert_statement",
    "translate_db_error",
    "translate_errors",
]
