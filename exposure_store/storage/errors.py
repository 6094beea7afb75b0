"""Translate driver-level failures into the store's error taxonomy."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)

from exposure_store.exceptions import (
    DuplicateReportError,
    ExposureStoreError,
    ForeignKeyViolationError,
    InvalidCountError,
    InvalidOwnerError,
    StorageUnavailableError,
)
from exposure_store.utils.logger import get_logger

log = get_logger(__name__)

# SQLSTATE classes / vendor codes
_PG_FOREIGN_KEY = "23503"
_PG_UNIQUE = "23505"
_PG_CHECK = "23514"
_MYSQL_FOREIGN_KEY = {1216, 1217, 1451, 1452}
_MYSQL_UNIQUE = {1062}
_MYSQL_CHECK = {3819}


def _codes(exc: DBAPIError) -> tuple[str | None, int | None]:
    """Best-effort (sqlstate, vendor errno) of the driver exception."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    cause = getattr(orig, "__cause__", None)
    if sqlstate is None and cause is not None:
        sqlstate = getattr(cause, "sqlstate", None)
    errno = None
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        errno = args[0]
    return sqlstate, errno


def _message(exc: DBAPIError) -> str:
    return str(exc.orig).lower()


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    sqlstate, errno = _codes(exc)
    return (
        sqlstate == _PG_FOREIGN_KEY
        or errno in _MYSQL_FOREIGN_KEY
        or "foreign key constraint" in _message(exc)
    )


def is_unique_violation(exc: IntegrityError) -> bool:
    sqlstate, errno = _codes(exc)
    message = _message(exc)
    return (
        sqlstate == _PG_UNIQUE
        or errno in _MYSQL_UNIQUE
        or "unique constraint" in message
        or "duplicate" in message
    )


def is_check_violation(exc: IntegrityError) -> bool:
    sqlstate, errno = _codes(exc)
    return sqlstate == _PG_CHECK or errno in _MYSQL_CHECK or "check constraint" in _message(exc)


def translate_db_error(exc: Exception, operation: str, **context) -> Exception:
    """Return the store error for a SQLAlchemy exception, or ``exc`` unchanged."""
    if isinstance(exc, ExposureStoreError):
        return exc

    if isinstance(exc, IntegrityError):
        if is_foreign_key_violation(exc):
            return ForeignKeyViolationError(
                f"{operation}: referenced owner does not exist or still has reports",
                details=context,
            )
        if is_unique_violation(exc):
            return DuplicateReportError(
                f"{operation}: a report already exists for this owner", details=context
            )
        if is_check_violation(exc):
            if "exposed_count" in _message(exc):
                return InvalidCountError(context.get("count"))
            return InvalidOwnerError("rejected by the single-owner constraint", **context)
        return exc

    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return StorageUnavailableError(f"{operation}: database connection lost", details=context)

    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)):
        return StorageUnavailableError(f"{operation}: storage unavailable", details=context)

    return exc


@asynccontextmanager
async def translate_errors(operation: str, **context) -> AsyncIterator[None]:
    """Re-raise SQLAlchemy failures inside the block as store errors."""
    try:
        yield
    except Exception as exc:
        translated = translate_db_error(exc, operation, **context)
        if translated is exc:
            raise
        log.warning(
            "storage error",
            operation=operation,
            error_code=translated.error_code,
            error=str(exc),
            **context,
        )
        raise translated from exc
