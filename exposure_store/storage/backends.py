"""Per-backend SQL for the atomic report upsert.

Each supported dialect gets the same logical statement: insert a report, or,
when the owner already has one, overwrite its count and move its
``last_updated_at`` forward (never backward). The statement is a single
round trip so two workers recomputing the same owner cannot both insert.
"""

from enum import StrEnum
from typing import Any

from sqlalchemy import Insert, case
from sqlalchemy.dialects import mysql, postgresql, sqlite

from exposure_store.models.report import Report
from exposure_store.schemas.owners import Owner


class StorageBackend(StrEnum):
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"


def backend_for_dialect(dialect_name: str) -> StorageBackend:
    """Map a SQLAlchemy dialect name to a supported backend."""
    if dialect_name == "mariadb":
        return StorageBackend.MYSQL
    try:
        return StorageBackend(dialect_name)
    except ValueError:
        raise ValueError(f"Unsupported database dialect: {dialect_name}") from None


def _advance(existing, incoming):
    """``max(existing, incoming)`` that works on every backend.

    Two upserts reading the same clock instant leave ``last_updated_at``
    unchanged, as does a later upsert from a lagging clock; strictly
    increasing timestamps need a clock that advances between calls.
    """
    return case((existing > incoming, existing), else_=incoming)


def upsert_statement(backend: StorageBackend, owner: Owner, values: dict[str, Any]) -> Insert:
    """Build the insert-or-update statement for ``owner``.

    ``values`` holds every column of the new row. On conflict only
    ``exposed_count`` and ``last_updated_at`` change; ``id`` and
    ``created_at`` of the existing row are kept.
    """
    table = Report.__table__
    conflict_column = table.c[owner.column]

    if backend is StorageBackend.MYSQL:
        stmt = mysql.insert(table).values(**values)
        return stmt.on_duplicate_key_update(
            exposed_count=stmt.inserted.exposed_count,
            last_updated_at=_advance(table.c.last_updated_at, stmt.inserted.last_updated_at),
        )

    if backend is StorageBackend.POSTGRESQL:
        stmt = postgresql.insert(table).values(**values)
    else:
        stmt = sqlite.insert(table).values(**values)

    return stmt.on_conflict_do_update(
        index_elements=[conflict_column],
        set_={
            "exposed_count": stmt.excluded.exposed_count,
            "last_updated_at": _advance(table.c.last_updated_at, stmt.excluded.last_updated_at),
        },
    )
