"""Backend-portable column types.

Identifiers live in memory as canonical UUID text and timestamps as aware
UTC datetimes. Each type picks its storage representation from the dialect:
native ``UUID`` / ``TIMESTAMPTZ`` on PostgreSQL, 36-character text and naive
UTC ``DATETIME`` elsewhere.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, TypeDecorator
from sqlalchemy.dialects.mysql import DATETIME as MYSQL_DATETIME
from sqlalchemy.dialects.postgresql import TIMESTAMP as PG_TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

from exposure_store.utils.identifiers import canonical_id


class GUID(TypeDecorator):
    """Platform-independent UUID type.

    Uses PostgreSQL's UUID type when available, otherwise uses String(36).
    Always hands canonical lowercase text back to Python.
    """

    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        text = canonical_id(value)
        if dialect.name == "postgresql":
            return uuid.UUID(text)
        return text

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return canonical_id(value)


class UTCDateTime(TypeDecorator):
    """Timestamp stored as a UTC instant on every backend.

    Naive datetimes are refused on the way in; values always come back
    timezone-aware in UTC.
    """

    impl = DateTime
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_TIMESTAMP(timezone=True))
        if dialect.name in ("mysql", "mariadb"):
            return dialect.type_descriptor(MYSQL_DATETIME(fsp=6))
        return dialect.type_descriptor(DateTime())

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if not isinstance(value, datetime) or value.tzinfo is None:
            raise ValueError(f"UTCDateTime requires a timezone-aware datetime, got {value!r}")
        value = value.astimezone(timezone.utc)
        if dialect.name == "postgresql":
            return value
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
