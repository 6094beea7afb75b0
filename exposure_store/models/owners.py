"""Owner directory tables referenced by reports.

The user and organization directories own these rows. Only the identity
columns matter here: reports point at them by foreign key.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, func
from sqlalchemy.orm import Mapped, mapped_column

from exposure_store.database import Base
from exposure_store.models.types import GUID, UTCDateTime
from exposure_store.utils.identifiers import new_id


class User(Base):
    """User known to the user directory."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(GUID(), primary_key=True, default=new_id)
    email: Mapped[str | None] = mapped_column(String(255), index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), server_default=func.now())

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"


class Organization(Base):
    """Organization known to the organization directory."""

    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(GUID(), primary_key=True, default=new_id)
    name: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), server_default=func.now())

    def __repr__(self):
        return f"<Organization(id='{self.id}', name='{self.name}')>"
