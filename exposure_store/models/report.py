"""Exposure report model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from exposure_store.config import get_settings
from exposure_store.database import Base
from exposure_store.models.types import GUID, UTCDateTime
from exposure_store.schemas.owners import Owner, owner_from_columns
from exposure_store.utils.identifiers import new_id

_ON_DELETE = get_settings().owner_fk_on_delete

# Dialects that allow a CHECK on columns whose foreign key cascades.
_CASCADE_CHECK_DIALECTS = ("postgresql", "sqlite")


def single_owner_check(on_delete: str) -> CheckConstraint:
    """CHECK that exactly one of ``owner_user`` / ``owner_org`` is set.

    MySQL rejects CHECK constraints on columns used by a cascading foreign
    key, so with ``CASCADE`` the constraint is left out of MySQL DDL and the
    rule rests on ``owner_from_columns`` in the repository.
    """
    check = CheckConstraint(
        "(owner_user IS NULL) <> (owner_org IS NULL)", name="ck_reports_single_owner"
    )
    if on_delete == "CASCADE":
        check.ddl_if(dialect=_CASCADE_CHECK_DIALECTS)
    return check


class Report(Base):
    """Count of exposed credentials for exactly one user or one organization."""

    __tablename__ = "reports"
    __table_args__ = (
        UniqueConstraint("owner_user", name="uq_reports_owner_user"),
        UniqueConstraint("owner_org", name="uq_reports_owner_org"),
        single_owner_check(_ON_DELETE),
        CheckConstraint("exposed_count >= 0", name="ck_reports_exposed_count_non_negative"),
        Index("ix_reports_last_updated_at_id", "last_updated_at", "id"),
    )

    id: Mapped[str] = mapped_column(GUID(), primary_key=True, default=new_id)
    owner_user: Mapped[str | None] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete=_ON_DELETE), nullable=True
    )
    owner_org: Mapped[str | None] = mapped_column(
        GUID(), ForeignKey("organizations.id", ondelete=_ON_DELETE), nullable=True
    )
    exposed_count: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    last_updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    @property
    def owner(self) -> Owner:
        """The owner as a tagged value."""
        return owner_from_columns(self.owner_user, self.owner_org)

    def __repr__(self):
        return (
            f"<Report(id='{self.id}', owner_user='{self.owner_user}', "
            f"owner_org='{self.owner_org}', exposed_count={self.exposed_count})>"
        )
