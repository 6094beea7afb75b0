"""Schemas for exposure reports returned by the store."""

from datetime import datetime
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from exposure_store.schemas.owners import Owner, owner_from_columns


class ReportCursor(NamedTuple):
    """Keyset position in the ``(last_updated_at, id)`` listing order."""

    last_updated_at: datetime
    id: str


class ReportRecord(BaseModel):
    """A persisted exposure report, independent of the storage backend."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(..., description="Report ID, canonical UUID text")
    owner_user: Optional[str] = Field(None, description="Owning user ID")
    owner_org: Optional[str] = Field(None, description="Owning organization ID")
    exposed_count: int = Field(..., ge=0, description="Credentials flagged as exposed")
    created_at: datetime = Field(..., description="When the report was first written (UTC)")
    last_updated_at: datetime = Field(..., description="When the count last changed (UTC)")

    @property
    def owner(self) -> Owner:
        return owner_from_columns(self.owner_user, self.owner_org)

    @property
    def cursor(self) -> ReportCursor:
        """Position to resume ``list_since`` right after this report."""
        return ReportCursor(self.last_updated_at, self.id)
