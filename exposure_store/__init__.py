"""Exposure report store."""

from exposure_store.exceptions import (
    DuplicateReportError,
    ExposureStoreError,
    ForeignKeyViolationError,
    InvalidCountError,
    InvalidOwnerError,
    InvalidTimestampError,
    StorageUnavailableError,
)
from exposure_store.schemas.owners import OrgOwner, Owner, UserOwner, owner_from_columns
from exposure_store.schemas.reports import ReportCursor, ReportRecord
from exposure_store.services.report_store import ReportStore

__all__ = [
    "DuplicateReportError",
    "ExposureStoreError",
    "ForeignKeyViolationError",
    "InvalidCountError",
    "InvalidOwnerError",
    "InvalidTimestampError",
    "OrgOwner",
    "Owner",
    "ReportCursor",
    "ReportRecord",
    "ReportStore",
    "StorageUnavailableError",
    "UserOwner",
    "owner_from_columns",
]
