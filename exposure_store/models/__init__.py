"""Database models."""

from exposure_store.models.owners import Organization, User
from exposure_store.models.report import Report

__all__ = [
    "Organization",
    "Report",
    "User",
]
