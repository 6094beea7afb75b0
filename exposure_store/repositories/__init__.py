"""Repository layer for data access."""

from exposure_store.repositories.report_repository import ReportRepository

__all__ = [
    "ReportRepository",
]
