"""Exposure report store: the entry point used by scanners and readers.

Every call runs in its own session and transaction. Listing runs one
transaction per page. Callers only ever see ``ReportRecord`` values and
``ExposureStoreError`` subclasses.
"""

import logging
from datetime import datetime
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from exposure_store.config import Settings, get_settings
from exposure_store.database import get_session_factory, session_scope
from exposure_store.exceptions import StorageUnavailableError
from exposure_store.repositories.report_repository import ReportRepository
from exposure_store.schemas.owners import Owner
from exposure_store.schemas.reports import ReportCursor, ReportRecord
from exposure_store.storage.errors import translate_errors
from exposure_store.utils.clock import Clock, ensure_utc, utc_now
from exposure_store.utils.identifiers import IdLike
from exposure_store.utils.logger import get_logger

log = get_logger(__name__)
_tenacity_logger = logging.getLogger(f"{__name__}.retry")


class ReportStore:
    """Create, upsert, read, delete and list exposure reports."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        settings: Optional[Settings] = None,
        clock: Clock = utc_now,
    ):
        self.settings = settings or get_settings()
        self.session_factory = session_factory or get_session_factory()
        self.clock = clock

    def _repository(self, session: AsyncSession) -> ReportRepository:
        return ReportRepository(session, clock=self.clock)

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.settings.storage_retry_attempts),
            wait=wait_exponential(
                multiplier=self.settings.storage_retry_min_wait_seconds,
                min=self.settings.storage_retry_min_wait_seconds,
                max=self.settings.storage_retry_max_wait_seconds,
            ),
            retry=retry_if_exception_type(StorageUnavailableError),
            before_sleep=before_sleep_log(_tenacity_logger, logging.WARNING),
            reraise=True,
        )

    async def create(self, owner: Owner, count: int) -> ReportRecord:
        """Create the first report for ``owner``.

        Not retried automatically: after a ``StorageUnavailableError`` the
        insert may or may not have committed, so check ``get_by_owner`` (or
        use ``upsert``) before trying again.
        """
        async with translate_errors("create", owner=str(owner)):
            async with session_scope(self.session_factory) as session:
                report = await self._repository(session).create(owner, count)
                record = ReportRecord.model_validate(report)
        return record

    async def upsert(self, owner: Owner, count: int) -> ReportRecord:
        """Record a fresh exposure count for ``owner``, creating the report if needed.

        Idempotent, so transient storage failures are retried with backoff.
        """
        async for attempt in self._retrying():
            with attempt:
                async with translate_errors("upsert", owner=str(owner)):
                    async with session_scope(self.session_factory) as session:
                        report = await self._repository(session).upsert(owner, count)
                        record = ReportRecord.model_validate(report)
        return record

    async def get_by_owner(self, owner: Owner) -> Optional[ReportRecord]:
        """The owner's current report, or None."""
        async with translate_errors("get_by_owner", owner=str(owner)):
            async with session_scope(self.session_factory) as session:
                report = await self._repository(session).get_by_owner(owner)
                record = ReportRecord.model_validate(report) if report else None
        return record

    async def get_by_id(self, report_id: IdLike) -> Optional[ReportRecord]:
        async with translate_errors("get_by_id", report_id=str(report_id)):
            async with session_scope(self.session_factory) as session:
                report = await self._repository(session).get_by_id(report_id)
                record = ReportRecord.model_validate(report) if report else None
        return record

    async def delete(self, owner: Owner) -> bool:
        """Purge the owner's report. Returns False when there was nothing to delete."""
        async with translate_errors("delete", owner=str(owner)):
            async with session_scope(self.session_factory) as session:
                deleted = await self._repository(session).delete_by_owner(owner)
        return deleted > 0

    async def delete_by_id(self, report_id: IdLike) -> bool:
        async with translate_errors("delete_by_id", report_id=str(report_id)):
            async with session_scope(self.session_factory) as session:
                deleted = await self._repository(session).delete_by_id(report_id)
        return deleted > 0

    def list_since(
        self,
        since: datetime,
        after: Optional[ReportCursor] = None,
        page_size: Optional[int] = None,
    ) -> AsyncIterator[ReportRecord]:
        """Iterate reports with ``last_updated_at >= since`` in listing order.

        Lazy: pages are fetched as the iterator advances, each in its own
        transaction. Calling again with the same arguments restarts from the
        beginning; passing a record's ``cursor`` as ``after`` resumes after it.
        Reports updated while iterating move to the end of the order and may
        be seen twice.
        """
        since = ensure_utc(since)
        if page_size is None:
            page_size = self.settings.list_page_size
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        return self._iter_since(since, after, page_size)

    async def _iter_since(
        self, since: datetime, after: Optional[ReportCursor], page_size: int
    ) -> AsyncIterator[ReportRecord]:
        cursor = after
        while True:
            async with translate_errors("list_since", since=since.isoformat()):
                async with session_scope(self.session_factory) as session:
                    page = await self._repository(session).list_since(
                        since, after=cursor, limit=page_size
                    )
                    records = [ReportRecord.model_validate(report) for report in page]

            for record in records:
                yield record

            if len(records) < page_size:
                return
            cursor = records[-1].cursor
