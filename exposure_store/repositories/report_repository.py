"""Repository for Report model operations."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from exposure_store.exceptions import InvalidCountError
from exposure_store.models.report import Report
from exposure_store.schemas.owners import Owner, owner_columns, require_owner
from exposure_store.schemas.reports import ReportCursor
from exposure_store.storage.backends import StorageBackend, backend_for_dialect, upsert_statement
from exposure_store.storage.errors import translate_errors
from exposure_store.utils.clock import Clock, ensure_utc, utc_now
from exposure_store.utils.identifiers import IdLike, canonical_id, new_id
from exposure_store.utils.logger import get_logger

log = get_logger(__name__)

# exposed_count is a 32-bit INTEGER on every backend
MAX_EXPOSED_COUNT = 2_147_483_647


def _validate_count(count: Any) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidCountError(count)
    if not 0 <= count <= MAX_EXPOSED_COUNT:
        raise InvalidCountError(count)
    return count


def _owner_filter(owner: Owner):
    """A user's report has no org, and vice versa."""
    return and_(
        getattr(Report, owner.column) == owner.id,
        getattr(Report, owner.other_column).is_(None),
    )


class ReportRepository:
    """Repository for Report CRUD operations.

    Works inside the caller's transaction: nothing here commits. Owner and
    count are validated before any SQL is sent.
    """

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock = utc_now,
        backend: Optional[StorageBackend] = None,
    ):
        self.session = session
        self.clock = clock
        self._backend = backend

    @property
    def backend(self) -> StorageBackend:
        if self._backend is None:
            self._backend = backend_for_dialect(self.session.get_bind().dialect.name)
        return self._backend

    def _now(self) -> datetime:
        return ensure_utc(self.clock())

    async def create(self, owner: Owner, count: int) -> Report:
        """Insert a new report for ``owner``.

        Raises:
            InvalidOwnerError: owner missing or malformed
            InvalidCountError: negative or non-integer count
            ForeignKeyViolationError: owner does not exist
            DuplicateReportError: owner already has a report
        """
        owner = require_owner(owner)
        count = _validate_count(count)
        now = self._now()

        report = Report(
            id=new_id(),
            **owner_columns(owner),
            exposed_count=count,
            created_at=now,
            last_updated_at=now,
        )
        async with translate_errors("create", owner=str(owner), count=count):
            self.session.add(report)
            await self.session.flush()

        log.info("report created", report_id=report.id, owner=str(owner), exposed_count=count)
        return report

    async def upsert(self, owner: Owner, count: int) -> Report:
        """Insert or update the report for ``owner`` in one atomic statement.

        On conflict the existing row keeps its ``id`` and ``created_at``;
        ``exposed_count`` is overwritten and ``last_updated_at`` becomes the
        later of its current value and now.
        """
        owner = require_owner(owner)
        count = _validate_count(count)
        now = self._now()

        values = {
            "id": new_id(),
            **owner_columns(owner),
            "exposed_count": count,
            "created_at": now,
            "last_updated_at": now,
        }
        stmt = upsert_statement(self.backend, owner, values)

        async with translate_errors("upsert", owner=str(owner), count=count):
            await self.session.execute(stmt)
            # The row is locked by our write until commit, so this reads our own value.
            report = await self.get_by_owner(owner)

        if report is None:
            raise RuntimeError(f"upserted report for {owner} not found in the same transaction")

        log.info(
            "report upserted",
            report_id=report.id,
            owner=str(owner),
            exposed_count=count,
            created=report.created_at == report.last_updated_at == now,
        )
        return report

    async def get_by_owner(self, owner: Owner) -> Optional[Report]:
        """Get the owner's report, or None if there is none yet."""
        owner = require_owner(owner)
        log.debug("query report by owner", owner=str(owner))
        async with translate_errors("get_by_owner", owner=str(owner)):
            result = await self.session.execute(
                select(Report)
                .where(_owner_filter(owner))
                .execution_options(populate_existing=True)
            )
        report = result.scalar_one_or_none()
        log.debug("query result", found=report is not None)
        return report

    async def get_by_id(self, report_id: IdLike) -> Optional[Report]:
        """Get report by ID. A malformed ID matches nothing."""
        try:
            report_id = canonical_id(report_id)
        except ValueError:
            log.debug("malformed report id", report_id=repr(report_id))
            return None

        async with translate_errors("get_by_id", report_id=report_id):
            result = await self.session.execute(
                select(Report)
                .where(Report.id == report_id)
                .execution_options(populate_existing=True)
            )
        return result.scalar_one_or_none()

    async def delete_by_owner(self, owner: Owner) -> int:
        """Delete the owner's report. Returns rows removed (0 when none existed)."""
        owner = require_owner(owner)
        async with translate_errors("delete", owner=str(owner)):
            result = await self.session.execute(delete(Report).where(_owner_filter(owner)))
        log.info("report deleted", owner=str(owner), deleted=result.rowcount)
        return result.rowcount

    async def delete_by_id(self, report_id: IdLike) -> int:
        """Delete a report by ID. Returns rows removed (0 when none existed)."""
        try:
            report_id = canonical_id(report_id)
        except ValueError:
            log.debug("malformed report id", report_id=repr(report_id))
            return 0

        async with translate_errors("delete_by_id", report_id=report_id):
            result = await self.session.execute(delete(Report).where(Report.id == report_id))
        log.info("report deleted", report_id=report_id, deleted=result.rowcount)
        return result.rowcount

    async def list_since(
        self,
        since: datetime,
        after: Optional[ReportCursor] = None,
        limit: int = 500,
    ) -> list[Report]:
        """One page of reports updated at or after ``since``.

        Ordered by ``last_updated_at`` then ``id``, starting strictly after
        ``after`` when given.
        """
        since = ensure_utc(since)
        stmt = select(Report).where(Report.last_updated_at >= since)

        if after is not None:
            after_ts = ensure_utc(after.last_updated_at)
            after_id = canonical_id(after.id)
            stmt = stmt.where(
                or_(
                    Report.last_updated_at > after_ts,
                    and_(Report.last_updated_at == after_ts, Report.id > after_id),
                )
            )

        stmt = (
            stmt.order_by(Report.last_updated_at.asc(), Report.id.asc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )

        async with translate_errors("list_since", since=since.isoformat()):
            result = await self.session.execute(stmt)
        reports = list(result.scalars().all())
        log.debug("report page loaded", since=since.isoformat(), count=len(reports))
        return reports
