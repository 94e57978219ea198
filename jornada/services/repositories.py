"""
Lesezugriff auf Tenant-Konfiguration und Zeiteinträge.

Eine AsyncSession darf keine Statements parallel ausführen. Die Repositories
serialisieren ihre Abfragen daher über einen gemeinsamen Lock, während der
ComplianceService die Regeln trotzdem parallel anstößt.
"""
import asyncio
import logging
import uuid
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jornada.core.config import settings
from jornada.core.exceptions import DataUnavailable, TenantNotFound
from jornada.models.tenant import Tenant
from jornada.models.time_entry import EntryStatus, TimeEntry
from jornada.services.compliance.types import TenantLimits, TimeInterval

logger = logging.getLogger(__name__)


class TenantRepository(Protocol):
    async def get_limits(self, tenant_id: uuid.UUID) -> TenantLimits:
        ...


class TimeEntryRepository(Protocol):
    async def entries_for_range(
        self, user_id: uuid.UUID, tenant_id: uuid.UUID, range_start: datetime, range_end: datetime
    ) -> list[TimeInterval]:
        ...

    async def last_clocked_out(self, user_id: uuid.UUID, tenant_id: uuid.UUID) -> Optional[TimeInterval]:
        ...


class _SessionQueries:

    def __init__(self, db: AsyncSession, lock: asyncio.Lock | None = None, timeout: float | None = None):
        self.db = db
        self.lock = lock or asyncio.Lock()
        self.timeout = settings.DATA_FETCH_TIMEOUT_SECONDS if timeout is None else timeout

    async def _execute(self, stmt, what: str):
        async with self.lock:
            try:
                return await asyncio.wait_for(self.db.execute(stmt), timeout=self.timeout)
            except asyncio.TimeoutError as exc:
                raise DataUnavailable(f"Timeout after {self.timeout}s while loading {what}") from exc
            except SQLAlchemyError as exc:
                logger.error("Query for %s failed: %s", what, exc)
                raise DataUnavailable(f"Could not load {what}") from exc


class SqlTenantRepository(_SessionQueries):

    async def get_limits(self, tenant_id: uuid.UUID) -> TenantLimits:
        result = await self._execute(select(Tenant).where(Tenant.id == tenant_id), "tenant")
        tenant = result.scalar_one_or_none()
        if tenant is None:
            raise TenantNotFound(tenant_id)

        return tenant.compliance_limits(settings.DEFAULT_TIMEZONE)


class SqlTimeEntryRepository(_SessionQueries):

    async def entries_for_range(
        self, user_id: uuid.UUID, tenant_id: uuid.UUID, range_start: datetime, range_end: datetime
    ) -> list[TimeInterval]:
        """Einträge, die [range_start, range_end) berühren, ohne gelöschte, nach clock_in sortiert."""
        result = await self._execute(
            select(TimeEntry)
            .where(
                and_(
                    TimeEntry.user_id == user_id,
                    TimeEntry.tenant_id == tenant_id,
                    TimeEntry.status != EntryStatus.DELETED,
                    TimeEntry.clock_in < range_end,
                    or_(TimeEntry.clock_out > range_start, TimeEntry.clock_out.is_(None)),
                )
            )
            .order_by(TimeEntry.clock_in),
            "time entries",
        )
        return [TimeInterval.from_entry(e) for e in result.scalars().all()]

    async def last_clocked_out(self, user_id: uuid.UUID, tenant_id: uuid.UUID) -> Optional[TimeInterval]:
        result = await self._execute(
            select(TimeEntry)
            .where(
                and_(
                    TimeEntry.user_id == user_id,
                    TimeEntry.tenant_id == tenant_id,
                    TimeEntry.status != EntryStatus.DELETED,
                    TimeEntry.clock_out.is_not(None),
                )
            )
            .order_by(TimeEntry.clock_out.desc())
            .limit(1),
            "last time entry",
        )
        entry = result.scalar_one_or_none()
        return TimeInterval.from_entry(entry) if entry else None


def sql_repositories(db: AsyncSession) -> tuple[SqlTenantRepository, SqlTimeEntryRepository]:
    """Beide Repositories auf derselben Session mit gemeinsamem Lock."""
    lock = asyncio.Lock()
    return SqlTenantRepository(db, lock), SqlTimeEntryRepository(db, lock)
