"""
ComplianceService: Darf ein Mitarbeiter jetzt einstempeln?

Lädt Tenant-Grenzen und Zeiteinträge über die Repositories, berechnet Tages-,
Wochen- und Jahresgrenzen in der Tenant-Zeitzone und wertet die Regeln aus.
`now` wird pro Aufruf genau einmal gelesen und an alle Teilprüfungen gereicht.
"""
import asyncio
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, Optional

from jornada.services.compliance import rules
from jornada.services.compliance.sink import ComplianceSink, LoggingSink
from jornada.services.compliance.types import ComplianceCheckResult, TenantLimits, TimeInterval
from jornada.utils import zoned_calendar as cal
from jornada.utils.time import as_utc, isoformat_utc, utc_now

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from jornada.services.repositories import TenantRepository, TimeEntryRepository


class ComplianceService:

    def __init__(
        self,
        tenants: "TenantRepository",
        entries: "TimeEntryRepository",
        sink: ComplianceSink | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.tenants = tenants
        self.entries = entries
        self.sink = sink or LoggingSink()
        self.clock = clock

    @classmethod
    def from_session(
        cls,
        db: "AsyncSession",
        sink: ComplianceSink | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> "ComplianceService":
        """Service auf einer AsyncSession (SQL-Repositories mit gemeinsamem Lock)."""
        from jornada.services.repositories import sql_repositories

        tenants, entries = sql_repositories(db)
        return cls(tenants, entries, sink=sink, clock=clock)

    def _now(self, now: Optional[datetime]) -> datetime:
        return as_utc(now) if now is not None else as_utc(self.clock())

    def _report(self, check: str, result: ComplianceCheckResult, user_id, tenant_id) -> ComplianceCheckResult:
        self.sink.record(check, result, user_id=user_id, tenant_id=tenant_id)
        return result

    # ── Öffentliche Einzelprüfungen ───────────────────────────────────────────

    async def validate_rest_period(
        self, user_id: uuid.UUID, tenant_id: uuid.UUID, now: Optional[datetime] = None
    ) -> ComplianceCheckResult:
        now = self._now(now)
        last_entry = await self.entries.last_clocked_out(user_id, tenant_id)
        result = rules.evaluate_rest_period(last_entry, now)
        return self._report("rest_period", result, user_id, tenant_id)

    async def validate_daily_hours(
        self,
        user_id: uuid.UUID,
        tenant_id: uuid.UUID,
        day: datetime | date,
        now: Optional[datetime] = None,
    ) -> ComplianceCheckResult:
        limits = await self.tenants.get_limits(tenant_id)
        return await self._daily_hours(user_id, tenant_id, limits, day, self._now(now))

    async def validate_weekly_hours(
        self,
        user_id: uuid.UUID,
        tenant_id: uuid.UUID,
        week_start: datetime | date,
        now: Optional[datetime] = None,
    ) -> ComplianceCheckResult:
        limits = await self.tenants.get_limits(tenant_id)
        return await self._weekly_hours(user_id, tenant_id, limits, week_start, self._now(now))

    async def validate_annual_hours(
        self, user_id: uuid.UUID, tenant_id: uuid.UUID, year: int, now: Optional[datetime] = None
    ) -> ComplianceCheckResult:
        limits = await self.tenants.get_limits(tenant_id)
        return await self._annual_hours(user_id, tenant_id, limits, year, self._now(now))

    async def validate_weekly_rest(
        self, user_id: uuid.UUID, tenant_id: uuid.UUID, now: Optional[datetime] = None
    ) -> ComplianceCheckResult:
        limits = await self.tenants.get_limits(tenant_id)
        return await self._weekly_rest(user_id, tenant_id, limits, self._now(now))

    def validate_break_compliance(self, entry, now: Optional[datetime] = None) -> ComplianceCheckResult:
        """Prüft einen einzelnen Eintrag (TimeEntry oder TimeInterval), kein Datenzugriff."""
        interval = entry if isinstance(entry, TimeInterval) else TimeInterval.from_entry(entry)
        result = rules.evaluate_break_compliance(interval, self._now(now))
        return self._report(
            "break_compliance",
            result,
            getattr(entry, "user_id", None),
            getattr(entry, "tenant_id", None),
        )

    # ── Gesamtentscheidung ────────────────────────────────────────────────────

    async def validate_clock_in_allowed(
        self, user_id: uuid.UUID, tenant_id: uuid.UUID, now: Optional[datetime] = None
    ) -> ComplianceCheckResult:
        """
        Führt Ruhezeit, Tages-, Wochen-, Jahresstunden und wöchentliche Ruhe
        parallel aus. Reihenfolge im Ergebnis ist fest, unabhängig davon, welche
        Prüfung zuerst fertig wird. Jeder Ladefehler bricht die Prüfung ab.
        """
        limits = await self.tenants.get_limits(tenant_id)
        now = self._now(now)
        week_start = cal.start_of_week(now, limits.timezone)
        current_year = cal.local_year(now, limits.timezone)

        checks = [
            asyncio.ensure_future(check)
            for check in (
                self.validate_rest_period(user_id, tenant_id, now),
                self._daily_hours(user_id, tenant_id, limits, now, now),
                self._weekly_hours(user_id, tenant_id, limits, week_start, now),
                self._annual_hours(user_id, tenant_id, limits, current_year, now),
                self._weekly_rest(user_id, tenant_id, limits, now),
            )
        ]
        try:
            rest, daily, weekly, annual, weekly_rest = await asyncio.gather(*checks)
        except BaseException:
            # Restliche Prüfungen abbrechen, bevor die Session geschlossen wird
            for check in checks:
                check.cancel()
            await asyncio.gather(*checks, return_exceptions=True)
            raise

        metadata = {
            "checkedAt": isoformat_utc(now),
            "timezone": limits.timezone,
        }
        if "nextAllowedClockIn" in rest.metadata:
            metadata["nextAllowedClockIn"] = rest.metadata["nextAllowedClockIn"]

        result = ComplianceCheckResult.merge(rest, daily, weekly, annual, weekly_rest, metadata=metadata)
        return self._report("clock_in", result, user_id, tenant_id)

    # ── Interne Prüfungen mit bereits geladenem Tenant ───────────────────────

    async def _daily_hours(self, user_id, tenant_id, limits: TenantLimits, day, now: datetime):
        zone = limits.timezone
        anchor = cal.start_of_date(day, zone) if not isinstance(day, datetime) else day
        range_start, range_end = cal.day_range(anchor, zone)
        intervals = await self.entries.entries_for_range(user_id, tenant_id, range_start, range_end)
        result = rules.evaluate_hours_limit(
            intervals, range_start, range_end, now, rules.daily_limit(), zone
        )
        return self._report("daily_hours", result, user_id, tenant_id)

    async def _weekly_hours(self, user_id, tenant_id, limits: TenantLimits, week_start, now: datetime):
        zone = limits.timezone
        anchor = cal.start_of_date(week_start, zone) if not isinstance(week_start, datetime) else week_start
        range_start, range_end = cal.week_range(anchor, zone)
        intervals = await self.entries.entries_for_range(user_id, tenant_id, range_start, range_end)
        result = rules.evaluate_hours_limit(
            intervals, range_start, range_end, now, rules.weekly_limit(limits.weekly_limit_hours), zone
        )
        return self._report("weekly_hours", result, user_id, tenant_id)

    async def _annual_hours(self, user_id, tenant_id, limits: TenantLimits, year: int, now: datetime):
        zone = limits.timezone
        range_start, range_end = cal.year_range(year, zone)
        intervals = await self.entries.entries_for_range(user_id, tenant_id, range_start, range_end)
        result = rules.evaluate_hours_limit(
            intervals, range_start, range_end, now, rules.annual_limit(limits.annual_limit_hours), zone
        )
        return self._report("annual_hours", result, user_id, tenant_id)

    async def _weekly_rest(self, user_id, tenant_id, limits: TenantLimits, now: datetime):
        zone = limits.timezone
        start_7 = cal.start_of_day(cal.add_days(now, zone, -6), zone)
        start_14 = cal.start_of_day(cal.add_days(now, zone, -13), zone)
        intervals = await self.entries.entries_for_range(user_id, tenant_id, start_14, now)
        result = rules.evaluate_weekly_rest(intervals, start_7, start_14, now, zone)
        return self._report("weekly_rest", result, user_id, tenant_id)
