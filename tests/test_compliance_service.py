"""
Tests für ComplianceService – Gesamtentscheidung beim Einstempeln und die
Einzelprüfungen gegen SQLite (Repositories auf einer gemeinsamen Session).
"""
import asyncio
import uuid
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jornada.core.database import compliance_session
from jornada.core.exceptions import DataUnavailable, TenantNotFound
from jornada.models.time_entry import EntryStatus
from jornada.schemas.compliance import ComplianceCheckOut
from jornada.services.compliance import ComplianceCode, ComplianceService, NullSink, TenantLimits, TimeInterval


def utc(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


NOW = utc(2026, 1, 29, 21)  # Do 22:00 in Madrid


class RecordingSink:
    def __init__(self):
        self.records = []

    def record(self, check, result, *, user_id, tenant_id):
        self.records.append((check, result.is_compliant))


def make_service(db, sink=None, now=NOW):
    return ComplianceService.from_session(db, sink=sink or NullSink(), clock=lambda: now)


# ── Gesamtentscheidung (SQLite) ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_clock_in_allowed_without_history(db, tenant, user):
    svc = make_service(db)
    result = await svc.validate_clock_in_allowed(user.id, tenant.id)

    assert result.is_compliant
    assert result.violations == []
    assert result.warnings == []
    assert result.metadata["checkedAt"] == NOW.isoformat()
    assert result.metadata["timezone"] == "Europe/Madrid"
    assert "nextAllowedClockIn" not in result.metadata


@pytest.mark.asyncio
async def test_compliance_session_opens_own_session(engine, tenant, user, add_entry):
    await add_entry(utc(2026, 1, 29, 2), utc(2026, 1, 29, 11))
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with compliance_session(sink=NullSink(), session_factory=factory) as svc:
        result = await svc.validate_clock_in_allowed(user.id, tenant.id, now=NOW)

    assert not result.is_compliant
    assert result.metadata["nextAllowedClockIn"] == "2026-01-29T23:00:00+00:00"


@pytest.mark.asyncio
async def test_clock_in_aggregates_violations_in_fixed_order(db, tenant, user, add_entry):
    """9h heute (03:00–12:00 Ortszeit), Ende vor 10h → Ruhezeit + Tageslimit."""
    await add_entry(utc(2026, 1, 29, 2), utc(2026, 1, 29, 11))
    svc = make_service(db)

    result = await svc.validate_clock_in_allowed(user.id, tenant.id)

    assert not result.is_compliant
    assert [v.code for v in result.violations] == [
        ComplianceCode.REST_PERIOD_INSUFFICIENT,
        ComplianceCode.DAILY_HOURS_LIMIT_REACHED,
    ]
    assert result.metadata["nextAllowedClockIn"] == utc(2026, 1, 29, 23).isoformat()


@pytest.mark.asyncio
async def test_clock_in_ignores_deleted_entries(db, tenant, user, add_entry):
    await add_entry(utc(2026, 1, 29, 2), utc(2026, 1, 29, 11), status=EntryStatus.DELETED)
    svc = make_service(db)

    result = await svc.validate_clock_in_allowed(user.id, tenant.id)
    assert result.is_compliant


@pytest.mark.asyncio
async def test_clock_in_warning_does_not_block(db, tenant, user, add_entry):
    """8h heute, Ende vor 12h → nur DAILY_HOURS_WARNING."""
    await add_entry(utc(2026, 1, 29, 0), utc(2026, 1, 29, 8))
    svc = make_service(db)

    result = await svc.validate_clock_in_allowed(user.id, tenant.id)
    assert result.is_compliant
    assert [w.code for w in result.warnings] == [ComplianceCode.DAILY_HOURS_WARNING]


@pytest.mark.asyncio
async def test_clock_in_unknown_tenant_raises(db, user):
    svc = make_service(db)
    with pytest.raises(TenantNotFound):
        await svc.validate_clock_in_allowed(user.id, uuid.uuid4())


@pytest.mark.asyncio
async def test_clock_in_reports_every_check_to_sink(db, tenant, user, add_entry):
    await add_entry(utc(2026, 1, 29, 2), utc(2026, 1, 29, 11))
    sink = RecordingSink()
    svc = make_service(db, sink=sink)

    await svc.validate_clock_in_allowed(user.id, tenant.id)

    checks = dict(sink.records)
    assert set(checks) == {
        "rest_period", "daily_hours", "weekly_hours", "annual_hours", "weekly_rest", "clock_in",
    }
    assert checks["clock_in"] is False
    assert checks["weekly_hours"] is True
    assert sink.records[-1][0] == "clock_in"


@pytest.mark.asyncio
async def test_clock_in_is_idempotent(db, tenant, user, add_entry):
    await add_entry(utc(2026, 1, 29, 7), utc(2026, 1, 29, 15), break_minutes=20)
    svc = make_service(db)

    first = await svc.validate_clock_in_allowed(user.id, tenant.id)
    second = await svc.validate_clock_in_allowed(user.id, tenant.id)
    assert first.to_dict() == second.to_dict()


@pytest.mark.asyncio
async def test_clock_in_result_serializes(db, tenant, user, add_entry):
    await add_entry(utc(2026, 1, 29, 2), utc(2026, 1, 29, 11))
    result = await make_service(db).validate_clock_in_allowed(user.id, tenant.id)

    out = ComplianceCheckOut.from_result(result).model_dump(by_alias=True)
    assert out["isCompliant"] is False
    assert out["violations"][0]["code"] == "REST_PERIOD_INSUFFICIENT"
    assert out["violations"][0]["severity"] == "BLOCKING"
    assert out["warnings"] == []


# ── Einzelprüfungen (SQLite) ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_rest_period_uses_latest_clock_out(db, tenant, user, add_entry):
    await add_entry(utc(2026, 1, 27, 8), utc(2026, 1, 27, 16))
    await add_entry(utc(2026, 1, 29, 5), utc(2026, 1, 29, 13))
    await add_entry(utc(2026, 1, 29, 19), None)  # läuft noch, zählt nicht als Ausstempeln

    result = await make_service(db).validate_rest_period(user.id, tenant.id)
    assert result.violations[0].details["lastClockOut"] == utc(2026, 1, 29, 13).isoformat()
    assert result.violations[0].details["minutesSinceLastClockOut"] == 480


@pytest.mark.asyncio
async def test_daily_hours_for_calendar_date(db, tenant, user, add_entry):
    """Beispiel: 08:00Z–16:00Z am 29.01., Europe/Madrid → genau 8h → Warnung."""
    await add_entry(utc(2026, 1, 29, 8), utc(2026, 1, 29, 16))

    result = await make_service(db).validate_daily_hours(user.id, tenant.id, date(2026, 1, 29))
    assert result.is_compliant
    assert result.violations == []
    assert result.warnings[0].code == ComplianceCode.DAILY_HOURS_WARNING
    assert result.metadata["rangeStart"] == utc(2026, 1, 28, 23).isoformat()


@pytest.mark.asyncio
async def test_daily_hours_counts_ongoing_entry_until_now(db, tenant, user, add_entry):
    await add_entry(utc(2026, 1, 29, 11), None)

    result = await make_service(db).validate_daily_hours(user.id, tenant.id, NOW)
    assert result.metadata["workedMinutes"] == 600
    assert result.violations[0].code == ComplianceCode.DAILY_HOURS_LIMIT_REACHED


@pytest.mark.asyncio
async def test_weekly_hours_respects_tenant_limit(db, tenant, user, add_entry):
    tenant.max_weekly_hours = 20
    await db.commit()
    for day in (26, 27, 28):
        await add_entry(utc(2026, 1, day, 8), utc(2026, 1, day, 15))

    result = await make_service(db).validate_weekly_hours(user.id, tenant.id, date(2026, 1, 26))
    assert result.violations[0].code == ComplianceCode.WEEKLY_HOURS_LIMIT_REACHED
    assert result.violations[0].details["limitHours"] == 20.0


@pytest.mark.asyncio
async def test_annual_hours_default_limit_when_unset(db, tenant, user, add_entry):
    tenant.max_annual_hours = None
    await db.commit()
    await add_entry(utc(2026, 1, 5, 8), utc(2026, 1, 5, 16))

    result = await make_service(db).validate_annual_hours(user.id, tenant.id, 2026)
    assert result.is_compliant
    assert result.metadata["limitHours"] == 1822.0
    assert result.metadata["workedHours"] == 8.0


@pytest.mark.asyncio
async def test_weekly_rest_missing(db, tenant, user, add_entry):
    for day in range(15, 29):
        await add_entry(utc(2026, 1, day, 8), utc(2026, 1, day, 20))

    result = await make_service(db).validate_weekly_rest(user.id, tenant.id, now=utc(2026, 1, 29, 12))
    assert result.violations[0].code == ComplianceCode.WEEKLY_REST_MISSING


def test_break_compliance_on_entry():
    entry = SimpleNamespace(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        tenant_id=uuid.uuid4(),
        clock_in=utc(2026, 1, 29, 8),
        clock_out=utc(2026, 1, 29, 15),
        break_minutes=10,
    )
    svc = ComplianceService(StubTenants(), SlowEntries([]), sink=NullSink(), clock=lambda: NOW)
    result = svc.validate_break_compliance(entry)
    assert result.warnings[0].code == ComplianceCode.BREAK_REQUIRED
    assert result.warnings[0].current == 10


# ── Parallelität / Datenfehler (Stub-Repositories) ────────────────────────────

class StubTenants:
    def __init__(self, limits=None):
        self.limits = limits or TenantLimits(timezone="Europe/Madrid")

    async def get_limits(self, tenant_id):
        return self.limits


class SlowEntries:
    """Antwortet umso schneller, je größer der Bereich ist – Fertigstellung umgekehrt zur Aufrufreihenfolge."""

    def __init__(self, intervals):
        self.intervals = intervals

    async def entries_for_range(self, user_id, tenant_id, range_start, range_end):
        span = (range_end - range_start).total_seconds()
        await asyncio.sleep(0.05 if span <= 86400 else 0.0)
        return [i for i in self.intervals if i.start < range_end]

    async def last_clocked_out(self, user_id, tenant_id):
        await asyncio.sleep(0.1)
        closed = [i for i in self.intervals if i.end is not None]
        return max(closed, key=lambda i: i.end) if closed else None


class FailingEntries(SlowEntries):

    async def entries_for_range(self, user_id, tenant_id, range_start, range_end):
        raise DataUnavailable("connection lost")

    async def last_clocked_out(self, user_id, tenant_id):
        return None


@pytest.mark.asyncio
async def test_merge_order_independent_of_completion_order():
    intervals = [TimeInterval(utc(2026, 1, 29, 2), utc(2026, 1, 29, 11))]
    svc = ComplianceService(StubTenants(), SlowEntries(intervals), sink=NullSink(), clock=lambda: NOW)

    result = await svc.validate_clock_in_allowed("user-1", "tenant-1")
    assert [v.code for v in result.violations] == [
        ComplianceCode.REST_PERIOD_INSUFFICIENT,
        ComplianceCode.DAILY_HOURS_LIMIT_REACHED,
    ]


@pytest.mark.asyncio
async def test_data_failure_fails_closed():
    svc = ComplianceService(StubTenants(), FailingEntries([]), sink=NullSink(), clock=lambda: NOW)
    with pytest.raises(DataUnavailable):
        await svc.validate_clock_in_allowed("user-1", "tenant-1")


class DailyRangeFailingEntries:
    """Tagesabfrage scheitert sofort, alle anderen Abfragen brauchen 50 ms."""

    def __init__(self):
        self.completed = []

    async def entries_for_range(self, user_id, tenant_id, range_start, range_end):
        if range_end - range_start <= timedelta(hours=25):
            raise DataUnavailable("daily range lost")
        await asyncio.sleep(0.05)
        self.completed.append(range_start)
        return []

    async def last_clocked_out(self, user_id, tenant_id):
        await asyncio.sleep(0.05)
        self.completed.append("last_clocked_out")
        return None


@pytest.mark.asyncio
async def test_failure_cancels_remaining_checks():
    entries = DailyRangeFailingEntries()
    svc = ComplianceService(StubTenants(), entries, sink=NullSink(), clock=lambda: NOW)

    with pytest.raises(DataUnavailable):
        await svc.validate_clock_in_allowed("user-1", "tenant-1")

    assert asyncio.all_tasks() == {asyncio.current_task()}
    await asyncio.sleep(0.1)
    assert entries.completed == []


@pytest.mark.asyncio
async def test_now_sampled_once_per_decision():
    ticks = iter([NOW, NOW + timedelta(hours=5)])
    svc = ComplianceService(StubTenants(), SlowEntries([]), sink=NullSink(), clock=lambda: next(ticks))

    result = await svc.validate_clock_in_allowed("user-1", "tenant-1")
    assert result.metadata["checkedAt"] == NOW.isoformat()
