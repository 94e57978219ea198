"""
Gemeinsame pytest-Fixtures.

SQLite in-memory mit StaticPool: alle Sessions teilen eine Verbindung, Daten aus
einer Session sind in der anderen sichtbar.
"""
import uuid
from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession

from jornada.core.database import build_engine, create_tables, drop_tables
from jornada.models.tenant import Tenant
from jornada.models.time_entry import EntryStatus, TimeEntry
from jornada.models.user import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ── Engine (function-scoped: frische DB pro Test) ────────────────────────────

@pytest_asyncio.fixture
async def engine():
    eng = build_engine(TEST_DATABASE_URL)  # StaticPool: eine gemeinsame Verbindung
    await create_tables(eng)

    yield eng

    await drop_tables(eng)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncSession:
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


# ── Tenant + User ─────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def tenant(db) -> Tenant:
    t = Tenant(
        id=uuid.uuid4(),
        name="Test S.L.",
        slug=f"test-{uuid.uuid4().hex[:8]}",
        timezone="Europe/Madrid",
        max_weekly_hours=40,
        max_annual_hours=1822,
        is_active=True,
    )
    db.add(t)
    await db.commit()
    await db.refresh(t)
    return t


@pytest_asyncio.fixture
async def user(db, tenant) -> User:
    u = User(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        email=f"empleado-{uuid.uuid4().hex[:6]}@test.es",
        role="employee",
        is_active=True,
    )
    db.add(u)
    await db.commit()
    await db.refresh(u)
    return u


@pytest.fixture
def add_entry(db, tenant, user):
    """Fabrik für Zeiteinträge des Test-Users."""
    async def _add_entry(
        clock_in: datetime,
        clock_out: datetime | None,
        break_minutes: int = 0,
        status: str = EntryStatus.ACTIVE,
    ) -> TimeEntry:
        entry = TimeEntry(
            tenant_id=tenant.id,
            user_id=user.id,
            clock_in=clock_in,
            clock_out=clock_out,
            break_minutes=break_minutes,
            status=status,
        )
        db.add(entry)
        await db.commit()
        await db.refresh(entry)
        return entry
    return _add_entry
