from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from jornada.core.config import settings


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Async-Engine; In-Memory-SQLite teilt sich eine Verbindung (StaticPool)."""
    kwargs = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            kwargs["poolclass"] = StaticPool
    return create_async_engine(url, **kwargs)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


@asynccontextmanager
async def compliance_session(sink=None, session_factory=AsyncSessionLocal):
    """
    ComplianceService auf einer eigenen Session, z.B. für den Stempel-Handler:

        async with compliance_session() as service:
            result = await service.validate_clock_in_allowed(user_id, tenant_id)
    """
    from jornada.services.compliance.service import ComplianceService

    async with session_factory() as session:
        yield ComplianceService.from_session(session, sink=sink)


async def create_tables(bind: AsyncEngine | None = None):
    """Legt alle Tabellen an (lokale Entwicklung und Tests, ohne Migrationen)."""
    import jornada.models  # noqa – registriert alle Models
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(bind: AsyncEngine | None = None):
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
