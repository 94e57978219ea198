import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Boolean, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jornada.core.database import Base
from jornada.services.compliance.types import TenantLimits


class Tenant(Base):
    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    # Arbeitszeitrecht: Zone für Tages-/Wochen-/Jahresgrenzen, eigene Stundenlimits
    timezone: Mapped[str | None] = mapped_column(String(64), default="Europe/Madrid")  # IANA
    # None → gesetzlicher Standardwert (40h / 1822h)
    max_weekly_hours: Mapped[float | None] = mapped_column(Numeric(6, 2), nullable=True)
    max_annual_hours: Mapped[float | None] = mapped_column(Numeric(7, 2), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    users: Mapped[list["User"]] = relationship(back_populates="tenant", cascade="all, delete-orphan")

    def compliance_limits(self, default_timezone: str) -> TenantLimits:
        return TenantLimits(
            timezone=self.timezone or default_timezone,
            max_weekly_hours=float(self.max_weekly_hours) if self.max_weekly_hours else None,
            max_annual_hours=float(self.max_annual_hours) if self.max_annual_hours else None,
        )
