"""
Schema für die Compliance-Konfiguration eines Tenants (Zeitzone, Stundenlimits).

Ungültige Zonen werden hier beim Schreiben abgewiesen, nicht erst bei jeder Prüfung.
"""
from pydantic import BaseModel, Field, field_validator

from jornada.core.exceptions import InvalidTimezone
from jornada.utils.zoned_calendar import validate_timezone


class TenantComplianceUpdate(BaseModel):
    timezone: str | None = None
    max_weekly_hours: float | None = Field(default=None, gt=0, le=168)
    max_annual_hours: float | None = Field(default=None, gt=0)

    @field_validator("timezone")
    @classmethod
    def timezone_known(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            return validate_timezone(v)
        except InvalidTimezone as exc:
            raise ValueError(str(exc)) from exc

    def apply_to(self, tenant) -> None:
        """Nur explizit gesetzte Felder übernehmen (PATCH-Semantik)."""
        for field, value in self.model_dump(exclude_unset=True).items():
            setattr(tenant, field, value)
