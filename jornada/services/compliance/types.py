"""Typdefinitionen der Compliance-Engine."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from jornada.utils.time import as_utc
from jornada.utils.zoned_calendar import validate_timezone

# Gesetzliche Standardwerte (Estatuto de los Trabajadores)
DEFAULT_MAX_WEEKLY_HOURS = 40.0
DEFAULT_MAX_ANNUAL_HOURS = 1822.0


class Severity(str, Enum):
    BLOCKING = "BLOCKING"


class ComplianceCode(str, Enum):
    # Verstöße (blockierend)
    REST_PERIOD_INSUFFICIENT = "REST_PERIOD_INSUFFICIENT"
    DAILY_HOURS_LIMIT_REACHED = "DAILY_HOURS_LIMIT_REACHED"
    WEEKLY_HOURS_LIMIT_REACHED = "WEEKLY_HOURS_LIMIT_REACHED"
    ANNUAL_HOURS_LIMIT_REACHED = "ANNUAL_HOURS_LIMIT_REACHED"
    WEEKLY_REST_MISSING = "WEEKLY_REST_MISSING"
    # Warnungen
    DAILY_HOURS_WARNING = "DAILY_HOURS_WARNING"
    WEEKLY_HOURS_WARNING = "WEEKLY_HOURS_WARNING"
    ANNUAL_HOURS_WARNING = "ANNUAL_HOURS_WARNING"
    WEEKLY_REST_PENDING = "WEEKLY_REST_PENDING"
    BREAK_REQUIRED = "BREAK_REQUIRED"


@dataclass(frozen=True)
class TimeInterval:
    """Ein gearbeiteter Zeitraum. end=None bedeutet: läuft noch."""
    start: datetime
    end: Optional[datetime] = None
    break_minutes: int = 0
    entry_id: Any = None

    def __post_init__(self):
        # Naive Zeitpunkte gelten als UTC, wie überall in der Engine
        object.__setattr__(self, "start", as_utc(self.start))
        if self.end is not None:
            object.__setattr__(self, "end", as_utc(self.end))

    @classmethod
    def from_entry(cls, entry) -> "TimeInterval":
        """Aus einer TimeEntry-Zeile (oder einem Objekt mit gleichen Attributen)."""
        return cls(
            start=as_utc(entry.clock_in),
            end=as_utc(entry.clock_out) if entry.clock_out is not None else None,
            break_minutes=max(0, entry.break_minutes or 0),
            entry_id=getattr(entry, "id", None),
        )

    def effective_end(self, now: datetime) -> datetime:
        return self.end if self.end is not None else now


class TenantLimits(BaseModel):
    """Tenant-Konfiguration; Zeitzone wird schon beim Anlegen geprüft."""
    timezone: str
    max_weekly_hours: float | None = Field(default=None, gt=0)
    max_annual_hours: float | None = Field(default=None, gt=0)

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        return validate_timezone(value)

    @property
    def weekly_limit_hours(self) -> float:
        return float(self.max_weekly_hours or DEFAULT_MAX_WEEKLY_HOURS)

    @property
    def annual_limit_hours(self) -> float:
        return float(self.max_annual_hours or DEFAULT_MAX_ANNUAL_HOURS)


@dataclass
class ComplianceViolation:
    code: ComplianceCode
    message: str
    severity: Severity = Severity.BLOCKING
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "message": self.message,
            "severity": self.severity.value,
            "details": self.details,
        }


@dataclass
class ComplianceWarning:
    code: ComplianceCode
    message: str
    threshold: float
    current: float

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "message": self.message,
            "threshold": self.threshold,
            "current": self.current,
        }


@dataclass
class ComplianceCheckResult:
    """Ergebnis einer Regel bzw. der Gesamtprüfung. Warnungen blockieren nie."""
    violations: list[ComplianceViolation] = field(default_factory=list)
    warnings: list[ComplianceWarning] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_compliant(self) -> bool:
        return len(self.violations) == 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    @classmethod
    def merge(cls, *results: "ComplianceCheckResult", metadata: dict | None = None) -> "ComplianceCheckResult":
        """Hängt Verstöße und Warnungen in Argumentreihenfolge aneinander."""
        return cls(
            violations=[v for r in results for v in r.violations],
            warnings=[w for r in results for w in r.warnings],
            metadata=dict(metadata or {}),
        )

    def to_dict(self) -> dict:
        return {
            "isCompliant": self.is_compliant,
            "violations": [v.to_dict() for v in self.violations],
            "warnings": [w.to_dict() for w in self.warnings],
            "metadata": self.metadata,
        }
