"""
Arbeitsrechtliche Regeln (Spanien): Ruhezeit, Tages-, Wochen- und Jahresstunden,
wöchentliche Ruhe und Pausen.

Jede Regel ist eine reine Funktion über bereits geladene Intervalle und liefert
ein ComplianceCheckResult. Datenzugriff und Logging liegen im ComplianceService.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from jornada.services.compliance.intervals import longest_gap_minutes, worked_minutes
from jornada.services.compliance.types import (
    ComplianceCheckResult,
    ComplianceCode,
    ComplianceViolation,
    ComplianceWarning,
    TimeInterval,
)
from jornada.utils.time import isoformat_utc, minutes_between

MINUTES_IN_HOUR = 60
REST_PERIOD_HOURS = 12
DAILY_LIMIT_HOURS = 9
DAILY_WARNING_HOURS = 8
LIMIT_WARNING_RATIO = 0.9
WEEKLY_REST_HOURS = 36
BREAK_REQUIRED_AFTER_HOURS = 6
BREAK_MINUTES_REQUIRED = 15


def format_message(spanish: str, english: str) -> str:
    return f"ES: {spanish} EN: {english}"


def round_hours(value: float) -> float:
    return round(value, 2)


# ── Ruhezeit zwischen zwei Schichten ──────────────────────────────────────────

def evaluate_rest_period(last_entry: Optional[TimeInterval], now: datetime) -> ComplianceCheckResult:
    """12h seit dem letzten Ausstempeln. Ohne abgeschlossene Vorschicht: bestanden."""
    if last_entry is None or last_entry.end is None:
        return ComplianceCheckResult(metadata={"checkedAt": isoformat_utc(now)})

    last_clock_out = last_entry.end
    minutes_since = minutes_between(last_clock_out, now)
    required_minutes = REST_PERIOD_HOURS * MINUTES_IN_HOUR
    next_allowed = last_clock_out + timedelta(hours=REST_PERIOD_HOURS)

    if minutes_since < required_minutes:
        violation = ComplianceViolation(
            code=ComplianceCode.REST_PERIOD_INSUFFICIENT,
            message=format_message(
                "No se cumple el descanso mínimo de 12 horas entre turnos.",
                "Minimum 12-hour rest period not met between shifts.",
            ),
            details={
                "lastClockOut": isoformat_utc(last_clock_out),
                "minutesSinceLastClockOut": minutes_since,
                "requiredMinutes": required_minutes,
                "nextAllowedClockIn": isoformat_utc(next_allowed),
            },
        )
        return ComplianceCheckResult(
            violations=[violation],
            metadata={"nextAllowedClockIn": isoformat_utc(next_allowed)},
        )

    return ComplianceCheckResult(metadata={
        "lastClockOut": isoformat_utc(last_clock_out),
        "minutesSinceLastClockOut": minutes_since,
        "nextAllowedClockIn": isoformat_utc(next_allowed),
    })


# ── Stundengrenzen (Tag / Woche / Jahr) ───────────────────────────────────────

@dataclass(frozen=True)
class HoursLimit:
    limit_hours: float
    warning_hours: float
    violation_code: ComplianceCode
    warning_code: ComplianceCode
    violation_message: str
    warning_message: str


def daily_limit() -> HoursLimit:
    return HoursLimit(
        limit_hours=DAILY_LIMIT_HOURS,
        warning_hours=DAILY_WARNING_HOURS,
        violation_code=ComplianceCode.DAILY_HOURS_LIMIT_REACHED,
        warning_code=ComplianceCode.DAILY_HOURS_WARNING,
        violation_message=format_message(
            "Se ha superado el límite diario de 9 horas.",
            "Daily limit of 9 hours exceeded.",
        ),
        warning_message=format_message(
            "Se acerca al límite diario de 9 horas.",
            "Approaching daily limit of 9 hours.",
        ),
    )


def weekly_limit(limit_hours: float) -> HoursLimit:
    return HoursLimit(
        limit_hours=limit_hours,
        warning_hours=limit_hours * LIMIT_WARNING_RATIO,
        violation_code=ComplianceCode.WEEKLY_HOURS_LIMIT_REACHED,
        warning_code=ComplianceCode.WEEKLY_HOURS_WARNING,
        violation_message=format_message(
            "Se ha superado el límite semanal de horas.",
            "Weekly hours limit exceeded.",
        ),
        warning_message=format_message(
            "Se acerca al límite semanal de horas.",
            "Approaching weekly hours limit.",
        ),
    )


def annual_limit(limit_hours: float) -> HoursLimit:
    return HoursLimit(
        limit_hours=limit_hours,
        warning_hours=limit_hours * LIMIT_WARNING_RATIO,
        violation_code=ComplianceCode.ANNUAL_HOURS_LIMIT_REACHED,
        warning_code=ComplianceCode.ANNUAL_HOURS_WARNING,
        violation_message=format_message(
            "Se ha superado el límite anual de horas.",
            "Annual hours limit exceeded.",
        ),
        warning_message=format_message(
            "Se acerca al límite anual de horas.",
            "Approaching annual hours limit.",
        ),
    )


def evaluate_hours_limit(
    intervals: Iterable[TimeInterval],
    range_start: datetime,
    range_end: datetime,
    now: datetime,
    limit: HoursLimit,
    timezone: str,
) -> ComplianceCheckResult:
    """Gemeinsamer Algorithmus: Minuten im Bereich summieren, gegen Grenzen prüfen (≥)."""
    minutes = worked_minutes(intervals, range_start, range_end, now)
    hours = minutes / MINUTES_IN_HOUR

    violations: list[ComplianceViolation] = []
    warnings: list[ComplianceWarning] = []

    if hours >= limit.limit_hours:
        violations.append(ComplianceViolation(
            code=limit.violation_code,
            message=limit.violation_message,
            details={
                "workedHours": round_hours(hours),
                "limitHours": limit.limit_hours,
                "rangeStart": isoformat_utc(range_start),
                "rangeEnd": isoformat_utc(range_end),
            },
        ))
    elif hours >= limit.warning_hours:
        warnings.append(ComplianceWarning(
            code=limit.warning_code,
            message=limit.warning_message,
            threshold=round_hours(limit.warning_hours),
            current=round_hours(hours),
        ))

    return ComplianceCheckResult(violations, warnings, {
        "workedMinutes": max(0, round(minutes)),
        "workedHours": round_hours(hours),
        "limitHours": limit.limit_hours,
        "warningHours": round_hours(limit.warning_hours),
        "rangeStart": isoformat_utc(range_start),
        "rangeEnd": isoformat_utc(range_end),
        "timezone": timezone,
    })


# ── Wöchentliche Ruhe (36h am Stück) ──────────────────────────────────────────

def evaluate_weekly_rest(
    intervals: Iterable[TimeInterval],
    start_7: datetime,
    start_14: datetime,
    now: datetime,
    timezone: str,
) -> ComplianceCheckResult:
    """
    36h Ruhe im 7-Tage-Fenster → bestanden; nur im 14-Tage-Fenster → Warnung
    (Ruhe steht aus); in keinem → blockierender Verstoß.
    """
    intervals = list(intervals)
    rest_hours_7 = longest_gap_minutes(intervals, start_7, now) / MINUTES_IN_HOUR
    rest_hours_14 = longest_gap_minutes(intervals, start_14, now) / MINUTES_IN_HOUR

    metadata = {
        "maxRestHours7": round_hours(rest_hours_7),
        "maxRestHours14": round_hours(rest_hours_14),
        "thresholdHours": WEEKLY_REST_HOURS,
        "rangeStart7": isoformat_utc(start_7),
        "rangeStart14": isoformat_utc(start_14),
        "checkedAt": isoformat_utc(now),
        "timezone": timezone,
    }

    if rest_hours_7 >= WEEKLY_REST_HOURS:
        return ComplianceCheckResult(metadata=metadata)

    if rest_hours_14 >= WEEKLY_REST_HOURS:
        warning = ComplianceWarning(
            code=ComplianceCode.WEEKLY_REST_PENDING,
            message=format_message(
                "No se ha registrado un descanso continuo de 36 horas en los últimos 7 días.",
                "No 36-hour continuous rest recorded in the last 7 days.",
            ),
            threshold=WEEKLY_REST_HOURS,
            current=round_hours(rest_hours_7),
        )
        return ComplianceCheckResult(warnings=[warning], metadata=metadata)

    violation = ComplianceViolation(
        code=ComplianceCode.WEEKLY_REST_MISSING,
        message=format_message(
            "No se ha registrado un descanso continuo de 36 horas en los últimos 14 días.",
            "No 36-hour continuous rest recorded in the last 14 days.",
        ),
        details={
            "maxRestHours14": round_hours(rest_hours_14),
            "requiredHours": WEEKLY_REST_HOURS,
            "rangeStart14": isoformat_utc(start_14),
            "checkedAt": isoformat_utc(now),
        },
    )
    return ComplianceCheckResult(violations=[violation], metadata=metadata)


# ── Pausen ────────────────────────────────────────────────────────────────────

def evaluate_break_compliance(interval: TimeInterval, now: datetime) -> ComplianceCheckResult:
    """Schicht > 6h braucht mind. 15 min Pause. Nur Warnung, blockiert nie."""
    clock_out = interval.effective_end(now)
    total_minutes = minutes_between(interval.start, clock_out)
    metadata = {
        "clockIn": isoformat_utc(interval.start),
        "clockOut": isoformat_utc(clock_out),
    }

    if total_minutes <= 0:
        return ComplianceCheckResult(metadata=metadata)

    warnings: list[ComplianceWarning] = []
    if total_minutes / MINUTES_IN_HOUR > BREAK_REQUIRED_AFTER_HOURS and interval.break_minutes < BREAK_MINUTES_REQUIRED:
        warnings.append(ComplianceWarning(
            code=ComplianceCode.BREAK_REQUIRED,
            message=format_message(
                "Turno superior a 6 horas sin descanso registrado.",
                "Shift longer than 6 hours without recorded break.",
            ),
            threshold=BREAK_MINUTES_REQUIRED,
            current=interval.break_minutes,
        ))

    return ComplianceCheckResult(warnings=warnings, metadata={
        "totalMinutes": total_minutes,
        "breakMinutes": interval.break_minutes,
        **metadata,
    })
