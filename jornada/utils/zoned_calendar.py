"""
Kalenderarithmetik in einer benannten Zeitzone.

Reine Funktionen von (Zeitpunkt, Zone) → Zeitpunkt. Alle Rückgabewerte sind
UTC-datetimes; die Sommerzeit-Logik steckt ausschließlich hier, damit
Aggregation und Regeln ohne Zeitzonenwissen auskommen.
"""
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from jornada.core.exceptions import InvalidTimezone
from jornada.utils.time import as_utc

WEEK_STARTS_ON = 0  # Montag (ISO-Woche)


@lru_cache(maxsize=64)
def get_zone(name: str) -> ZoneInfo:
    if not name:
        raise InvalidTimezone(name)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimezone(name) from exc


def validate_timezone(name: str) -> str:
    get_zone(name)
    return name


def to_local(instant: datetime, zone: str) -> datetime:
    return as_utc(instant).astimezone(get_zone(zone))


def local_to_utc(
    year: int,
    month: int,
    day: int,
    zone: str,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Lokale Wanduhrzeit → absoluter Zeitpunkt (fold=0 bei Mehrdeutigkeit)."""
    local = datetime(year, month, day, hour, minute, second, tzinfo=get_zone(zone))
    return local.astimezone(timezone.utc)


def start_of_day(instant: datetime, zone: str) -> datetime:
    local = to_local(instant, zone)
    return local_to_utc(local.year, local.month, local.day, zone)


def start_of_date(day: date, zone: str) -> datetime:
    """00:00 Ortszeit eines Kalenderdatums."""
    return local_to_utc(day.year, day.month, day.day, zone)


def add_days(instant: datetime, zone: str, days: int) -> datetime:
    """
    Verschiebt um `days` Kalendertage.

    Gerechnet wird ab 12:00 Ortszeit des Kalendertags plus days*24h, damit eine
    Sommerzeitumstellung (±1h) nie über eine Tagesgrenze schiebt. Das Ergebnis ist
    ein absoluter Zeitpunkt; für Tagesgrenzen anschließend start_of_day anwenden.
    """
    local = to_local(instant, zone)
    midday = local_to_utc(local.year, local.month, local.day, zone, hour=12)
    return midday + timedelta(days=days)


def start_of_week(instant: datetime, zone: str) -> datetime:
    weekday = to_local(instant, zone).weekday()
    days_since_week_start = (weekday - WEEK_STARTS_ON + 7) % 7
    return start_of_day(add_days(instant, zone, -days_since_week_start), zone)


def day_range(instant: datetime, zone: str) -> tuple[datetime, datetime]:
    start = start_of_day(instant, zone)
    end = start_of_day(add_days(instant, zone, 1), zone)
    return start, end


def week_range(week_start: datetime, zone: str) -> tuple[datetime, datetime]:
    start = start_of_day(week_start, zone)
    end = start_of_day(add_days(week_start, zone, 7), zone)
    return start, end


def year_range(year: int, zone: str) -> tuple[datetime, datetime]:
    return local_to_utc(year, 1, 1, zone), local_to_utc(year + 1, 1, 1, zone)


def local_year(instant: datetime, zone: str) -> int:
    return to_local(instant, zone).year
