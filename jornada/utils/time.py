"""Zeit-Hilfsfunktionen (UTC)."""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Aktuelle UTC-Zeit als timezone-aware datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive Werte (SQLite liefert ohne tzinfo) gelten als UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def minutes_between(start: datetime, end: datetime) -> int:
    """Ganze Minuten von start bis end, Richtung Null abgeschnitten."""
    return int((end - start).total_seconds() / 60)


def isoformat_utc(value: datetime) -> str:
    return as_utc(value).isoformat()
