"""
Aggregation über Arbeitsintervalle: gearbeitete Minuten und längste Ruhepause
innerhalb eines Bereichs [range_start, range_end).

Reine Funktionen ohne Zeitzonenwissen. Fehlerhafte Daten (Überlappungen,
negative Dauer) werfen nie; Überlappungen werden additiv gezählt.
"""
from datetime import datetime
from typing import Iterable

from jornada.services.compliance.types import TimeInterval
from jornada.utils.time import minutes_between


def overlap_minutes(
    start: datetime, end: datetime, range_start: datetime, range_end: datetime
) -> int:
    overlap_start = max(start, range_start)
    overlap_end = min(end, range_end)
    if overlap_end <= overlap_start:
        return 0
    return minutes_between(overlap_start, overlap_end)


def worked_minutes(
    intervals: Iterable[TimeInterval],
    range_start: datetime,
    range_end: datetime,
    now: datetime,
) -> float:
    """
    Netto-Arbeitsminuten im Bereich.

    Die Pause eines Intervalls ist keinem Teilzeitraum zugeordnet; bei teilweiser
    Überlappung wird sie anteilig (Überlappung / Gesamtdauer) abgezogen.
    """
    total = 0.0
    for interval in intervals:
        interval_end = interval.effective_end(now)
        overlap = overlap_minutes(interval.start, interval_end, range_start, range_end)
        if overlap <= 0:
            continue

        interval_minutes = minutes_between(interval.start, interval_end)
        if interval.break_minutes > 0 and interval_minutes > 0:
            ratio = overlap / interval_minutes
            allocated_break = min(interval.break_minutes * ratio, overlap)
            total += max(0.0, overlap - allocated_break)
        else:
            total += overlap
    return total


def longest_gap_minutes(
    intervals: Iterable[TimeInterval],
    range_start: datetime,
    range_end: datetime,
) -> int:
    """Längste zusammenhängende Lücke im Bereich, inkl. Anfang und Ende."""
    if range_end <= range_start:
        return 0

    clipped: list[tuple[datetime, datetime]] = []
    for interval in intervals:
        start = max(interval.start, range_start)
        end = min(interval.end if interval.end is not None else range_end, range_end)
        if end > start:
            clipped.append((start, end))

    if not clipped:
        return minutes_between(range_start, range_end)

    clipped.sort(key=lambda pair: pair[0])

    # Überlappende und direkt anschließende Intervalle zusammenfassen
    merged: list[list[datetime]] = []
    for start, end in clipped:
        if merged and start <= merged[-1][1]:
            if end > merged[-1][1]:
                merged[-1][1] = end
        else:
            merged.append([start, end])

    longest = 0
    previous_end = range_start
    for start, end in merged:
        if start > previous_end:
            longest = max(longest, minutes_between(previous_end, start))
        previous_end = max(previous_end, end)

    if range_end > previous_end:
        longest = max(longest, minutes_between(previous_end, range_end))

    return longest
