"""
Interval math over closed date-time ranges.

Overlap uses inclusive bounds: two ranges that only share a single instant
(one ends exactly when the other starts) are considered overlapping. The
store-side overlap query uses the same predicate.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple

from fieldops.core.exceptions import InvalidIntervalError

SECONDS_PER_HOUR = 3600.0


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC; convert aware input to match."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def validate_interval(start: datetime, end: datetime) -> None:
    """Raise InvalidIntervalError when ``start`` is after ``end``."""
    if start > end:
        raise InvalidIntervalError(start, end)


def normalize_interval(start: datetime, end: datetime) -> Tuple[datetime, datetime]:
    start, end = as_naive_utc(start), as_naive_utc(end)
    validate_interval(start, end)
    return start, end


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start <= b_end and b_start <= a_end


def overlap_interval(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> Optional[Tuple[datetime, datetime]]:
    """Return the intersection of two intervals, or None if they are disjoint."""
    start = max(a_start, b_start)
    end = min(a_end, b_end)
    if start > end:
        return None
    return start, end


def duration_hours(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_HOUR


def clipped_duration_hours(
    alloc_start: datetime, alloc_end: datetime, window_start: datetime, window_end: datetime
) -> float:
    """Hours of the allocation that fall inside the window (0 when disjoint)."""
    clipped = overlap_interval(alloc_start, alloc_end, window_start, window_end)
    if clipped is None:
        return 0.0
    return duration_hours(*clipped)
