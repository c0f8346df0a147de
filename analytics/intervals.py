"""Interval arithmetic shared by the overlap, gap and path analyzers.

Every function here accepts anything exposing ``start`` and ``end``
timezone-aware datetimes, so hypothetical intervals can be tested without
building a full event.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

from analytics.errors import InvalidRange


def minutes(delta: timedelta) -> int:
    """Whole minutes in ``delta``, rounding half a minute up."""
    return int(math.floor(delta.total_seconds() / 60 + 0.5))


def overlaps(a, b) -> bool:
    """True when the intervals intersect; touching endpoints do not count."""
    return a.start < b.end and a.end > b.start


def overlap_minutes(a, b) -> int:
    if not overlaps(a, b):
        return 0
    return minutes(min(a.end, b.end) - max(a.start, b.start))


def gap_minutes(a, b) -> int:
    """Minutes separating two intervals in either order; 0 when they overlap."""
    if overlaps(a, b):
        return 0
    if a.end <= b.start:
        return minutes(b.start - a.end)
    return minutes(a.start - b.end)


def intersects_window(event, window_start: datetime, window_end: datetime) -> bool:
    return event.start < window_end and event.end > window_start


def validate_window(window_start: Optional[datetime], window_end: Optional[datetime]) -> None:
    """Reject naive or empty windows."""
    if window_start is None or window_end is None:
        raise InvalidRange("Both window start and window end are required")
    if window_start.tzinfo is None or window_end.tzinfo is None:
        raise InvalidRange("Window bounds must carry a timezone offset")
    if window_end <= window_start:
        raise InvalidRange(
            f"Window end {window_end.isoformat()} must be after start {window_start.isoformat()}"
        )
