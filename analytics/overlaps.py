"""Overlap detection between events inside a time window."""
from __future__ import annotations

import heapq
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from analytics.deadline import Deadline, ensure
from analytics.intervals import intersects_window, overlap_minutes, validate_window
from analytics.models import Event, iso


@dataclass
class OverlapPair:
    """Two events whose intervals strictly intersect."""
    first: Event
    second: Event
    overlap_minutes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "events": [_describe(self.first), _describe(self.second)],
            "overlap_duration_minutes": self.overlap_minutes,
        }


def _describe(event: Event) -> Dict[str, Any]:
    return {
        "event_id": event.id,
        "event_name": event.name,
        "start_date": iso(event.start),
        "end_date": iso(event.end),
    }


def find_overlaps(
    events: Iterable[Event],
    window_start: datetime,
    window_end: datetime,
    deadline: Optional[Deadline] = None,
) -> List[OverlapPair]:
    """Find every overlapping pair among events intersecting ``[window_start, window_end)``.

    Sweep line over the start-sorted candidates: active events sit in a
    heap keyed by end time, expired ones are popped once, and every event
    left in the heap pairs with the incoming one. Runs in O(n log n + k)
    for k reported pairs instead of scanning all pairs.
    Within a pair, ``first`` is the event that starts earlier (snapshot
    order on equal starts).

    Raises:
        InvalidRange: if the window is empty or naive.
    """
    validate_window(window_start, window_end)
    deadline = ensure(deadline)

    candidates = sorted(
        (e for e in events if intersects_window(e, window_start, window_end)),
        key=lambda e: e.start,
    )

    pairs: List[OverlapPair] = []
    active: List[Tuple[datetime, int, Event]] = []
    for position, event in enumerate(candidates):
        deadline.check()
        while active and active[0][0] <= event.start:
            heapq.heappop(active)
        for _, _, other in active:
            pairs.append(OverlapPair(other, event, overlap_minutes(other, event)))
        heapq.heappush(active, (event.end, position, event))
    return pairs
