"""Temporal gap detection between chronologically adjacent events."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from analytics.deadline import Deadline, ensure
from analytics.errors import InvalidRange
from analytics.intervals import intersects_window, minutes, validate_window
from analytics.models import DEFAULT_SEVERITY_THRESHOLDS, Event, Severity, iso
from analytics.snapshot import EventSnapshot


@dataclass
class Gap:
    """Span strictly between the end of one event and the start of the next."""
    preceding: Event
    succeeding: Event
    start: datetime
    end: datetime
    duration_minutes: int
    severity: Severity

    @property
    def key(self) -> Tuple[str, str]:
        return self.preceding.id, self.succeeding.id

    def touches(self, event_id: str) -> bool:
        return event_id in self.key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_of_gap": iso(self.start),
            "end_of_gap": iso(self.end),
            "duration_minutes": self.duration_minutes,
            "severity": self.severity.value,
            "preceding_event": {
                "event_id": self.preceding.id,
                "event_name": self.preceding.name,
                "end_date": iso(self.preceding.end),
            },
            "succeeding_event": {
                "event_id": self.succeeding.id,
                "event_name": self.succeeding.name,
                "start_date": iso(self.succeeding.start),
            },
        }


@dataclass
class AffectedGap:
    """How one gap touching a simulated event changed."""
    change: str  # "eliminated", "created" or "modified"
    original: Optional[Gap] = None
    new: Optional[Gap] = None

    @property
    def change_minutes(self) -> Optional[int]:
        if self.original is None or self.new is None:
            return None
        return self.new.duration_minutes - self.original.duration_minutes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.change,
            "original": self.original.to_dict() if self.original else None,
            "new": self.new.to_dict() if self.new else None,
            "change_minutes": self.change_minutes,
        }


@dataclass
class GapSimulation:
    event_id: str
    original_gap_count: int
    new_gap_count: int
    affected_gaps: List[AffectedGap] = field(default_factory=list)

    @property
    def gap_difference(self) -> int:
        return self.new_gap_count - self.original_gap_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "original_gap_count": self.original_gap_count,
            "new_gap_count": self.new_gap_count,
            "gap_difference": self.gap_difference,
            "affected_gaps": [a.to_dict() for a in self.affected_gaps],
        }


def make_gap(
    preceding: Event,
    succeeding: Event,
    thresholds: Tuple[int, int, int] = DEFAULT_SEVERITY_THRESHOLDS,
) -> Optional[Gap]:
    """Gap between two events, or None unless ``preceding`` ends strictly before ``succeeding`` starts."""
    if not preceding.end < succeeding.start:
        return None
    duration = minutes(succeeding.start - preceding.end)
    return Gap(
        preceding=preceding,
        succeeding=succeeding,
        start=preceding.end,
        end=succeeding.start,
        duration_minutes=duration,
        severity=Severity.classify(duration, thresholds),
    )


def window_neighbours(
    events: Sequence[Event],
    window_start: datetime,
    window_end: datetime,
) -> Tuple[Optional[Event], List[Event], Optional[Event]]:
    """Split events around a window.

    Returns:
        Tuple of (latest event ending at or before the window start,
        events intersecting the window sorted by start,
        earliest event starting at or after the window end)
    """
    before: Optional[Event] = None
    after: Optional[Event] = None
    inside: List[Event] = []
    for event in events:
        if intersects_window(event, window_start, window_end):
            inside.append(event)
            continue
        if event.end <= window_start and (before is None or event.end > before.end):
            before = event
        if event.start >= window_end and (after is None or event.start < after.start):
            after = event
    inside.sort(key=lambda e: e.start)
    return before, inside, after


def adjacent_gaps(
    ordered: Sequence[Event],
    thresholds: Tuple[int, int, int] = DEFAULT_SEVERITY_THRESHOLDS,
    deadline: Optional[Deadline] = None,
) -> List[Gap]:
    """Gaps between each pair of neighbours in an already start-sorted sequence."""
    deadline = ensure(deadline)
    gaps: List[Gap] = []
    for current, following in zip(ordered, ordered[1:]):
        deadline.check()
        gap = make_gap(current, following, thresholds)
        if gap is not None:
            gaps.append(gap)
    return gaps


def sort_gaps(gaps: List[Gap], snapshot: EventSnapshot) -> List[Gap]:
    """Largest first; equal durations by earliest preceding start, then snapshot order."""
    return sorted(
        gaps,
        key=lambda g: (
            -g.duration_minutes,
            g.preceding.start,
            snapshot.position(g.preceding.id),
            snapshot.position(g.succeeding.id),
        ),
    )


def find_gaps(
    snapshot: EventSnapshot,
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
    min_gap_minutes: int = 0,
    thresholds: Tuple[int, int, int] = DEFAULT_SEVERITY_THRESHOLDS,
    deadline: Optional[Deadline] = None,
) -> List[Gap]:
    """Find temporal gaps, largest first.

    Without a window every chronologically adjacent pair in the snapshot
    is examined. With a window, the events intersecting it are examined
    together with the nearest event ending at or before the window start
    and the nearest event starting at or after the window end.

    Args:
        snapshot: Events to analyze
        window_start: Optional window start (requires window_end)
        window_end: Optional window end (requires window_start)
        min_gap_minutes: Drop gaps shorter than this
        thresholds: Severity bucket lower bounds
        deadline: Optional traversal deadline

    Raises:
        InvalidRange: if only one bound is given, or the window is empty or naive.
    """
    if (window_start is None) != (window_end is None):
        raise InvalidRange("Provide both window start and window end, or neither")

    events = snapshot.get_all_events()
    if window_start is None:
        gaps = adjacent_gaps(events, thresholds, deadline)
    else:
        validate_window(window_start, window_end)
        before, inside, after = window_neighbours(events, window_start, window_end)
        ordered = ([before] if before and inside else []) + inside + ([after] if after and inside else [])
        gaps = adjacent_gaps(ordered, thresholds, deadline)

    gaps = [g for g in gaps if g.duration_minutes >= min_gap_minutes]
    return sort_gaps(gaps, snapshot)


def largest_gap(
    snapshot: EventSnapshot,
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
    min_gap_minutes: int = 0,
    thresholds: Tuple[int, int, int] = DEFAULT_SEVERITY_THRESHOLDS,
    deadline: Optional[Deadline] = None,
) -> Optional[Gap]:
    gaps = find_gaps(snapshot, window_start, window_end, min_gap_minutes, thresholds, deadline)
    return gaps[0] if gaps else None


def filter_gaps(
    gaps: List[Gap],
    severity: Optional[Severity] = None,
    limit: Optional[int] = None,
) -> List[Gap]:
    if severity is not None:
        gaps = [g for g in gaps if g.severity == severity]
    if limit is not None:
        gaps = gaps[:limit]
    return gaps


def diff_touching_gaps(original: List[Gap], new: List[Gap], event_id: str) -> List[AffectedGap]:
    """Compare the gaps touching ``event_id`` before and after a change, keyed by event pair."""
    new_touching = {g.key: g for g in new if g.touches(event_id)}
    original_keys = set()
    affected: List[AffectedGap] = []

    for gap in original:
        if not gap.touches(event_id):
            continue
        original_keys.add(gap.key)
        replacement = new_touching.get(gap.key)
        if replacement is None:
            affected.append(AffectedGap("eliminated", original=gap))
        elif replacement.duration_minutes != gap.duration_minutes:
            affected.append(AffectedGap("modified", original=gap, new=replacement))

    for key, gap in new_touching.items():
        if key not in original_keys:
            affected.append(AffectedGap("created", new=gap))
    return affected


def simulate_gap(
    snapshot: EventSnapshot,
    event_id: str,
    new_start: datetime,
    new_end: datetime,
    thresholds: Tuple[int, int, int] = DEFAULT_SEVERITY_THRESHOLDS,
    deadline: Optional[Deadline] = None,
) -> GapSimulation:
    """Recompute global gaps as if one event had a different interval.

    Raises:
        NotFound: if the event is not in the snapshot.
        InvalidInterval: if the hypothetical interval is empty, inverted or naive.
    """
    event = snapshot.require(event_id)
    moved = event.with_interval(new_start, new_end)
    hypothetical = snapshot.replace(moved)

    original_gaps = find_gaps(snapshot, thresholds=thresholds, deadline=deadline)
    new_gaps = find_gaps(hypothetical, thresholds=thresholds, deadline=deadline)
    return GapSimulation(
        event_id=event_id,
        original_gap_count=len(original_gaps),
        new_gap_count=len(new_gaps),
        affected_gaps=diff_touching_gaps(original_gaps, new_gaps, event_id),
    )
