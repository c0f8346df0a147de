"""Typed event record and the severity classification used across the analytics."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from analytics.errors import InvalidInterval
from analytics.intervals import minutes

# Lower bounds (minutes) of the medium, high and critical buckets.
DEFAULT_SEVERITY_THRESHOLDS: Tuple[int, int, int] = (30, 120, 480)


def iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


class Severity(str, Enum):
    """Coarse bucket for a gap's duration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def classify(
        cls,
        duration_minutes: int,
        thresholds: Tuple[int, int, int] = DEFAULT_SEVERITY_THRESHOLDS,
    ) -> "Severity":
        medium, high, critical = thresholds
        if duration_minutes < medium:
            return cls.LOW
        if duration_minutes < high:
            return cls.MEDIUM
        if duration_minutes < critical:
            return cls.HIGH
        return cls.CRITICAL


@dataclass(frozen=True)
class Event:
    """A named time interval, optionally parented to another event.

    Validated once on construction: the id must be non-empty, both
    timestamps must carry a timezone offset and ``end`` must be strictly
    after ``start``. Analyzers rely on these guarantees and never
    re-check them.
    """

    id: str
    name: str
    start: datetime
    end: datetime
    parent_id: Optional[str] = None
    description: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.id:
            raise InvalidInterval("Event id must not be empty")
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InvalidInterval(f"Event {self.id} timestamps must carry a timezone offset")
        if self.end <= self.start:
            raise InvalidInterval(
                f"Event {self.id} ends at {iso(self.end)}, not after its start {iso(self.start)}"
            )

    @property
    def duration_minutes(self) -> int:
        return minutes(self.end - self.start)

    def with_interval(self, start: datetime, end: datetime) -> "Event":
        return replace(self, start=start, end=end)

    def with_parent(self, parent_id: Optional[str]) -> "Event":
        return replace(self, parent_id=parent_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.id,
            "event_name": self.name,
            "start_date": iso(self.start),
            "end_date": iso(self.end),
            "parent_event_id": self.parent_id,
            "description": self.description,
            "metadata": dict(self.metadata),
            "duration_minutes": self.duration_minutes,
        }
