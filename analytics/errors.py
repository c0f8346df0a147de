"""Typed failures raised by the analytics core."""
from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for analytics failures."""


class NotFound(AnalyticsError):
    """An operation referenced an event id absent from the snapshot."""

    def __init__(self, event_id: str, role: str = "Event"):
        self.event_id = event_id
        self.role = role
        super().__init__(f"{role} {event_id} not found")


class InvalidInterval(AnalyticsError):
    """An event (real or hypothetical) has end <= start or a naive timestamp."""


class InvalidRange(AnalyticsError):
    """A query window has end <= start."""


class AnalysisTimeout(AnalyticsError):
    """A traversal exceeded its deadline."""
