"""Temporal analytics over event snapshots: gaps, overlaps, precedence paths, influence."""
from analytics.errors import (
    AnalysisTimeout,
    AnalyticsError,
    InvalidInterval,
    InvalidRange,
    NotFound,
)
from analytics.gaps import Gap
from analytics.models import Event, Severity
from analytics.overlaps import OverlapPair
from analytics.service import TimelineAnalytics

__all__ = [
    "AnalysisTimeout",
    "AnalyticsError",
    "InvalidInterval",
    "InvalidRange",
    "NotFound",
    "Event",
    "Gap",
    "OverlapPair",
    "Severity",
    "TimelineAnalytics",
]
