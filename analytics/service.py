"""Facade exposing the analytics operations over a snapshot provider.

Every call takes exactly one snapshot from the provider and works on it
alone, so concurrent calls never observe each other.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from analytics import gaps as gap_finder
from analytics import influence as spreader
from analytics import paths
from analytics.aggregate import (
    GapStatistics,
    InfluencePattern,
    Recommendation,
    events_with_most_gaps,
    gap_recommendations,
    gap_statistics,
    severity_breakdown,
)
from analytics.config import AnalyticsSettings, load_settings
from analytics.gaps import Gap, GapSimulation
from analytics.influence import GlobalInfluence, InfluenceNetwork, InfluenceResult, InfluenceSimulation
from analytics.models import Event, Severity, iso
from analytics.overlaps import OverlapPair, find_overlaps
from analytics.paths import PathResult
from analytics.snapshot import EventSnapshot, SnapshotProvider
from analytics.timeline import build_timeline_tree, events_in_window

logger = logging.getLogger(__name__)


@dataclass
class GapAnalysis:
    statistics: GapStatistics
    events_with_most_gaps: List[Tuple[Event, int]]
    recommendations: List[Recommendation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis": self.statistics.to_dict(),
            "events_with_most_gaps": [
                {"event_id": e.id, "gap_count": count, "event": e.to_dict()}
                for e, count in self.events_with_most_gaps
            ],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


class TimelineAnalytics:
    """Temporal analytics over events supplied by a ``SnapshotProvider``."""

    def __init__(self, provider: SnapshotProvider, settings: Optional[AnalyticsSettings] = None):
        self.provider = provider
        self.settings = settings if settings is not None else load_settings()

    def _snapshot(self) -> EventSnapshot:
        return self.provider.snapshot()

    @property
    def thresholds(self) -> Tuple[int, int, int]:
        return self.settings.severity_thresholds

    # Overlaps

    def find_overlaps(self, window_start: datetime, window_end: datetime) -> List[OverlapPair]:
        return find_overlaps(self._snapshot(), window_start, window_end, self.settings.new_deadline())

    # Gaps

    def find_gaps(
        self,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
        min_gap_minutes: int = 0,
        severity: Optional[Severity] = None,
        limit: Optional[int] = None,
    ) -> List[Gap]:
        found = gap_finder.find_gaps(
            self._snapshot(),
            window_start,
            window_end,
            min_gap_minutes,
            self.thresholds,
            self.settings.new_deadline(),
        )
        return gap_finder.filter_gaps(found, severity, limit)

    def largest_gap(
        self,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
        min_gap_minutes: int = 0,
    ) -> Optional[Gap]:
        return gap_finder.largest_gap(
            self._snapshot(),
            window_start,
            window_end,
            min_gap_minutes,
            self.thresholds,
            self.settings.new_deadline(),
        )

    def find_critical_gaps(self) -> List[Gap]:
        return self.find_gaps(severity=Severity.CRITICAL)

    def find_gaps_in_windows(
        self,
        windows: Sequence[Tuple[datetime, datetime]],
        min_gap_minutes: int = 0,
    ) -> List[List[Gap]]:
        """Gap analysis for several windows over one snapshot, fanned out on a thread pool."""
        snapshot = self._snapshot()
        deadline = self.settings.new_deadline()
        with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
            futures = [
                executor.submit(
                    gap_finder.find_gaps, snapshot, start, end, min_gap_minutes, self.thresholds, deadline
                )
                for start, end in windows
            ]
            return [future.result() for future in futures]

    def analyze_gaps(self, top_n: int = 10) -> GapAnalysis:
        found = gap_finder.find_gaps(self._snapshot(), thresholds=self.thresholds,
                                     deadline=self.settings.new_deadline())
        return GapAnalysis(
            statistics=gap_statistics(found),
            events_with_most_gaps=events_with_most_gaps(found, top_n),
            recommendations=gap_recommendations(found, self.settings.policy),
        )

    def simulate_gap(self, event_id: str, new_start: datetime, new_end: datetime) -> GapSimulation:
        simulation = gap_finder.simulate_gap(
            self._snapshot(), event_id, new_start, new_end, self.thresholds, self.settings.new_deadline()
        )
        logger.info(
            "Simulated moving %s: %d -> %d gaps, %d affected",
            event_id, simulation.original_gap_count, simulation.new_gap_count, len(simulation.affected_gaps),
        )
        return simulation

    # Paths

    def shortest_precedence_path(self, source_id: str, target_id: str) -> PathResult:
        return paths.shortest_precedence_path(
            self._snapshot(), source_id, target_id, deadline=self.settings.new_deadline()
        )

    def shortest_hierarchy_path(self, source_id: str, target_id: str) -> PathResult:
        return paths.shortest_hierarchy_path(
            self._snapshot(), source_id, target_id, deadline=self.settings.new_deadline()
        )

    # Influence

    def compute_influence(self, event_id: str, max_depth: Optional[int] = None) -> InfluenceResult:
        depth = self.settings.influence_depth if max_depth is None else max_depth
        return spreader.compute_influence(
            self._snapshot(), event_id, depth, self.settings.decay_factor, self.settings.new_deadline()
        )

    def analyze_influence(
        self, event_id: str, max_depth: Optional[int] = None
    ) -> Tuple[InfluenceResult, InfluencePattern, List[Recommendation]]:
        result = self.compute_influence(event_id, max_depth)
        pattern, recommendations = spreader.analyze_influence(result, self.settings)
        return result, pattern, recommendations

    def global_influence_analysis(self) -> GlobalInfluence:
        return spreader.global_influence_analysis(self._snapshot(), self.settings, self.settings.new_deadline())

    def influence_network(self, event_id: str, max_depth: Optional[int] = None) -> InfluenceNetwork:
        depth = self.settings.network_depth if max_depth is None else max_depth
        return spreader.influence_network(self.compute_influence(event_id, depth))

    def simulate_influence(
        self,
        event_id: str,
        new_parent_id: Optional[str],
        affected_event_ids: Sequence[str] = (),
    ) -> InfluenceSimulation:
        return spreader.simulate_influence(
            self._snapshot(), event_id, new_parent_id, affected_event_ids,
            self.settings, self.settings.new_deadline(),
        )

    # Timeline

    def timeline_tree(self, root_id: str) -> Dict[str, Any]:
        return build_timeline_tree(self._snapshot(), root_id, self.settings.new_deadline())

    def timeline_window(
        self, window_start: datetime, window_end: datetime, descending: bool = False
    ) -> List[Event]:
        return events_in_window(self._snapshot(), window_start, window_end, descending)

    def statistics(self) -> Dict[str, Any]:
        """Collection totals plus a severity breakdown of the global gaps."""
        snapshot = self._snapshot()
        durations = [e.duration_minutes for e in snapshot]
        found = gap_finder.find_gaps(snapshot, thresholds=self.thresholds,
                                     deadline=self.settings.new_deadline())
        events = snapshot.get_all_events()
        return {
            "total_events": len(events),
            "total_duration": sum(durations),
            "average_duration": sum(durations) / len(durations) if durations else 0.0,
            "total_gaps": len(found),
            "gaps_by_severity": severity_breakdown(found),
            "date_range": {
                "earliest": iso(min(e.start for e in events)) if events else None,
                "latest": iso(max(e.end for e in events)) if events else None,
            },
        }
