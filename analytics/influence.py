"""Depth-decayed influence spreading over the parent/child hierarchy."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from analytics.aggregate import (
    InfluencePattern,
    Recommendation,
    global_influence_recommendations,
    influence_distribution,
    influence_pattern,
    influence_recommendations,
    percentage_change,
    population_variance,
    simulation_recommendations,
)
from analytics.config import AnalyticsSettings
from analytics.deadline import Deadline, ensure
from analytics.errors import NotFound
from analytics.models import Event
from analytics.paths import hierarchy_neighbours
from analytics.snapshot import EventSnapshot

logger = logging.getLogger(__name__)


@dataclass
class InfluenceRecord:
    event: Event
    depth: int
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event.id,
            "event_name": self.event.name,
            "depth": self.depth,
            "influence": self.score,
        }


@dataclass
class InfluenceResult:
    source: Event
    max_depth: int
    decay_factor: float
    records: List[InfluenceRecord] = field(default_factory=list)

    @property
    def scores(self) -> List[float]:
        return [r.score for r in self.records]

    @property
    def total_influence(self) -> float:
        return sum(self.scores)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_event": self.source.to_dict(),
            "max_depth": self.max_depth,
            "decay_factor": self.decay_factor,
            "influence_map": [r.to_dict() for r in self.records],
            "total_influence": self.total_influence,
        }


@dataclass
class GlobalInfluence:
    totals: List[Tuple[Event, float]]
    top_influencers: List[Tuple[Event, float]]
    distribution: Dict[str, int]
    variance: float
    recommendations: List[Recommendation] = field(default_factory=list)

    @property
    def values(self) -> List[float]:
        return [total for _, total in self.totals]

    def to_dict(self) -> Dict[str, Any]:
        values = self.values
        return {
            "total_events": len(self.totals),
            "top_influencers": [
                {"event_id": e.id, "influence": total, "event": e.to_dict()}
                for e, total in self.top_influencers
            ],
            "influence_distribution": self.distribution,
            "statistics": {
                "average_influence": sum(values) / len(values) if values else 0.0,
                "max_influence": max(values) if values else 0.0,
                "min_influence": min(values) if values else 0.0,
                "influence_variance": self.variance,
            },
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


@dataclass
class ImpactRecord:
    event_id: str
    original_influence: float
    new_influence: float

    @property
    def change(self) -> float:
        return self.new_influence - self.original_influence

    @property
    def change_percentage(self) -> Optional[float]:
        return percentage_change(self.original_influence, self.new_influence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "original_influence": self.original_influence,
            "new_influence": self.new_influence,
            "change": self.change,
            "change_percentage": self.change_percentage,
        }


@dataclass
class InfluenceSimulation:
    event_id: str
    new_parent_id: Optional[str]
    original_influence: float
    new_influence: float
    impact_analysis: List[ImpactRecord] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)

    @property
    def influence_change(self) -> float:
        return self.new_influence - self.original_influence

    @property
    def influence_change_percentage(self) -> Optional[float]:
        return percentage_change(self.original_influence, self.new_influence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "simulation": {
                "event_id": self.event_id,
                "new_parent_id": self.new_parent_id,
                "original_influence": self.original_influence,
                "new_influence": self.new_influence,
                "influence_change": self.influence_change,
                "influence_change_percentage": self.influence_change_percentage,
            },
            "impact_analysis": [i.to_dict() for i in self.impact_analysis],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def compute_influence(
    snapshot: EventSnapshot,
    event_id: str,
    max_depth: int = 3,
    decay_factor: float = 0.7,
    deadline: Optional[Deadline] = None,
) -> InfluenceResult:
    """Spread influence from an event through its children and parents.

    The source sits at depth 0 and every event reached at depth ``d``
    scores ``decay_factor ** d``. Traversal uses an explicit stack; each
    branch carries its own tuple of visited ids so a cyclic parent chain
    stops that branch instead of looping. An event reachable along several
    branches keeps its best score.

    Args:
        snapshot: Events to traverse
        event_id: Source event id
        max_depth: Deepest level to score (0 scores only the source)
        decay_factor: Per-level multiplier in (0, 1]
        deadline: Optional traversal deadline

    Returns:
        InfluenceResult with records ordered by depth, then start time

    Raises:
        NotFound: if the source event is not in the snapshot.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")
    if not 0 < decay_factor <= 1:
        raise ValueError(f"decay_factor must be in (0, 1], got {decay_factor}")
    deadline = ensure(deadline)
    source = snapshot.require(event_id)

    best: Dict[str, Tuple[float, int]] = {}
    stack: List[Tuple[str, int, Tuple[str, ...]]] = [(source.id, 0, (source.id,))]
    while stack:
        deadline.check()
        current, depth, path = stack.pop()
        score = decay_factor ** depth
        if current not in best or score > best[current][0]:
            best[current] = (score, depth)
        if depth >= max_depth:
            continue
        for neighbour in reversed(hierarchy_neighbours(snapshot, current)):
            if neighbour not in path:
                stack.append((neighbour, depth + 1, path + (neighbour,)))

    records = [
        InfluenceRecord(snapshot.require(i), depth, score)
        for i, (score, depth) in best.items()
    ]
    records.sort(key=lambda r: (r.depth, r.event.start, snapshot.position(r.event.id)))
    return InfluenceResult(source, max_depth, decay_factor, records)


def analyze_influence(
    result: InfluenceResult,
    settings: AnalyticsSettings,
) -> Tuple[InfluencePattern, List[Recommendation]]:
    pattern = influence_pattern(result.scores, settings.high_ratio, settings.medium_ratio)
    return pattern, influence_recommendations(pattern, settings.policy)


def _total_influence(
    snapshot: EventSnapshot,
    event: Event,
    settings: AnalyticsSettings,
    deadline: Deadline,
) -> Optional[float]:
    try:
        result = compute_influence(snapshot, event.id, settings.influence_depth, settings.decay_factor, deadline)
    except NotFound as exc:
        logger.warning("Failed to calculate influence for event %s: %s", event.id, exc)
        return None
    return result.total_influence


def global_influence_analysis(
    snapshot: EventSnapshot,
    settings: AnalyticsSettings,
    deadline: Optional[Deadline] = None,
) -> GlobalInfluence:
    """Total influence of every event, ranked and bucketed.

    Per-event computations are independent and fan out on a thread pool;
    results are collected back in snapshot order. An event whose
    computation fails is logged and left out.
    """
    deadline = ensure(deadline)
    events = snapshot.get_all_events()
    with ThreadPoolExecutor(max_workers=settings.max_workers) as executor:
        futures = [
            executor.submit(_total_influence, snapshot, event, settings, deadline)
            for event in events
        ]
        totals = [
            (event, future.result())
            for event, future in zip(events, futures)
        ]
    totals = [(event, total) for event, total in totals if total is not None]

    values = [total for _, total in totals]
    distribution = influence_distribution(values, settings.high_ratio, settings.medium_ratio)
    top = sorted(totals, key=lambda item: item[1], reverse=True)[:settings.top_n]
    return GlobalInfluence(
        totals=totals,
        top_influencers=top,
        distribution=distribution,
        variance=population_variance(values),
        recommendations=global_influence_recommendations(distribution, len(events), settings.policy),
    )


@dataclass
class NetworkNode:
    id: str
    label: str
    group: str
    influence: float


@dataclass
class NetworkEdge:
    source: str
    target: str
    weight: float
    label: str


@dataclass
class InfluenceNetwork:
    nodes: List[NetworkNode]
    edges: List[NetworkEdge]

    def to_dict(self) -> Dict[str, Any]:
        influenced = [n.influence for n in self.nodes if n.group == "influenced"]
        return {
            "network": {
                "nodes": [vars(n) for n in self.nodes],
                "edges": [vars(e) for e in self.edges],
            },
            "metadata": {
                "total_nodes": len(self.nodes),
                "total_edges": len(self.edges),
                "max_influence": max(influenced) if influenced else 0.0,
                "min_influence": min(influenced) if influenced else 0.0,
            },
        }


def influence_network(result: InfluenceResult) -> InfluenceNetwork:
    """Star-shaped visualisation: the source linked to every event it influences."""
    nodes = [NetworkNode(result.source.id, result.source.name, "source", 1.0)]
    edges: List[NetworkEdge] = []
    for record in result.records:
        if record.event.id == result.source.id:
            continue
        nodes.append(NetworkNode(record.event.id, record.event.name, "influenced", record.score))
        edges.append(NetworkEdge(result.source.id, record.event.id, record.score, f"{record.score:.2f}"))
    return InfluenceNetwork(nodes, edges)


def simulate_influence(
    snapshot: EventSnapshot,
    event_id: str,
    new_parent_id: Optional[str],
    affected_event_ids: Sequence[str],
    settings: AnalyticsSettings,
    deadline: Optional[Deadline] = None,
) -> InfluenceSimulation:
    """Compare influence before and after hypothetically re-parenting one event.

    Affected events missing from the snapshot are logged and skipped.

    Raises:
        NotFound: if the event or the new parent is not in the snapshot.
    """
    deadline = ensure(deadline)
    event = snapshot.require(event_id)
    if new_parent_id is not None:
        snapshot.require(new_parent_id, "Parent event")
    hypothetical = snapshot.replace(event.with_parent(new_parent_id))

    def total(view: EventSnapshot, source_id: str) -> float:
        return compute_influence(
            view, source_id, settings.influence_depth, settings.decay_factor, deadline
        ).total_influence

    original = total(snapshot, event_id)
    new = total(hypothetical, event_id)

    impacts: List[ImpactRecord] = []
    for affected_id in affected_event_ids:
        if affected_id not in snapshot:
            logger.warning("Skipping impact for unknown event %s", affected_id)
            continue
        impacts.append(ImpactRecord(affected_id, total(snapshot, affected_id), total(hypothetical, affected_id)))

    return InfluenceSimulation(
        event_id=event_id,
        new_parent_id=new_parent_id,
        original_influence=original,
        new_influence=new,
        impact_analysis=impacts,
        recommendations=simulation_recommendations(original, new, settings.policy),
    )
