"""Shortest chains between events over the precedence graph or the parent/child hierarchy."""
from __future__ import annotations

from bisect import bisect_left
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from analytics.deadline import Deadline, ensure
from analytics.models import Event, iso
from analytics.snapshot import EventSnapshot

PRECEDENCE = "precedence"
HIERARCHY = "hierarchy"


@dataclass
class PathStep:
    event: Event

    @property
    def duration_minutes(self) -> int:
        return self.event.duration_minutes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event.id,
            "event_name": self.event.name,
            "start_date": iso(self.event.start),
            "end_date": iso(self.event.end),
            "duration_minutes": self.duration_minutes,
        }


@dataclass
class PathResult:
    """Ordered chain of events from source to target; empty when unreachable."""
    kind: str
    source_id: str
    target_id: str
    steps: List[PathStep] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.steps)

    @property
    def event_ids(self) -> List[str]:
        return [step.event.id for step in self.steps]

    @property
    def total_duration_minutes(self) -> int:
        # Sum of the events' own durations, not the wall-clock span of the chain.
        return sum(step.duration_minutes for step in self.steps)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_event_id": self.source_id,
            "target_event_id": self.target_id,
            "path_type": self.kind,
            "shortest_path": [step.to_dict() for step in self.steps],
            "total_duration_minutes": self.total_duration_minutes,
        }


class PrecedenceGraph:
    """Directed graph with an edge A -> B whenever A ends no later than B starts.

    Successor lists are derived on demand from a start-sorted index with a
    binary search, so the graph costs O(n log n) to build; enumerating every
    edge via ``adjacency()`` is still O(n^2) since the relation is dense.
    Successors are yielded in snapshot order, which is what BFS tie-breaks
    on. Build once and reuse for repeated queries over the same snapshot.
    """

    def __init__(self, events: Iterable[Event]):
        self._ordered: List[Event] = sorted(events, key=lambda e: e.start)
        self._starts = [e.start for e in self._ordered]
        self._by_id: Dict[str, Event] = {e.id: e for e in self._ordered}

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._by_id

    def successors(self, event_id: str) -> List[Event]:
        event = self._by_id[event_id]
        first = bisect_left(self._starts, event.end)
        return [e for e in self._ordered[first:] if e.id != event_id]

    def has_edge(self, source_id: str, target_id: str) -> bool:
        if source_id == target_id:
            return False
        return self._by_id[source_id].end <= self._by_id[target_id].start

    def adjacency(self) -> Dict[str, List[str]]:
        return {e.id: [s.id for s in self.successors(e.id)] for e in self._ordered}

    def edge_count(self) -> int:
        # An event never succeeds itself since start < end.
        return sum(len(self._ordered) - bisect_left(self._starts, e.end) for e in self._ordered)


def breadth_first_path(
    source_id: str,
    target_id: str,
    neighbours: Callable[[str], Sequence[str]],
    deadline: Optional[Deadline] = None,
) -> List[str]:
    """Fewest-edge path of ids from source to target, or [] if unreachable.

    Each queue entry carries its path so far; the visited set is seeded with
    the source and extended on enqueue, so the first path that dequeues the
    target is shortest and ties follow neighbour order.
    """
    deadline = ensure(deadline)
    queue: Deque[Tuple[str, List[str]]] = deque([(source_id, [source_id])])
    visited: Set[str] = {source_id}

    while queue:
        deadline.check()
        current, path = queue.popleft()
        if current == target_id:
            return path
        for neighbour in neighbours(current):
            if neighbour not in visited:
                visited.add(neighbour)
                queue.append((neighbour, path + [neighbour]))
    return []


def shortest_precedence_path(
    snapshot: EventSnapshot,
    source_id: str,
    target_id: str,
    graph: Optional[PrecedenceGraph] = None,
    deadline: Optional[Deadline] = None,
) -> PathResult:
    """Shortest chain where each event ends no later than the next one starts.

    Raises:
        NotFound: if either event is not in the snapshot.
    """
    snapshot.require(source_id, "Source event")
    snapshot.require(target_id, "Target event")
    if graph is None:
        graph = PrecedenceGraph(snapshot.get_all_events())

    ids = breadth_first_path(
        source_id,
        target_id,
        lambda event_id: [e.id for e in graph.successors(event_id)],
        deadline,
    )
    return PathResult(PRECEDENCE, source_id, target_id, [PathStep(snapshot.require(i)) for i in ids])


def hierarchy_neighbours(snapshot: EventSnapshot, event_id: str) -> List[str]:
    """Children in snapshot order, then the parent when it is part of the snapshot."""
    neighbours = [child.id for child in snapshot.get_child_events(event_id)]
    event = snapshot.require(event_id)
    if event.parent_id is not None and event.parent_id in snapshot and event.parent_id not in neighbours:
        neighbours.append(event.parent_id)
    return neighbours


def shortest_hierarchy_path(
    snapshot: EventSnapshot,
    source_id: str,
    target_id: str,
    deadline: Optional[Deadline] = None,
) -> PathResult:
    """Shortest chain of parent/child links, walking both down and up the hierarchy.

    Raises:
        NotFound: if either event is not in the snapshot.
    """
    snapshot.require(source_id, "Source event")
    snapshot.require(target_id, "Target event")
    ids = breadth_first_path(
        source_id,
        target_id,
        lambda event_id: hierarchy_neighbours(snapshot, event_id),
        deadline,
    )
    return PathResult(HIERARCHY, source_id, target_id, [PathStep(snapshot.require(i)) for i in ids])
