"""Hierarchical and windowed timeline views."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from analytics.deadline import Deadline, ensure
from analytics.intervals import validate_window
from analytics.models import Event
from analytics.snapshot import EventSnapshot


def _node(event: Event) -> Dict[str, Any]:
    node = event.to_dict()
    node["children"] = []
    return node


def build_timeline_tree(
    snapshot: EventSnapshot,
    root_id: str,
    deadline: Optional[Deadline] = None,
) -> Dict[str, Any]:
    """Nested tree of an event and its descendants, children in start order.

    A child already on the branch above it is dropped so cyclic parent
    chains terminate.
    """
    deadline = ensure(deadline)
    root = snapshot.require(root_id)
    root_node = _node(root)
    stack: List[Tuple[Event, Dict[str, Any], Tuple[str, ...]]] = [(root, root_node, (root.id,))]
    while stack:
        deadline.check()
        event, node, path = stack.pop()
        for child in snapshot.get_child_events(event.id):
            if child.id in path:
                continue
            child_node = _node(child)
            node["children"].append(child_node)
            stack.append((child, child_node, path + (child.id,)))
    return root_node


def events_in_window(
    snapshot: EventSnapshot,
    window_start: datetime,
    window_end: datetime,
    descending: bool = False,
) -> List[Event]:
    """Events touching ``[window_start, window_end]``, endpoints included."""
    validate_window(window_start, window_end)
    selected = [e for e in snapshot if e.start <= window_end and e.end >= window_start]
    if descending:
        selected.sort(key=lambda e: e.start, reverse=True)
    return selected
