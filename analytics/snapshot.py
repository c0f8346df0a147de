"""Snapshot provider interface and the immutable in-memory snapshot the analyzers read."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from analytics.errors import NotFound
from analytics.models import Event


class SnapshotProvider(ABC):
    """Source of events for one analysis call.

    Implementations return events in ascending start order; ties keep the
    provider's insertion order. Analyzers never mutate what they receive.
    """

    @abstractmethod
    def get_all_events(self) -> Sequence[Event]:
        pass

    @abstractmethod
    def get_event(self, event_id: str) -> Optional[Event]:
        pass

    @abstractmethod
    def get_child_events(self, parent_id: str) -> Sequence[Event]:
        pass

    def snapshot(self) -> "EventSnapshot":
        """Freeze the provider's current contents for one analysis call."""
        return EventSnapshot(self.get_all_events())


class EventSnapshot(SnapshotProvider):
    """Point-in-time, read-only view over a set of events."""

    def __init__(self, events: Iterable[Event]):
        ordered = sorted(events, key=lambda e: e.start)
        self._events: Tuple[Event, ...] = tuple(ordered)
        self._by_id: Dict[str, Event] = {}
        self._order: Dict[str, int] = {}
        self._children: Dict[str, List[Event]] = {}
        for index, event in enumerate(self._events):
            if event.id in self._by_id:
                raise ValueError(f"Duplicate event id {event.id} in snapshot")
            self._by_id[event.id] = event
            self._order[event.id] = index
            if event.parent_id is not None:
                self._children.setdefault(event.parent_id, []).append(event)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._by_id

    def get_all_events(self) -> Tuple[Event, ...]:
        return self._events

    def get_event(self, event_id: str) -> Optional[Event]:
        return self._by_id.get(event_id)

    def get_child_events(self, parent_id: str) -> Tuple[Event, ...]:
        return tuple(self._children.get(parent_id, ()))

    def get_root_events(self) -> Tuple[Event, ...]:
        return tuple(e for e in self._events if e.parent_id is None)

    def snapshot(self) -> "EventSnapshot":
        return self

    def require(self, event_id: str, role: str = "Event") -> Event:
        event = self._by_id.get(event_id)
        if event is None:
            raise NotFound(event_id, role)
        return event

    def position(self, event_id: str) -> int:
        """Index of the event in snapshot order, used as the final tie-break."""
        return self._order[event_id]

    def replace(self, event: Event) -> "EventSnapshot":
        """Copy of this snapshot with one existing event swapped for ``event``."""
        self.require(event.id)
        return EventSnapshot(event if e.id == event.id else e for e in self._events)
