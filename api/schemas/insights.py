"""Overlap and path Pydantic models."""
from typing import List

from pydantic import BaseModel


class EventSpan(BaseModel):
    event_id: str
    event_name: str
    start_date: str
    end_date: str


class OverlapPair(BaseModel):
    events: List[EventSpan]
    overlap_duration_minutes: int


class PathStep(EventSpan):
    duration_minutes: int


class PathResponse(BaseModel):
    """Shortest chain of events; ``shortest_path`` is empty when none exists."""

    source_event_id: str
    target_event_id: str
    path_type: str
    shortest_path: List[PathStep]
    total_duration_minutes: int
