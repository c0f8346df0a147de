"""Event-related Pydantic models."""
from typing import Any, Dict, List, Optional

from pydantic import AwareDatetime, BaseModel, Field


class Event(BaseModel):
    """A stored event with its derived duration."""

    event_id: str
    event_name: str
    start_date: str
    end_date: str
    parent_event_id: Optional[str] = None
    description: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    duration_minutes: int


class EventCreate(BaseModel):
    """Payload for creating an event. Timestamps must carry an offset."""

    event_id: Optional[str] = None
    event_name: str = Field(min_length=1)
    start_date: AwareDatetime
    end_date: AwareDatetime
    parent_event_id: Optional[str] = None
    description: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)


class EventUpdate(BaseModel):
    """Partial update; only the fields sent are changed."""

    event_name: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[AwareDatetime] = None
    end_date: Optional[AwareDatetime] = None
    parent_event_id: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class EventsResponse(BaseModel):
    """Paginated response for events."""

    events: List[Event]
    total: int
    page: int
    page_size: int
    total_pages: int


class DateRange(BaseModel):
    earliest: Optional[str] = None
    latest: Optional[str] = None


class EventStatistics(BaseModel):
    total_events: int
    total_duration: int
    average_duration: float
    total_gaps: int
    gaps_by_severity: Dict[str, int]
    date_range: DateRange
