"""Temporal gap Pydantic models."""
from typing import List, Optional

from pydantic import AwareDatetime, BaseModel, Field


class GapEventRef(BaseModel):
    event_id: str
    event_name: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class Gap(BaseModel):
    """Idle span between two consecutive events."""

    start_of_gap: str
    end_of_gap: str
    duration_minutes: int
    severity: str
    preceding_event: GapEventRef
    succeeding_event: GapEventRef


class Recommendation(BaseModel):
    type: str
    message: str
    priority: str


class GapStatistics(BaseModel):
    total_gaps: int
    total_gap_minutes: int
    average_gap_minutes: float
    max_gap_minutes: int
    min_gap_minutes: int
    severity_breakdown: dict


class EventGapCount(BaseModel):
    event_id: str
    gap_count: int
    event: dict


class GapAnalysis(BaseModel):
    analysis: GapStatistics
    events_with_most_gaps: List[EventGapCount]
    recommendations: List[Recommendation]


class GapSimulationRequest(BaseModel):
    event_id: str = Field(min_length=1)
    new_start_date: AwareDatetime
    new_end_date: AwareDatetime


class AffectedGap(BaseModel):
    type: str
    original: Optional[Gap] = None
    new: Optional[Gap] = None
    change_minutes: Optional[int] = None


class GapSimulation(BaseModel):
    event_id: str
    original_gap_count: int
    new_gap_count: int
    gap_difference: int
    affected_gaps: List[AffectedGap]
