"""Overlap, gap and path insights."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from analytics.service import TimelineAnalytics
from api.deps import analytics_errors, get_analytics
from api.schemas.gaps import Gap
from api.schemas.insights import OverlapPair, PathResponse

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get("/overlapping-events", response_model=List[OverlapPair])
def get_overlapping_events(
    start_date: datetime,
    end_date: datetime,
    analytics: TimelineAnalytics = Depends(get_analytics),
):
    """Pairs of events that overlap inside the window."""
    with analytics_errors():
        pairs = analytics.find_overlaps(start_date, end_date)
    return [OverlapPair(**p.to_dict()) for p in pairs]


@router.get("/temporal-gaps", response_model=Optional[Gap])
def get_temporal_gap(
    start_date: datetime,
    end_date: datetime,
    min_gap_minutes: int = Query(default=0, ge=0),
    analytics: TimelineAnalytics = Depends(get_analytics),
):
    """Largest gap around the window, or null when there is none."""
    with analytics_errors():
        gap = analytics.largest_gap(start_date, end_date, min_gap_minutes)
    return Gap(**gap.to_dict()) if gap else None


@router.get("/event-influence-path", response_model=PathResponse)
def get_influence_path(
    source_event_id: str,
    target_event_id: str,
    analytics: TimelineAnalytics = Depends(get_analytics),
):
    """Shortest precedence chain from source to target."""
    with analytics_errors():
        result = analytics.shortest_precedence_path(source_event_id, target_event_id)
    return PathResponse(**result.to_dict())


@router.get("/hierarchy-path", response_model=PathResponse)
def get_hierarchy_path(
    source_event_id: str,
    target_event_id: str,
    analytics: TimelineAnalytics = Depends(get_analytics),
):
    """Shortest route through parent/child links."""
    with analytics_errors():
        result = analytics.shortest_hierarchy_path(source_event_id, target_event_id)
    return PathResponse(**result.to_dict())
