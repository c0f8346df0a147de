"""Temporal gap endpoints."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from analytics.models import Severity
from analytics.service import TimelineAnalytics
from api.deps import analytics_errors, get_analytics
from api.schemas.gaps import Gap, GapAnalysis, GapSimulation, GapSimulationRequest

router = APIRouter(prefix="/gaps", tags=["gaps"])


@router.get("", response_model=List[Gap])
def get_gaps(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    min_gap_minutes: int = Query(default=0, ge=0),
    severity: Optional[Severity] = None,
    limit: Optional[int] = Query(default=None, ge=1),
    analytics: TimelineAnalytics = Depends(get_analytics),
):
    """Gaps largest first; pass both window bounds or neither."""
    with analytics_errors():
        gaps = analytics.find_gaps(start_date, end_date, min_gap_minutes, severity, limit)
    return [Gap(**g.to_dict()) for g in gaps]


@router.get("/largest", response_model=Gap)
def get_largest_gap(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    min_gap_minutes: int = Query(default=0, ge=0),
    analytics: TimelineAnalytics = Depends(get_analytics),
):
    with analytics_errors():
        gap = analytics.largest_gap(start_date, end_date, min_gap_minutes)
    if gap is None:
        raise HTTPException(status_code=404, detail="No temporal gaps found in the specified time range")
    return Gap(**gap.to_dict())


@router.get("/critical", response_model=List[Gap])
def get_critical_gaps(analytics: TimelineAnalytics = Depends(get_analytics)):
    with analytics_errors():
        gaps = analytics.find_critical_gaps()
    return [Gap(**g.to_dict()) for g in gaps]


@router.get("/analysis", response_model=GapAnalysis)
def get_gap_analysis(analytics: TimelineAnalytics = Depends(get_analytics)):
    """Statistics, the events bordering most gaps and recommendations."""
    with analytics_errors():
        analysis = analytics.analyze_gaps(analytics.settings.top_n)
    return GapAnalysis(**analysis.to_dict())


@router.post("/simulate", response_model=GapSimulation)
def simulate_gap(payload: GapSimulationRequest, analytics: TimelineAnalytics = Depends(get_analytics)):
    """How gaps would change if one event moved to a new interval."""
    with analytics_errors():
        simulation = analytics.simulate_gap(payload.event_id, payload.new_start_date, payload.new_end_date)
    return GapSimulation(**simulation.to_dict())
