"""Timeline endpoints."""
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query

from analytics.service import TimelineAnalytics
from api.deps import analytics_errors, get_analytics
from api.schemas.events import Event
from api.schemas.timeline import TimelineNode

router = APIRouter(prefix="/timeline", tags=["timeline"])


@router.get("", response_model=List[Event])
def get_timeline_window(
    start_date: datetime,
    end_date: datetime,
    order: str = Query(default="asc", enum=["asc", "desc"]),
    analytics: TimelineAnalytics = Depends(get_analytics),
):
    """Events touching the window, endpoints included."""
    with analytics_errors():
        events = analytics.timeline_window(start_date, end_date, descending=order == "desc")
    return [Event(**e.to_dict()) for e in events]


@router.get("/{root_id}", response_model=TimelineNode)
def get_timeline_tree(root_id: str, analytics: TimelineAnalytics = Depends(get_analytics)):
    """The event hierarchy under ``root_id``."""
    with analytics_errors():
        return TimelineNode.model_validate(analytics.timeline_tree(root_id))
