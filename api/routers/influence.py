"""Influence propagation endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from analytics.service import TimelineAnalytics
from api.deps import analytics_errors, get_analytics
from api.schemas.influence import (
    GlobalInfluence,
    InfluenceNetwork,
    InfluenceResponse,
    InfluenceSimulation,
    InfluenceSimulationRequest,
)

router = APIRouter(prefix="/influence", tags=["influence"])


@router.get("/global-analysis", response_model=GlobalInfluence)
def get_global_analysis(analytics: TimelineAnalytics = Depends(get_analytics)):
    """Total influence of every event, top influencers and distribution."""
    with analytics_errors():
        analysis = analytics.global_influence_analysis()
    return GlobalInfluence(**analysis.to_dict())


@router.post("/simulate", response_model=InfluenceSimulation)
def simulate_influence(
    payload: InfluenceSimulationRequest,
    analytics: TimelineAnalytics = Depends(get_analytics),
):
    """Influence before and after re-parenting one event."""
    with analytics_errors():
        simulation = analytics.simulate_influence(
            payload.event_id, payload.new_parent_id, payload.affected_event_ids
        )
    return InfluenceSimulation(**simulation.to_dict())


@router.get("/{event_id}", response_model=InfluenceResponse)
def get_influence(
    event_id: str,
    max_depth: Optional[int] = Query(default=None, ge=0, le=10),
    analytics: TimelineAnalytics = Depends(get_analytics),
):
    with analytics_errors():
        result, pattern, recommendations = analytics.analyze_influence(event_id, max_depth)
    return InfluenceResponse(
        **result.to_dict(),
        pattern=pattern.to_dict(),
        recommendations=[r.to_dict() for r in recommendations],
    )


@router.get("/{event_id}/network", response_model=InfluenceNetwork)
def get_influence_network(
    event_id: str,
    max_depth: Optional[int] = Query(default=None, ge=0, le=10),
    analytics: TimelineAnalytics = Depends(get_analytics),
):
    with analytics_errors():
        network = analytics.influence_network(event_id, max_depth)
    return InfluenceNetwork(**network.to_dict())
