"""Pydantic schemas for API request/response models."""
from api.schemas.events import Event, EventCreate, EventsResponse, EventStatistics, EventUpdate
from api.schemas.gaps import Gap, GapAnalysis, GapSimulation, GapSimulationRequest, Recommendation
from api.schemas.influence import (
    GlobalInfluence,
    InfluenceNetwork,
    InfluenceResponse,
    InfluenceSimulation,
    InfluenceSimulationRequest,
)
from api.schemas.ingest import IngestAccepted, IngestionStatus, IngestRequest
from api.schemas.insights import OverlapPair, PathResponse
from api.schemas.timeline import TimelineNode

__all__ = [
    "Event",
    "EventCreate",
    "EventUpdate",
    "EventsResponse",
    "EventStatistics",
    "Gap",
    "GapAnalysis",
    "GapSimulation",
    "GapSimulationRequest",
    "Recommendation",
    "GlobalInfluence",
    "InfluenceNetwork",
    "InfluenceResponse",
    "InfluenceSimulation",
    "InfluenceSimulationRequest",
    "IngestAccepted",
    "IngestionStatus",
    "IngestRequest",
    "OverlapPair",
    "PathResponse",
    "TimelineNode",
]
