"""Influence propagation Pydantic models."""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from api.schemas.events import Event
from api.schemas.gaps import Recommendation


class InfluenceRecord(BaseModel):
    event_id: str
    event_name: str
    depth: int
    influence: float


class InfluencePattern(BaseModel):
    max_influence: float
    min_influence: float
    average_influence: float
    influence_range: float
    influence_variance: float
    distribution: Dict[str, int]


class InfluenceResponse(BaseModel):
    source_event: Event
    max_depth: int
    decay_factor: float
    influence_map: List[InfluenceRecord]
    total_influence: float
    pattern: InfluencePattern
    recommendations: List[Recommendation]


class TopInfluencer(BaseModel):
    event_id: str
    influence: float
    event: Event


class InfluenceStatistics(BaseModel):
    average_influence: float
    max_influence: float
    min_influence: float
    influence_variance: float


class GlobalInfluence(BaseModel):
    total_events: int
    top_influencers: List[TopInfluencer]
    influence_distribution: Dict[str, int]
    statistics: InfluenceStatistics
    recommendations: List[Recommendation]


class NetworkNode(BaseModel):
    id: str
    label: str
    group: str
    influence: float


class NetworkEdge(BaseModel):
    source: str
    target: str
    weight: float
    label: str


class NetworkGraph(BaseModel):
    nodes: List[NetworkNode]
    edges: List[NetworkEdge]


class NetworkMetadata(BaseModel):
    total_nodes: int
    total_edges: int
    max_influence: float
    min_influence: float


class InfluenceNetwork(BaseModel):
    network: NetworkGraph
    metadata: NetworkMetadata


class InfluenceSimulationRequest(BaseModel):
    """Re-parent ``event_id`` under ``new_parent_id`` (null detaches it)."""

    event_id: str = Field(min_length=1)
    new_parent_id: Optional[str] = None
    affected_event_ids: List[str] = Field(default_factory=list)


class SimulationSummary(BaseModel):
    event_id: str
    new_parent_id: Optional[str] = None
    original_influence: float
    new_influence: float
    influence_change: float
    influence_change_percentage: Optional[float] = None


class ImpactRecord(BaseModel):
    event_id: str
    original_influence: float
    new_influence: float
    change: float
    change_percentage: Optional[float] = None


class InfluenceSimulation(BaseModel):
    simulation: SimulationSummary
    impact_analysis: List[ImpactRecord]
    recommendations: List[Recommendation]
