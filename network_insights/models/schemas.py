"""
Pydantic request/response models for the Network Insights backend.

Field names are snake_case in Python and camelCase on the wire (for example
``active_clients`` is serialized as ``activeClients``), matching what the
dashboard frontend consumes. Models accept either spelling on input.

Groups:
- Licensee records and hierarchy nodes
- Aggregated metrics, rankings and dashboard KPIs
- Derived insights (churn risk, state clusters, performance score)
- Assistant chat and insight payloads
- Listing, sync and health responses

All models use Pydantic v2 syntax.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from network_insights.models.enums import (
    ChatIntent,
    GraduationTier,
    InsightPriority,
    InsightType,
    LicenseeStatus,
    RiskLabel,
    SortDirection,
    StateCluster,
)


class CamelModel(BaseModel):
    """Base model serializing field names in camelCase."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Licensee Records
# =============================================================================


class LicenseeRecord(CamelModel):
    """
    One licensee after field normalization.

    A sponsor_code of None (or the sentinel 0) marks a root of the sponsor
    forest. A sponsor_code that does not resolve to any record also makes the
    record a root; that is not an error.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "code": 1001,
                "name": "Maria Silva",
                "status": "active",
                "activeClients": 42,
                "telecomClients": 7,
                "activeLicensees": 3,
                "graduation": "Gestor",
                "graduationTier": "MANAGER",
                "sponsorCode": 1,
                "sponsorName": "Root Licensee",
                "city": "Campinas",
                "stateCode": "SP",
                "activationDate": "2023-04-01T00:00:00",
            }
        },
    )

    code: int = Field(..., description="Unique licensee code")
    name: str = Field(default="", description="Display name")
    status: LicenseeStatus = Field(default=LicenseeStatus.ACTIVE)
    active_clients: int = Field(default=0, ge=0)
    telecom_clients: int = Field(default=0, ge=0)
    active_licensees: int = Field(
        default=0,
        ge=0,
        description="Active downstream recruits",
    )
    graduation: str = Field(default="", description="Raw graduation label")
    graduation_tier: GraduationTier = Field(default=GraduationTier.CONSULTANT)
    sponsor_code: Optional[int] = Field(default=None)
    sponsor_name: Optional[str] = Field(default=None)
    city: str = Field(default="")
    state_code: str = Field(default="")
    activation_date: Optional[datetime] = Field(default=None)

    @property
    def is_active(self) -> bool:
        return self.status == LicenseeStatus.ACTIVE

    @property
    def has_sponsor(self) -> bool:
        return self.sponsor_code is not None and self.sponsor_code != 0


class HierarchyNode(LicenseeRecord):
    """A licensee placed in a sponsor tree. The root is at level 0."""
    level: int = Field(default=0, ge=0)
    children: List["HierarchyNode"] = Field(default_factory=list)


class NetworkMember(CamelModel):
    """
    Flat row of the network view used by the force-directed visualization.

    The sponsor of the requested root, when included, sits at level -1.
    """
    code: int
    name: str
    level: int
    sponsor_code: Optional[int] = None
    status: LicenseeStatus
    graduation: str = ""
    graduation_tier: GraduationTier
    active_clients: int = 0
    telecom_clients: int = 0
    city: str = ""
    state_code: str = ""
    is_root: bool = False


class HierarchyResponse(CamelModel):
    """
    Sponsor tree of one root.

    Trees deeper than the nesting limit come back with flattened=true: tree is
    null and nodes lists every member in pre-order with level and sponsorCode.
    """
    root_code: int
    found: bool
    depth: Optional[int] = None
    total_nodes: int = 0
    tree: Optional[HierarchyNode] = None
    flattened: bool = False
    nodes: List[NetworkMember] = Field(default_factory=list)


class NetworkForestResponse(CamelModel):
    """Every sponsor tree of the dataset, one per root."""
    total_roots: int
    total_nodes: int
    trees: List[HierarchyResponse] = Field(default_factory=list)


class NetworkViewResponse(CamelModel):
    root_code: int
    found: bool
    levels: int
    total: int
    members: List[NetworkMember] = Field(default_factory=list)


class LicenseeListResponse(CamelModel):
    items: List[LicenseeRecord]
    total: int
    page: int
    limit: int
    total_pages: int


# =============================================================================
# Aggregated Metrics
# =============================================================================


class Quartiles(CamelModel):
    q1: float = 0.0
    q2: float = 0.0
    q3: float = 0.0


class AggregatedMetrics(CamelModel):
    """
    Descriptive statistics over one numeric field.

    std_dev is the population standard deviation. Quartiles are picked by
    index from the sorted values. Every figure is zero for an empty input.
    """
    field: str
    count: int = 0
    active_count: int = 0
    total: float = 0.0
    mean: float = 0.0
    std_dev: float = 0.0
    quartiles: Quartiles = Field(default_factory=Quartiles)


class RankingResponse(CamelModel):
    field: str
    direction: SortDirection
    top_k: int
    items: List[LicenseeRecord]


class DashboardKPIs(CamelModel):
    total_licensees: int = 0
    active_licensees: int = 0
    inactive_licensees: int = 0
    activation_rate: float = Field(default=0.0, description="Percent, one decimal")
    total_clients: int = 0
    total_telecom_clients: int = 0


class GraduationCount(CamelModel):
    graduation: GraduationTier
    count: int


class StateSummary(CamelModel):
    state_code: str
    total: int = 0
    active: int = 0
    total_clients: int = 0
    total_telecom: int = 0
    avg_clients: float = 0.0
    avg_telecom: float = 0.0
    activation_rate: float = 0.0


class CorrelationMatrix(CamelModel):
    fields: List[str]
    matrix: Dict[str, Dict[str, float]]
    sample_size: int = 0


class GrowthProjection(CamelModel):
    month: int
    pessimistic: int
    realistic: int
    optimistic: int
    confidence: int


class GrowthPrediction(CamelModel):
    current_active: int
    monthly_rate: float
    projections: List[GrowthProjection]


# =============================================================================
# Derived Insights
# =============================================================================


class ChurnRiskResult(CamelModel):
    """
    Churn-risk classification of one licensee.

    Score is the capped sum of rule points; factors lists the rules that fired.
    """
    id: int
    name: str
    score: int = Field(..., ge=0, le=100)
    label: RiskLabel
    factors: List[str] = Field(default_factory=list)
    recommendation: str
    metrics: Dict[str, Any] = Field(default_factory=dict)


class ChurnSummary(CamelModel):
    total_analyzed: int = 0
    urgent: int = 0
    monitor: int = 0
    low_risk: int = 0


class ChurnAnalysis(CamelModel):
    items: List[ChurnRiskResult]
    summary: ChurnSummary


class StateClusterResult(CamelModel):
    state_code: str
    cluster: StateCluster
    total: int
    active: int
    avg_clients: float
    activation_rate: float


class GeographicClusters(CamelModel):
    states: List[StateClusterResult]
    best_performer: Optional[str] = None
    highest_activation: Optional[str] = None
    needs_attention: List[str] = Field(default_factory=list)


class PerformanceScore(CamelModel):
    overall: float
    growth: float
    quality: float
    engagement: float
    recommendation: str


# =============================================================================
# Assistant
# =============================================================================


class ChatRequest(CamelModel):
    message: str = Field(..., min_length=1, max_length=2000)


class ChatMessage(CamelModel):
    id: str
    role: str = "assistant"
    content: str
    timestamp: datetime
    intent: ChatIntent
    metadata: Dict[str, Any] = Field(default_factory=dict)


class Insight(CamelModel):
    type: InsightType
    title: str
    description: str
    priority: InsightPriority
    data: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Sync
# =============================================================================


class SyncStatus(CamelModel):
    record_count: int
    last_refresh: Optional[datetime] = None
    cache: Dict[str, Any] = Field(default_factory=dict)


HierarchyNode.model_rebuild()
