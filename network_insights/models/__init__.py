"""
Package initialization file for Network Insights models.

Re-exports all Pydantic schemas and enumerations so other modules can import
them from network_insights.models directly:

    from network_insights.models import LicenseeRecord, GraduationTier
"""

# =============================================================================
# Enums
# =============================================================================

from network_insights.models.enums import (
    ChatIntent,
    ExportFormat,
    GraduationTier,
    InsightPriority,
    InsightType,
    LicenseeStatus,
    NumericField,
    RiskLabel,
    SortDirection,
    StateCluster,
)

# =============================================================================
# Schemas
# =============================================================================

from network_insights.models.schemas import (
    AggregatedMetrics,
    CamelModel,
    ChatMessage,
    ChatRequest,
    ChurnAnalysis,
    ChurnRiskResult,
    ChurnSummary,
    CorrelationMatrix,
    DashboardKPIs,
    GeographicClusters,
    GraduationCount,
    GrowthPrediction,
    GrowthProjection,
    HierarchyNode,
    HierarchyResponse,
    NetworkForestResponse,
    Insight,
    LicenseeListResponse,
    LicenseeRecord,
    NetworkMember,
    NetworkViewResponse,
    PerformanceScore,
    Quartiles,
    RankingResponse,
    StateClusterResult,
    StateSummary,
    SyncStatus,
)

__all__ = [
    # Enums
    'ChatIntent',
    'ExportFormat',
    'GraduationTier',
    'InsightPriority',
    'InsightType',
    'LicenseeStatus',
    'NumericField',
    'RiskLabel',
    'SortDirection',
    'StateCluster',
    # Schemas
    'AggregatedMetrics',
    'CamelModel',
    'ChatMessage',
    'ChatRequest',
    'ChurnAnalysis',
    'ChurnRiskResult',
    'ChurnSummary',
    'CorrelationMatrix',
    'DashboardKPIs',
    'GeographicClusters',
    'GraduationCount',
    'GrowthPrediction',
    'GrowthProjection',
    'HierarchyNode',
    'HierarchyResponse',
    'NetworkForestResponse',
    'Insight',
    'LicenseeListResponse',
    'LicenseeRecord',
    'NetworkMember',
    'NetworkViewResponse',
    'PerformanceScore',
    'Quartiles',
    'RankingResponse',
    'StateClusterResult',
    'StateSummary',
    'SyncStatus',
]
