"""
Network Insights Services Module

Business logic for the licensee analytics backend. Services are pure
functions over normalized records, except the record source and the
assistant, which own I/O.

Services:
- normalization: FIELD_MAPPING and row -> LicenseeRecord conversion
- sheets: Google Sheets reader
- record_source: Cached, normalized spreadsheet snapshot
- hierarchy: Sponsor trees and the flat network view
- aggregation: Statistics, rankings, KPIs, state summaries, correlation, growth
- classification: Churn risk, state clusters, performance score
- licensees: Search, filters, pagination and export
- assistant: Chat intent classification and grounded replies

All services are consumed by the API layer (network_insights/api/).
"""

# =============================================================================
# Ingestion
# =============================================================================

from network_insights.services.normalization import (
    FIELD_MAPPING,
    derive_status,
    normalize_rows,
    parse_graduation_tier,
    resolve_header,
)
from network_insights.services.sheets import (
    DataSourceUnavailableError,
    SheetsClient,
    get_sheets_service,
)
from network_insights.services.record_source import RECORDS_CACHE_KEY, RecordSource

# =============================================================================
# Hierarchy Builder
# =============================================================================

from network_insights.services.hierarchy import (
    build_forest,
    build_hierarchy,
    build_network_view,
    count_nodes,
    find_roots,
    flatten_tree,
    iter_nodes,
)

# =============================================================================
# Metrics Aggregator
# =============================================================================

from network_insights.services.aggregation import (
    NUMERIC_FIELDS,
    compute_kpis,
    compute_metrics,
    correlation_matrix,
    distribution_by_graduation,
    project_growth,
    rank_records,
    summarize_by_state,
)

# =============================================================================
# Derived-Insight Classifier
# =============================================================================

from network_insights.services.classification import (
    analyze_churn,
    classify_churn_risk,
    classify_state_cluster,
    cluster_states,
    compute_performance_score,
)

# =============================================================================
# Listing and Assistant
# =============================================================================

from network_insights.services.licensees import export_records, find_licensee, list_licensees
from network_insights.services.assistant import AssistantService, classify_intent, get_openai_client

__all__ = [
    # Ingestion
    'FIELD_MAPPING',
    'derive_status',
    'normalize_rows',
    'parse_graduation_tier',
    'resolve_header',
    'DataSourceUnavailableError',
    'SheetsClient',
    'get_sheets_service',
    'RECORDS_CACHE_KEY',
    'RecordSource',
    # Hierarchy
    'build_forest',
    'build_hierarchy',
    'build_network_view',
    'count_nodes',
    'find_roots',
    'flatten_tree',
    'iter_nodes',
    # Aggregation
    'NUMERIC_FIELDS',
    'compute_kpis',
    'compute_metrics',
    'correlation_matrix',
    'distribution_by_graduation',
    'project_growth',
    'rank_records',
    'summarize_by_state',
    # Classification
    'analyze_churn',
    'classify_churn_risk',
    'classify_state_cluster',
    'cluster_states',
    'compute_performance_score',
    # Listing and assistant
    'export_records',
    'find_licensee',
    'list_licensees',
    'AssistantService',
    'classify_intent',
    'get_openai_client',
]
