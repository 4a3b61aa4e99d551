"""
Network Insights Test Suite

Test Modules:
-------------
- test_cache.py: TTL cache expiry, memoization and invalidation
- test_normalization.py: Header mapping, status and tier parsing, row cleanup
- test_sheets.py: Google Sheets client with a mocked service
- test_record_source.py: Cached snapshot loading and refresh
- test_hierarchy.py: Sponsor trees and the network view
- test_aggregation.py: Statistics, rankings and dashboard summaries
- test_classification.py: Churn risk, state clusters and performance score
- test_licensees.py: Search, filtering, sorting, pagination and export
- test_assistant.py: Intent classification, chat replies and insights
- test_api.py: HTTP endpoints through the FastAPI TestClient

Running Tests:
--------------
    pytest network_insights/tests -v
"""
