"""
Network Insights Backend Package.

FastAPI service layer for the licensee network analytics dashboard.
Reads the licensee spreadsheet, builds sponsor hierarchies, computes
network metrics and churn-risk insights, and hosts the analytics assistant.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, caching, and dependencies
    - models: Pydantic schemas and enums
    - services: Business logic services
"""

__version__ = "1.0.0"
