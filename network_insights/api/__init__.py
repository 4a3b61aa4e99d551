"""
Network Insights API package initialization.

This package contains FastAPI router modules for the licensee dashboard:
- dashboard: KPIs, top performers, graduation and state breakdowns
- licensees: Listing, search, lookup and export
- network: Sponsor trees and the flat network view
- analytics: Statistics, rankings, churn risk, clusters, correlation, growth
- assistant: Chat and insights
- sync: Manual refresh and cache status
"""

from fastapi import APIRouter

from network_insights.api.dashboard import router as dashboard_router
from network_insights.api.licensees import router as licensees_router
from network_insights.api.network import router as network_router
from network_insights.api.analytics import router as analytics_router
from network_insights.api.assistant import router as assistant_router
from network_insights.api.sync import router as sync_router

# Each router carries its own prefix
api_router = APIRouter()
api_router.include_router(dashboard_router)
api_router.include_router(licensees_router)
api_router.include_router(network_router)
api_router.include_router(analytics_router)
api_router.include_router(assistant_router)
api_router.include_router(sync_router)

__all__ = [
    "api_router",
    "dashboard_router",
    "licensees_router",
    "network_router",
    "analytics_router",
    "assistant_router",
    "sync_router",
]
