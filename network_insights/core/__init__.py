"""
Core infrastructure package for the Network Insights backend.

Provides:
- Configuration management via pydantic-settings
- The in-process TTL cache shared by the record source and analytics endpoints
- FastAPI dependency injection utilities (network_insights.core.dependencies)

Settings and the cache are re-exported for convenient importing:

    from network_insights.core import get_settings, TTLCache

The dependencies module imports the service layer, so it is imported
directly by the API routers rather than re-exported here:

    from network_insights.core.dependencies import CacheDep, RecordSourceDep
"""

from network_insights.core.cache import CacheEntry, TTLCache
from network_insights.core.config import Settings, get_settings

__all__ = [
    'Settings',
    'get_settings',
    'TTLCache',
    'CacheEntry',
]
