"""
FastAPI application entry point for the Network Insights API.

Configures logging and CORS, registers the API routers, and builds the
process-wide runtime objects in the lifespan:
- TTLCache shared by the record snapshot and derived analytics
- RecordSource reading the licensee spreadsheet
- AsyncOpenAI client for the assistant (None without OPENAI_API_KEY)

Run locally:
    uvicorn network_insights.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from network_insights import __version__
from network_insights.api import api_router
from network_insights.core.cache import TTLCache
from network_insights.core.config import get_settings
from network_insights.services.assistant import get_openai_client
from network_insights.services.record_source import RecordSource

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown.

    On startup:
        - Build the shared cache, record source and OpenAI client
        - Warn about missing spreadsheet or OpenAI configuration

    On shutdown:
        - Close the OpenAI client
    """
    settings = get_settings()
    logger.info("Network Insights API starting")

    cache = TTLCache(default_ttl_seconds=settings.analytics_cache_ttl_seconds)
    app.state.cache = cache
    app.state.record_source = RecordSource.from_settings(settings, cache)
    app.state.openai_client = get_openai_client(settings)

    if not settings.google_sheets_spreadsheet_id:
        logger.warning("GOOGLE_SHEETS_SPREADSHEET_ID not set; data endpoints will answer 503")
    if app.state.openai_client is None:
        logger.warning("OPENAI_API_KEY not set; assistant answers general questions with a fallback")

    yield

    logger.info("Network Insights API shutting down")
    if app.state.openai_client is not None:
        await app.state.openai_client.close()


# Create FastAPI application
app = FastAPI(
    title="Network Insights API",
    version=__version__,
    description=(
        "Backend for the licensee network dashboard. Provides KPIs, licensee "
        "listing, sponsor hierarchies, analytics and an assistant over the "
        "Google Sheets licensee base."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Liveness probe; never touches the spreadsheet or OpenAI."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Service name, version and documentation links."""
    return {
        "name": "Network Insights API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "network_insights.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
