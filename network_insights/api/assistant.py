"""
FastAPI router module for the analytics assistant.

Endpoints:
- POST /ai/chat: Answer one chat message
- GET /ai/insights: Headline alerts and recommendations

Chat never fails on missing data: when the spreadsheet is unreachable the
reply itself says so. Insights need the data and answer 503 without it.
"""

import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Request

from network_insights.core.dependencies import CacheDep, RecordSourceDep, SettingsDep
from network_insights.models import ChatMessage, ChatRequest, Insight
from network_insights.services.assistant import AssistantService
from network_insights.services.sheets import DataSourceUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["assistant"])


def get_assistant(
    request: Request,
    source: RecordSourceDep,
    cache: CacheDep,
    settings: SettingsDep,
) -> AssistantService:
    """Build the assistant around the shared source, cache and OpenAI client."""
    return AssistantService(
        source=source,
        cache=cache,
        settings=settings,
        client=getattr(request.app.state, 'openai_client', None),
    )


AssistantDep = Annotated[AssistantService, Depends(get_assistant)]


@router.post("/chat", response_model=ChatMessage)
async def chat(payload: ChatRequest, assistant: AssistantDep) -> ChatMessage:
    """
    Classify the message intent and answer from computed metrics, or from
    the language model for general questions.
    """
    try:
        return await assistant.chat(payload.message)
    except Exception as e:
        logger.error(f"Error answering chat message: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error answering chat message: {str(e)}",
        )


@router.get("/insights", response_model=List[Insight])
async def get_insights(assistant: AssistantDep) -> List[Insight]:
    try:
        return await assistant.insights()
    except DataSourceUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Licensee data unavailable: {e}")
    except Exception as e:
        logger.error(f"Error generating insights: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error generating insights: {str(e)}",
        )
