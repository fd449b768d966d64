"""
AI Insights API Router
Generated insights and clinical term translation
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

import entities
from api.deps import (
    check_ownership,
    get_app_settings,
    get_current_user,
    get_insight_engine,
    get_notification_service,
    get_storage,
)
from api.schemas.report import TranslateTermRequest, TranslateTermResponse
from config import Settings
from services.insight_service import generate_and_store_insights
from services.llm_service import LLMServiceError
from services.notification_service import NotificationService
from storage.base import Storage


logger = logging.getLogger(__name__)

router = APIRouter(tags=["insights"])


@router.get("/ai-insights", response_model=List[entities.AiInsight])
async def list_insights(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    return storage.get_ai_insights(user.id)


@router.post("/ai-insights/generate", response_model=List[entities.AiInsight])
async def generate_insights(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    insight_engine=Depends(get_insight_engine),
    notifications: NotificationService = Depends(get_notification_service)
):
    """
    Summarise recent symptoms, medications, appointments and metrics
    into stored insights
    """
    try:
        return await generate_and_store_insights(insight_engine, storage, notifications, user.id)
    except LLMServiceError as e:
        logger.error(f"Error generating AI insights for user {user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate AI insights"
        )


@router.patch("/ai-insights/{insight_id}/read")
async def mark_insight_read(
    insight_id: int,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    check_ownership(storage.get_ai_insight(insight_id), user, settings, "AI insight")
    storage.mark_insight_as_read(insight_id)
    return {"success": True}


@router.post("/translate-term", response_model=TranslateTermResponse)
async def translate_term(
    request: TranslateTermRequest,
    user: entities.User = Depends(get_current_user),
    insight_engine=Depends(get_insight_engine)
):
    """Plain-language explanation of a clinical term"""
    try:
        translation = await insight_engine.translate_clinical_term(request.term)
    except LLMServiceError as e:
        logger.error(f"Error translating clinical term: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to translate clinical term"
        )
    return TranslateTermResponse(
        plain_language=translation.plain_language,
        explanation=translation.explanation,
    )
