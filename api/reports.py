"""
Reports API Router
Provider handover reports
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

import entities
from api.deps import get_current_user, get_report_service, get_storage
from api.schemas.report import ReportGenerateRequest
from services.llm_service import LLMServiceError
from services.report_service import ReportService
from storage.base import Storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("", response_model=List[entities.HealthReport])
async def list_reports(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    return storage.get_health_reports(user.id)


@router.post("/generate", response_model=entities.HealthReport, status_code=status.HTTP_201_CREATED)
async def generate_report(
    report_request: ReportGenerateRequest,
    user: entities.User = Depends(get_current_user),
    report_service: ReportService = Depends(get_report_service)
):
    """
    Generate a provider summary for a period

    - **periodStart** / **periodEnd**: Reporting window
    - **reportType**: Defaults to "summary"; "weekly" also notifies the user
    """
    try:
        return await report_service.generate_report(
            user.id,
            period_start=report_request.period_start,
            period_end=report_request.period_end,
            report_type=report_request.report_type,
        )
    except LLMServiceError as e:
        logger.error(f"Error generating health report for user {user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate health report"
        )
