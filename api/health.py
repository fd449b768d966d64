"""
Health Records API Router
Health profile and health metrics
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

import entities
from api.deps import get_current_user, get_storage
from api.schemas.health import HealthMetricCreate, HealthProfileUpsert
from storage.base import Storage


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health-profile", response_model=Optional[entities.HealthProfile])
async def get_health_profile(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    """The caller's health profile, or null before one is saved"""
    return storage.get_health_profile(user.id)


@router.post("/health-profile", response_model=entities.HealthProfile)
async def save_health_profile(
    profile_data: HealthProfileUpsert,
    response: Response,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    """Create the profile (201) or merge into the existing one (200)"""
    fields = profile_data.to_fields()
    if storage.get_health_profile(user.id) is not None:
        return storage.update_health_profile(user.id, fields)

    response.status_code = status.HTTP_201_CREATED
    return storage.create_health_profile({**fields, "user_id": user.id})


@router.get("/health-metrics", response_model=List[entities.HealthMetric])
async def list_health_metrics(
    type: Optional[str] = Query(None, description="Only metrics of this type"),
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    return storage.get_health_metrics(user.id, type=type)


@router.post("/health-metrics", response_model=entities.HealthMetric, status_code=status.HTTP_201_CREATED)
async def create_health_metric(
    metric_data: HealthMetricCreate,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    fields = metric_data.model_dump()
    fields["measured_at"] = fields["measured_at"] or datetime.utcnow()
    return storage.create_health_metric({**fields, "user_id": user.id})
