"""
Symptoms API Router
Endpoints for symptom logging
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

import entities
from api.deps import check_ownership, get_app_settings, get_current_user, get_notification_service, get_storage
from api.schemas.symptom import SymptomCreate, SymptomUpdate
from config import Settings
from services.notification_service import NotificationService
from storage.base import Storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/symptoms", tags=["symptoms"])


def _previous_severity(symptoms: List[entities.Symptom], name: str) -> Optional[int]:
    """Severity of the most recent earlier entry with the same name"""
    same = [s for s in symptoms if s.name.lower() == name.lower()]
    if not same:
        return None
    return max(same, key=lambda s: (s.occurred_at, s.id)).severity


@router.get("", response_model=List[entities.Symptom])
async def list_symptoms(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    return storage.get_symptoms(user.id)


@router.post("", response_model=entities.Symptom, status_code=status.HTTP_201_CREATED)
async def create_symptom(
    symptom_data: SymptomCreate,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    notifications: NotificationService = Depends(get_notification_service)
):
    """
    Log a symptom

    - **severity**: 1-10; high or sharply rising values raise a health alert
    """
    previous = _previous_severity(storage.get_symptoms(user.id), symptom_data.name)

    fields = symptom_data.model_dump()
    fields["occurred_at"] = fields["occurred_at"] or datetime.utcnow()
    symptom = storage.create_symptom({**fields, "user_id": user.id})

    notifications.check_symptom_severity(user.id, symptom.name, symptom.severity, previous)
    return symptom


@router.patch("/{symptom_id}", response_model=entities.Symptom)
async def update_symptom(
    symptom_id: int,
    symptom_data: SymptomUpdate,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    check_ownership(storage.get_symptom(symptom_id), user, settings, "Symptom")
    return storage.update_symptom(symptom_id, symptom_data.to_fields())


@router.delete("/{symptom_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_symptom(
    symptom_id: int,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    check_ownership(storage.get_symptom(symptom_id), user, settings, "Symptom")
    storage.delete_symptom(symptom_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
