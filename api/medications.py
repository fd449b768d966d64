"""
Medications API Router
Endpoints for medications, dose logs and adherence
"""

import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

import entities
from api.deps import (
    check_ownership,
    get_app_settings,
    get_current_user,
    get_notification_service,
    get_storage,
)
from api.schemas.medication import MedicationCreate, MedicationLogCreate, MedicationUpdate
from config import Settings, monitoring_config
from services.notification_service import NotificationService
from storage.base import Storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/medications", tags=["medications"])


def _get_medication_or_404(
    storage: Storage,
    medication_id: int,
    user: entities.User,
    settings: Settings
) -> entities.Medication:
    medication = storage.get_medication(medication_id)
    if medication is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )
    check_ownership(medication, user, settings, "Medication")
    return medication


@router.get("", response_model=List[entities.Medication])
async def list_medications(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    """All medications for the current user, active or not"""
    return storage.get_medications(user.id)


@router.post("", response_model=entities.Medication, status_code=status.HTTP_201_CREATED)
async def create_medication(
    medication_data: MedicationCreate,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    """
    Add a medication

    - **name**: Medication name
    - **dosage**: Dosage (e.g., "10mg")
    - **frequency**: Frequency description
    - **startDate**: First day taken
    """
    medication = storage.create_medication({**medication_data.model_dump(), "user_id": user.id})
    logger.info(f"Created medication {medication.id} for user {user.id}")
    return medication


@router.patch("/{medication_id}", response_model=entities.Medication)
async def update_medication(
    medication_id: int,
    medication_data: MedicationUpdate,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    check_ownership(storage.get_medication(medication_id), user, settings, "Medication")
    return storage.update_medication(medication_id, medication_data.to_fields())


@router.delete("/{medication_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_medication(
    medication_id: int,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    """Remove a medication and its dose logs"""
    check_ownership(storage.get_medication(medication_id), user, settings, "Medication")
    storage.delete_medication(medication_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{medication_id}/logs", response_model=List[entities.MedicationLog])
async def list_medication_logs(
    medication_id: int,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    return storage.get_medication_logs(user.id, medication_id)


@router.post(
    "/{medication_id}/logs",
    response_model=entities.MedicationLog,
    status_code=status.HTTP_201_CREATED
)
async def create_medication_log(
    medication_id: int,
    log_data: MedicationLogCreate,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
    notifications: NotificationService = Depends(get_notification_service)
):
    """
    Record a taken or missed dose.
    A missed dose re-checks adherence and may raise a health alert.
    """
    medication = _get_medication_or_404(storage, medication_id, user, settings)

    fields = log_data.model_dump()
    fields["taken_at"] = fields["taken_at"] or datetime.utcnow()
    log = storage.create_medication_log({**fields, "user_id": user.id, "medication_id": medication_id})

    if log.missed:
        rate = storage.get_medication_adherence(
            user.id, medication_id, monitoring_config.ADHERENCE_WINDOW_DAYS
        )
        notifications.check_medication_adherence(user.id, medication.name, rate)

    return log


@router.get("/{medication_id}/adherence", response_model=entities.MedicationAdherence)
async def get_medication_adherence(
    medication_id: int,
    days: int = Query(7, ge=1, le=365, description="Trailing window in days"),
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    """Percent of the last N days with a dose taken"""
    _get_medication_or_404(storage, medication_id, user, settings)
    return entities.MedicationAdherence(
        medication_id=medication_id,
        days=days,
        adherence=storage.get_medication_adherence(user.id, medication_id, days),
    )
