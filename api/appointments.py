"""
Appointments API Router
Professional calendar endpoints
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

import entities
from api.deps import get_notification_service, get_storage, require_professional
from api.schemas.appointment import AppointmentCreate, AppointmentUpdate
from models import AppointmentStatus
from services.notification_service import NotificationService
from storage.base import Storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("", response_model=List[entities.Appointment])
async def list_appointments(
    day: Optional[date] = Query(None, alias="date", description="Only appointments on this day (YYYY-MM-DD)"),
    user: entities.User = Depends(require_professional),
    storage: Storage = Depends(get_storage)
):
    """
    Calendar view across all patients, ascending by time.
    Any professional may edit any appointment; ownership is not checked here.
    """
    return storage.get_appointments_by_date(day=day)


@router.post("", response_model=entities.Appointment, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: AppointmentCreate,
    user: entities.User = Depends(require_professional),
    storage: Storage = Depends(get_storage),
    notifications: NotificationService = Depends(get_notification_service)
):
    """
    Schedule an appointment for a patient (defaults to the caller).
    Scheduled appointments also get a reminder notification for the patient.
    """
    fields = appointment_data.model_dump()
    owner_id = fields.pop("user_id") or user.id
    if storage.get_user(owner_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"User {owner_id} does not exist"
        )

    appointment = storage.create_appointment({**fields, "user_id": owner_id})
    logger.info(f"User {user.id} scheduled appointment {appointment.id} for {owner_id}")

    if appointment.status == AppointmentStatus.SCHEDULED.value:
        notifications.trigger_appointment_reminder(
            owner_id,
            appointment.title,
            appointment.appointment_date,
            doctor_name=appointment.provider,
        )
    return appointment


@router.patch("/{appointment_id}", response_model=entities.Appointment)
async def update_appointment(
    appointment_id: int,
    appointment_data: AppointmentUpdate,
    user: entities.User = Depends(require_professional),
    storage: Storage = Depends(get_storage)
):
    return storage.update_appointment(appointment_id, appointment_data.to_fields())


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: int,
    user: entities.User = Depends(require_professional),
    storage: Storage = Depends(get_storage)
):
    storage.delete_appointment(appointment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
