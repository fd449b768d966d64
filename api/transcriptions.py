"""
Transcriptions API Router
Session recordings for healthcare professionals
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status

import entities
from api.deps import (
    check_ownership,
    get_app_settings,
    get_notification_service,
    get_storage,
    get_transcriber,
    require_professional,
)
from api.schemas.transcription import TranscriptionUpdate
from config import Settings
from services.notification_service import NotificationService
from services.transcription_service import Transcriber, TranscriptionError
from storage.base import Storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transcriptions", tags=["transcriptions"])


def _get_transcription_or_404(
    storage: Storage,
    transcription_id: int,
    user: entities.User,
    settings: Settings
) -> entities.Transcription:
    transcription = storage.get_transcription(transcription_id)
    if transcription is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Transcription {transcription_id} not found"
        )
    check_ownership(transcription, user, settings, "Transcription")
    return transcription


@router.get("", response_model=List[entities.Transcription])
async def list_transcriptions(
    day: Optional[date] = Query(None, alias="date", description="Only recordings from this day (YYYY-MM-DD)"),
    user: entities.User = Depends(require_professional),
    storage: Storage = Depends(get_storage)
):
    """The caller's transcriptions, newest first"""
    if day is not None:
        return storage.get_transcriptions_by_date(user.id, day)
    return storage.get_transcriptions(user.id)


@router.post("", response_model=entities.Transcription, status_code=status.HTTP_201_CREATED)
async def create_transcription(
    audio: UploadFile = File(...),
    title: str = Form(..., min_length=1, max_length=255),
    description: Optional[str] = Form(None),
    patient_id: Optional[str] = Form(None, alias="patientId"),
    appointment_id: Optional[int] = Form(None, alias="appointmentId"),
    user: entities.User = Depends(require_professional),
    storage: Storage = Depends(get_storage),
    transcriber: Transcriber = Depends(get_transcriber),
    notifications: NotificationService = Depends(get_notification_service),
    settings: Settings = Depends(get_app_settings)
):
    """
    Upload a session recording

    - **audio**: Recorded audio file
    - **patientId** / **appointmentId**: Optional links
    """
    patient = None
    if patient_id:
        patient = storage.get_user(patient_id)
        if patient is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Patient {patient_id} does not exist")
    if appointment_id is not None and storage.get_appointment(appointment_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Appointment {appointment_id} does not exist"
        )

    limit = settings.MAX_AUDIO_UPLOAD_BYTES
    if audio.size is not None and audio.size > limit:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Audio file exceeds {limit} bytes")
    content = await audio.read(limit + 1)
    if len(content) > limit:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Audio file exceeds {limit} bytes")

    try:
        result = transcriber.transcribe(content, filename=audio.filename)
    except TranscriptionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    transcription = storage.create_transcription({
        "user_id": user.id,
        "patient_id": patient_id or None,
        "appointment_id": appointment_id,
        "title": title,
        "description": description,
        "transcript": result.transcript,
        "duration": result.duration,
        "audio_file_name": audio.filename,
        "audio_size_bytes": result.size_bytes,
    })
    logger.info(f"Stored transcription {transcription.id} for user {user.id}")

    patient_name = patient.display_name if patient else "Unassigned patient"
    notifications.trigger_transcription_complete(user.id, patient_name, transcription.duration)
    return transcription


@router.get("/{transcription_id}", response_model=entities.Transcription)
async def get_transcription(
    transcription_id: int,
    user: entities.User = Depends(require_professional),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    return _get_transcription_or_404(storage, transcription_id, user, settings)


@router.patch("/{transcription_id}", response_model=entities.Transcription)
async def update_transcription(
    transcription_id: int,
    transcription_data: TranscriptionUpdate,
    user: entities.User = Depends(require_professional),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    """Edit title, notes or the transcript text"""
    check_ownership(storage.get_transcription(transcription_id), user, settings, "Transcription")
    return storage.update_transcription(transcription_id, transcription_data.to_fields())


@router.delete("/{transcription_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transcription(
    transcription_id: int,
    user: entities.User = Depends(require_professional),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    check_ownership(storage.get_transcription(transcription_id), user, settings, "Transcription")
    storage.delete_transcription(transcription_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
