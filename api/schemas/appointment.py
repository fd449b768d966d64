"""
Appointment Schemas
"""

from typing import Optional
from pydantic import Field

from api.schemas.common import ApiModel, UtcDatetime
from models import AppointmentStatus


class AppointmentCreate(ApiModel):
    """
    Schema for scheduling an appointment.
    user_id is the patient; it defaults to the caller.
    """
    user_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=255)
    provider: str = Field(..., min_length=1, max_length=255)
    type: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    appointment_date: UtcDatetime
    duration: Optional[int] = Field(None, ge=1, description="Minutes")
    notes: Optional[str] = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    outcome: Optional[str] = None


class AppointmentUpdate(ApiModel):
    non_nullable = frozenset({"title", "provider", "appointment_date", "status"})

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    provider: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    appointment_date: Optional[UtcDatetime] = None
    duration: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    outcome: Optional[str] = None
