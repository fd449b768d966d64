"""
Health Record Schemas
Health profile, metrics and reminders
"""

from typing import Optional, List
from datetime import date
from pydantic import Field

from api.schemas.common import ApiModel, UtcDatetime


class HealthProfileUpsert(ApiModel):
    non_nullable = frozenset({"allergies", "chronic_conditions"})

    date_of_birth: Optional[date] = None
    emergency_contact: Optional[str] = Field(None, max_length=255)
    emergency_phone: Optional[str] = Field(None, max_length=50)
    allergies: Optional[List[str]] = None
    chronic_conditions: Optional[List[str]] = None
    preferred_pharmacy: Optional[str] = Field(None, max_length=255)
    insurance_provider: Optional[str] = Field(None, max_length=255)
    primary_care_provider: Optional[str] = Field(None, max_length=255)


class HealthMetricCreate(ApiModel):
    """Value is free text so compound readings like "120/80" fit"""
    type: str = Field(..., min_length=1, max_length=50)
    value: str = Field(..., min_length=1, max_length=100)
    unit: Optional[str] = Field(None, max_length=20)
    measured_at: Optional[UtcDatetime] = None
    notes: Optional[str] = None


class ReminderCreate(ApiModel):
    type: str = Field(..., min_length=1, max_length=30)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_for: UtcDatetime
    reminder_time: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    related_id: Optional[int] = None
