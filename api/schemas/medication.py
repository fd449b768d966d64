"""
Medication Schemas
Pydantic models for medication and dose-log requests
"""

from typing import Optional, List
from datetime import date
from pydantic import Field

from api.schemas.common import ApiModel, UtcDatetime


# ==================== REQUEST SCHEMAS ====================

class MedicationCreate(ApiModel):
    """Schema for adding a medication"""
    name: str = Field(..., min_length=1, max_length=255)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: str = Field(..., min_length=1, max_length=100)
    instructions: Optional[str] = None
    prescribed_by: Optional[str] = Field(None, max_length=255)
    purpose: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = True
    side_effects: List[str] = Field(default_factory=list)


class MedicationUpdate(ApiModel):
    """Schema for updating a medication; only sent fields change"""
    non_nullable = frozenset({"name", "dosage", "frequency", "start_date", "is_active", "side_effects"})

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    dosage: Optional[str] = Field(None, min_length=1, max_length=100)
    frequency: Optional[str] = Field(None, min_length=1, max_length=100)
    instructions: Optional[str] = None
    prescribed_by: Optional[str] = Field(None, max_length=255)
    purpose: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    side_effects: Optional[List[str]] = None


class MedicationLogCreate(ApiModel):
    """Schema for recording a dose; taken_at defaults to now"""
    taken_at: Optional[UtcDatetime] = None
    dosage_taken: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    missed: bool = False
