"""
Symptom Schemas
"""

from typing import Optional, List
from pydantic import Field

from api.schemas.common import ApiModel, UtcDatetime


class SymptomCreate(ApiModel):
    """Schema for logging a symptom; occurred_at defaults to now"""
    name: str = Field(..., min_length=1, max_length=255)
    severity: int = Field(..., ge=1, le=10)
    location: Optional[str] = Field(None, max_length=100)
    duration: Optional[str] = Field(None, max_length=100)
    triggers: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    occurred_at: Optional[UtcDatetime] = None
    resolved_at: Optional[UtcDatetime] = None


class SymptomUpdate(ApiModel):
    non_nullable = frozenset({"name", "severity", "triggers", "occurred_at"})

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    severity: Optional[int] = Field(None, ge=1, le=10)
    location: Optional[str] = Field(None, max_length=100)
    duration: Optional[str] = Field(None, max_length=100)
    triggers: Optional[List[str]] = None
    notes: Optional[str] = None
    occurred_at: Optional[UtcDatetime] = None
    resolved_at: Optional[UtcDatetime] = None
