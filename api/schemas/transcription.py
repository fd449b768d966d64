"""
Transcription Schemas
Creation is multipart and handled by form fields on the route
"""

from typing import Optional
from pydantic import Field

from api.schemas.common import ApiModel


class TranscriptionUpdate(ApiModel):
    non_nullable = frozenset({"title", "transcript"})

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    transcript: Optional[str] = None
    patient_id: Optional[str] = None
    appointment_id: Optional[int] = None
