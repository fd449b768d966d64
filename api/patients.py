"""
Patients API Router
Patient directory for healthcare professionals
"""

from typing import List

from fastapi import APIRouter, Depends

import entities
from api.deps import get_storage, require_professional
from storage.base import Storage


router = APIRouter(prefix="/patients", tags=["patients"])


@router.get("", response_model=List[entities.PatientUser])
async def list_patients(
    user: entities.User = Depends(require_professional),
    storage: Storage = Depends(get_storage)
):
    """All users who are not healthcare professionals"""
    return [entities.to_user_view(patient) for patient in storage.get_patients()]
