"""
Dashboard API Router
Summary stats, timeline feed and reminders
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status

import entities
from api.deps import check_ownership, get_app_settings, get_current_user, get_storage
from api.schemas.health import ReminderCreate
from config import Settings
from storage.base import Storage


logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/stats", response_model=entities.DashboardStats)
async def get_dashboard_stats(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    return storage.get_dashboard_stats(user.id)


@router.get("/dashboard/timeline", response_model=List[entities.TimelineEvent])
async def get_timeline(
    limit: int = Query(10, ge=1, le=100),
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    """Most recent symptoms, doses and appointments, newest first"""
    return storage.get_timeline_events(user.id, limit=limit)


@router.get("/dashboard/reminders", response_model=List[entities.Reminder])
async def get_today_reminders(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    """Open reminders scheduled for today"""
    return storage.get_today_reminders(user.id)


# ==================== REMINDERS ====================

@router.get("/reminders", response_model=List[entities.Reminder])
async def list_reminders(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    return storage.get_reminders(user.id)


@router.post("/reminders", response_model=entities.Reminder, status_code=status.HTTP_201_CREATED)
async def create_reminder(
    reminder_data: ReminderCreate,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    return storage.create_reminder({**reminder_data.model_dump(), "user_id": user.id})


@router.patch("/reminders/{reminder_id}/complete")
async def complete_reminder(
    reminder_id: int,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    check_ownership(storage.get_reminder(reminder_id), user, settings, "Reminder")
    storage.mark_reminder_completed(reminder_id)
    return {"success": True}
