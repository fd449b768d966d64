"""
Notifications API Router
In-app notifications and per-user notification settings
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

import entities
from api.deps import check_ownership, get_app_settings, get_current_user, get_notification_service, get_storage
from api.schemas.notification import NotificationCreate, NotificationSettingsUpdate
from config import Settings
from services.notification_service import NotificationService
from storage.base import Storage


logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


@router.get("/notifications", response_model=List[entities.Notification])
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    """Newest first"""
    return storage.get_notifications(user.id, limit=limit)


@router.get("/notifications/unread", response_model=List[entities.Notification])
async def list_unread_notifications(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    return storage.get_unread_notifications(user.id)


@router.post(
    "/notifications",
    response_model=entities.Notification,
    status_code=status.HTTP_201_CREATED,
    responses={204: {"description": "Suppressed by the user's notification settings"}},
)
async def create_notification(
    notification_data: NotificationCreate,
    user: entities.User = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service)
):
    """
    Create a notification for the caller, subject to their settings.
    Emergency alerts are never suppressed.
    """
    fields = notification_data.model_dump()
    notification = notifications.notify(user.id, **fields)
    if notification is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return notification


@router.patch("/notifications/read-all")
async def mark_all_read(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    storage.mark_all_notifications_as_read(user.id)
    return {"success": True}


@router.patch("/notifications/{notification_id}/read")
async def mark_read(
    notification_id: int,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    check_ownership(storage.get_notification(notification_id), user, settings, "Notification")
    storage.mark_notification_as_read(notification_id)
    return {"success": True}


@router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: int,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    check_ownership(storage.get_notification(notification_id), user, settings, "Notification")
    storage.delete_notification(notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================== SETTINGS ====================

@router.get("/settings/notifications", response_model=entities.NotificationSettings)
async def get_notification_settings(
    user: entities.User = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service)
):
    """Created with defaults on first access"""
    return notifications.get_settings(user.id)


@router.put("/settings/notifications", response_model=entities.NotificationSettings)
async def update_notification_settings(
    settings_data: NotificationSettingsUpdate,
    user: entities.User = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service)
):
    return notifications.update_settings(user.id, settings_data.to_fields())
