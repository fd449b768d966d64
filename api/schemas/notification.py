"""
Notification Schemas
"""

from typing import Optional, Dict, Any
from pydantic import Field

from api.schemas.common import ApiModel, UtcDatetime
from models import NotificationType


class NotificationCreate(ApiModel):
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    is_actionable: bool = False
    action_url: Optional[str] = Field(None, max_length=500)
    scheduled_for: Optional[UtcDatetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class NotificationSettingsUpdate(ApiModel):
    """Partial settings update; omitted fields keep their value"""
    non_nullable = frozenset({
        "medication_reminders", "appointment_reminders", "health_alerts", "ai_insights",
        "weekly_reports", "emergency_alerts", "reminder_time", "reminder_frequency",
        "email_notifications", "push_notifications",
    })

    medication_reminders: Optional[bool] = None
    appointment_reminders: Optional[bool] = None
    health_alerts: Optional[bool] = None
    ai_insights: Optional[bool] = None
    weekly_reports: Optional[bool] = None
    emergency_alerts: Optional[bool] = None
    reminder_time: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    reminder_frequency: Optional[str] = Field(None, max_length=20)
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
