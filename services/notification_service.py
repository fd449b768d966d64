"""
Notification Service
Preference-gated notification creation, health monitors and scheduled delivery
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import entities
from config import monitoring_config
from models import NotificationType


logger = logging.getLogger(__name__)


# Settings flag consulted for each type; None means never suppressed
SETTINGS_FLAG_BY_TYPE: Dict[str, Optional[str]] = {
    NotificationType.MEDICATION_REMINDER.value: "medication_reminders",
    NotificationType.APPOINTMENT_REMINDER.value: "appointment_reminders",
    NotificationType.HEALTH_ALERT.value: "health_alerts",
    NotificationType.AI_INSIGHT.value: "ai_insights",
    NotificationType.WEEKLY_REPORT.value: "weekly_reports",
    NotificationType.TRANSCRIPTION_COMPLETE.value: "ai_insights",
    NotificationType.EMERGENCY_ALERT.value: None,
}


@dataclass
class DispatchResult:
    """Outcome of handing one notification to a dispatcher"""
    notification_id: int
    delivered: bool
    channel: str
    error: Optional[str] = None


class NotificationDispatcher(ABC):
    """Delivers a stored notification outside the app"""

    @abstractmethod
    def dispatch(self, notification: entities.Notification) -> DispatchResult: ...


class LoggingDispatcher(NotificationDispatcher):
    """Writes the notification to the log and sends nothing"""

    channel = "log"

    def dispatch(self, notification: entities.Notification) -> DispatchResult:
        logger.info(
            f"[notification] user={notification.user_id} type={notification.type} "
            f"scheduled_for={notification.scheduled_for} title={notification.title!r}"
        )
        return DispatchResult(notification_id=notification.id, delivered=False, channel=self.channel)


class NotificationService:
    """
    Creates notifications on behalf of a user, honouring their settings.

    Every trigger returns the stored notification, or None when the user's
    settings suppress that type.
    """

    def __init__(self, storage, dispatcher: Optional[NotificationDispatcher] = None):
        self.storage = storage
        self.dispatcher = dispatcher or LoggingDispatcher()

    # ==================== SETTINGS ====================

    def get_settings(self, user_id: str) -> entities.NotificationSettings:
        """Current settings, creating the default row on first access"""
        existing = self.storage.get_notification_settings(user_id)
        if existing is not None:
            return existing
        logger.info(f"Creating default notification settings for user {user_id}")
        return self.storage.upsert_notification_settings(user_id, {})

    def update_settings(self, user_id: str, updates: Dict[str, Any]) -> entities.NotificationSettings:
        return self.storage.upsert_notification_settings(user_id, updates)

    def is_enabled(self, user_id: str, notification_type: str) -> bool:
        flag = SETTINGS_FLAG_BY_TYPE.get(notification_type)
        if flag is None:
            return True
        return bool(getattr(self.get_settings(user_id), flag))

    # ==================== CREATION ====================

    def notify(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        is_actionable: bool = True,
        action_url: Optional[str] = None,
        scheduled_for: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Optional[entities.Notification]:
        """Store a notification unless the user's settings turn its type off"""
        if not self.is_enabled(user_id, type):
            logger.debug(f"Suppressed {type} notification for user {user_id}")
            return None

        notification = self.storage.create_notification({
            "user_id": user_id,
            "type": type,
            "title": title,
            "message": message,
            "is_actionable": is_actionable,
            "action_url": action_url,
            "scheduled_for": scheduled_for,
            "metadata": metadata or {},
        })
        logger.info(f"Created {type} notification {notification.id} for user {user_id}")
        return notification

    # ==================== TRIGGERS ====================

    def trigger_medication_reminder(
        self,
        user_id: str,
        medication_name: str,
        dosage: str,
        scheduled_time: datetime
    ) -> Optional[entities.Notification]:
        return self.notify(
            user_id,
            NotificationType.MEDICATION_REMINDER.value,
            title=f"Time for {medication_name}",
            message=f"Don't forget to take your {dosage} of {medication_name}",
            action_url="/medications",
            scheduled_for=scheduled_time,
            metadata={"medicationName": medication_name, "dosage": dosage},
        )

    def trigger_appointment_reminder(
        self,
        user_id: str,
        appointment_title: str,
        appointment_time: datetime,
        doctor_name: Optional[str] = None
    ) -> Optional[entities.Notification]:
        """Scheduled a fixed number of hours before the appointment"""
        message = f"You have an appointment tomorrow: {appointment_title}"
        if doctor_name:
            message += f" with {doctor_name}"

        return self.notify(
            user_id,
            NotificationType.APPOINTMENT_REMINDER.value,
            title="Upcoming Appointment",
            message=message,
            action_url="/appointments",
            scheduled_for=appointment_time - timedelta(hours=monitoring_config.APPOINTMENT_REMINDER_HOURS),
            metadata={
                "appointmentTitle": appointment_title,
                "appointmentTime": appointment_time.isoformat(),
                "doctorName": doctor_name,
            },
        )

    def trigger_health_alert(
        self,
        user_id: str,
        title: str,
        message: str,
        severity: str = "medium"
    ) -> Optional[entities.Notification]:
        return self.notify(
            user_id,
            NotificationType.HEALTH_ALERT.value,
            title=title,
            message=message,
            action_url="/timeline",
            metadata={"severity": severity},
        )

    def trigger_ai_insight(
        self,
        user_id: str,
        insight: str,
        related_data: Optional[Dict[str, Any]] = None
    ) -> Optional[entities.Notification]:
        return self.notify(
            user_id,
            NotificationType.AI_INSIGHT.value,
            title="New Health Insight",
            message=insight,
            action_url="/timeline",
            metadata=related_data,
        )

    def trigger_weekly_report(self, user_id: str, summary: str) -> Optional[entities.Notification]:
        return self.notify(
            user_id,
            NotificationType.WEEKLY_REPORT.value,
            title="Your Weekly Health Summary",
            message=summary,
            action_url="/reports",
            metadata={"reportType": "weekly"},
        )

    def trigger_emergency_alert(
        self,
        user_id: str,
        title: str,
        message: str,
        action_url: Optional[str] = None
    ) -> entities.Notification:
        """Ignores the user's settings"""
        return self.notify(
            user_id,
            NotificationType.EMERGENCY_ALERT.value,
            title=title,
            message=message,
            action_url=action_url or "/timeline",
            metadata={"priority": "emergency"},
        )

    def trigger_transcription_complete(
        self,
        user_id: str,
        patient_name: str,
        duration: int
    ) -> Optional[entities.Notification]:
        minutes = int(duration / 60 + 0.5)
        return self.notify(
            user_id,
            NotificationType.TRANSCRIPTION_COMPLETE.value,
            title="Transcription Ready",
            message=f"Transcription for {patient_name} session ({minutes} minutes) is ready for review.",
            action_url="/professional",
            metadata={"patientName": patient_name, "duration": duration},
        )

    # ==================== MONITORS ====================

    def check_symptom_severity(
        self,
        user_id: str,
        symptom_name: str,
        severity: int,
        previous_severity: Optional[int] = None
    ) -> Optional[entities.Notification]:
        """
        High-severity alert at or above the threshold; otherwise a worsening
        alert when severity rose by more than the allowed delta.
        """
        if severity >= monitoring_config.HIGH_SEVERITY_THRESHOLD:
            return self.trigger_health_alert(
                user_id,
                "High Severity Symptom Alert",
                f"You've logged {symptom_name} with severity {severity}/10. "
                "Consider contacting your healthcare provider.",
                severity="high",
            )

        if previous_severity and severity > previous_severity + monitoring_config.WORSENING_DELTA:
            return self.trigger_health_alert(
                user_id,
                "Symptom Worsening Alert",
                f"Your {symptom_name} has increased in severity. "
                f"Current: {severity}/10, Previous: {previous_severity}/10.",
                severity="medium",
            )
        return None

    def check_medication_adherence(
        self,
        user_id: str,
        medication_name: str,
        adherence_rate: int
    ) -> Optional[entities.Notification]:
        if adherence_rate < monitoring_config.LOW_ADHERENCE_PERCENT:
            return self.trigger_health_alert(
                user_id,
                "Low Medication Adherence",
                f"Your adherence for {medication_name} is {adherence_rate}%. "
                "Consistent medication taking is important for your health.",
                severity="medium",
            )
        return None

    # ==================== DELIVERY ====================

    def process_scheduled_notifications(self, now: Optional[datetime] = None) -> List[DispatchResult]:
        """Hand every pending scheduled notification to the dispatcher"""
        now = now or datetime.utcnow()
        pending = self.storage.get_scheduled_notifications(now)
        logger.info(f"Processing {len(pending)} scheduled notifications")

        results = []
        for notification in pending:
            try:
                results.append(self.dispatcher.dispatch(notification))
            except Exception as e:
                logger.error(f"Dispatch failed for notification {notification.id}: {e}")
                results.append(DispatchResult(
                    notification_id=notification.id,
                    delivered=False,
                    channel=getattr(self.dispatcher, "channel", "unknown"),
                    error=str(e),
                ))
        return results
