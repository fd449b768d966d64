"""
Storage Interface
Contract shared by the in-memory and database-backed stores
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import entities
from services.dashboard_service import build_timeline, compute_dashboard_stats


class StorageError(Exception):
    """Base class for persistence failures"""


class NotFoundError(StorageError):
    """Raised when an update targets a row that does not exist"""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ConflictError(StorageError):
    """Raised when a write would break a uniqueness rule, such as a reused email"""


def adherence_percent(logs: List[entities.MedicationLog], days: int, now: datetime) -> int:
    """
    Share of non-missed logs over a trailing window, as a whole percent.
    Assumes one expected dose per day regardless of the medication's frequency.
    """
    if days <= 0:
        return 0
    cutoff = now - timedelta(days=days)
    taken = sum(1 for log in logs if log.taken_at >= cutoff and not log.missed)
    return int((taken / days) * 100 + 0.5)


class Storage(ABC):
    """
    Single point of truth for entity persistence.

    Creates take a dict of already-validated fields and return the full row
    with id and timestamps assigned. Updates merge a partial dict and raise
    NotFoundError if the id is absent. Deletes are hard and idempotent.
    """

    # ==================== USERS ====================

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[entities.User]: ...

    @abstractmethod
    def upsert_user(self, data: Dict[str, Any]) -> entities.User: ...

    @abstractmethod
    def update_user_setup(self, user_id: str, updates: Dict[str, Any]) -> entities.User: ...

    def complete_user_setup(self, user_id: str) -> entities.User:
        return self.update_user_setup(user_id, {"setup_completed": True, "setup_step": 3})

    @abstractmethod
    def get_patients(self) -> List[entities.User]: ...

    @abstractmethod
    def delete_user(self, user_id: str) -> None: ...

    # ==================== HEALTH PROFILE ====================

    @abstractmethod
    def get_health_profile(self, user_id: str) -> Optional[entities.HealthProfile]: ...

    @abstractmethod
    def create_health_profile(self, data: Dict[str, Any]) -> entities.HealthProfile: ...

    @abstractmethod
    def update_health_profile(self, user_id: str, updates: Dict[str, Any]) -> entities.HealthProfile: ...

    # ==================== MEDICATIONS ====================

    @abstractmethod
    def get_medications(self, user_id: str) -> List[entities.Medication]: ...

    @abstractmethod
    def get_active_medications(self, user_id: str) -> List[entities.Medication]: ...

    @abstractmethod
    def get_medication(self, medication_id: int) -> Optional[entities.Medication]: ...

    @abstractmethod
    def create_medication(self, data: Dict[str, Any]) -> entities.Medication: ...

    @abstractmethod
    def update_medication(self, medication_id: int, updates: Dict[str, Any]) -> entities.Medication: ...

    @abstractmethod
    def delete_medication(self, medication_id: int) -> None: ...

    # ==================== MEDICATION LOGS ====================

    @abstractmethod
    def get_medication_logs(
        self,
        user_id: str,
        medication_id: Optional[int] = None
    ) -> List[entities.MedicationLog]: ...

    @abstractmethod
    def create_medication_log(self, data: Dict[str, Any]) -> entities.MedicationLog: ...

    @abstractmethod
    def get_medication_logs_with_names(
        self,
        user_id: str
    ) -> List[Tuple[entities.MedicationLog, entities.Medication]]:
        """Logs joined to their medication; logs whose medication is gone are left out"""

    def get_medication_adherence(
        self,
        user_id: str,
        medication_id: int,
        days: int,
        now: Optional[datetime] = None
    ) -> int:
        logs = self.get_medication_logs(user_id, medication_id)
        return adherence_percent(logs, days, now or datetime.utcnow())

    # ==================== SYMPTOMS ====================

    @abstractmethod
    def get_symptoms(self, user_id: str) -> List[entities.Symptom]: ...

    @abstractmethod
    def get_symptom(self, symptom_id: int) -> Optional[entities.Symptom]: ...

    @abstractmethod
    def create_symptom(self, data: Dict[str, Any]) -> entities.Symptom: ...

    @abstractmethod
    def update_symptom(self, symptom_id: int, updates: Dict[str, Any]) -> entities.Symptom: ...

    @abstractmethod
    def delete_symptom(self, symptom_id: int) -> None: ...

    # ==================== APPOINTMENTS ====================

    @abstractmethod
    def get_appointments(self, user_id: str) -> List[entities.Appointment]: ...

    @abstractmethod
    def get_appointment(self, appointment_id: int) -> Optional[entities.Appointment]: ...

    @abstractmethod
    def get_upcoming_appointments(
        self,
        user_id: str,
        now: Optional[datetime] = None
    ) -> List[entities.Appointment]: ...

    @abstractmethod
    def get_appointments_by_date(
        self,
        day: Optional[date] = None,
        user_id: Optional[str] = None
    ) -> List[entities.Appointment]:
        """Appointments inside [day, day + 1), ascending; all of them when day is None"""

    @abstractmethod
    def create_appointment(self, data: Dict[str, Any]) -> entities.Appointment: ...

    @abstractmethod
    def update_appointment(self, appointment_id: int, updates: Dict[str, Any]) -> entities.Appointment: ...

    @abstractmethod
    def delete_appointment(self, appointment_id: int) -> None: ...

    # ==================== HEALTH METRICS ====================

    @abstractmethod
    def get_health_metrics(self, user_id: str, type: Optional[str] = None) -> List[entities.HealthMetric]: ...

    @abstractmethod
    def create_health_metric(self, data: Dict[str, Any]) -> entities.HealthMetric: ...

    # ==================== AI INSIGHTS ====================

    @abstractmethod
    def get_ai_insights(self, user_id: str) -> List[entities.AiInsight]: ...

    @abstractmethod
    def get_ai_insight(self, insight_id: int) -> Optional[entities.AiInsight]: ...

    @abstractmethod
    def create_ai_insight(self, data: Dict[str, Any]) -> entities.AiInsight: ...

    @abstractmethod
    def mark_insight_as_read(self, insight_id: int) -> None: ...

    # ==================== REMINDERS ====================

    @abstractmethod
    def get_reminders(self, user_id: str) -> List[entities.Reminder]: ...

    @abstractmethod
    def get_reminder(self, reminder_id: int) -> Optional[entities.Reminder]: ...

    @abstractmethod
    def get_today_reminders(self, user_id: str, now: Optional[datetime] = None) -> List[entities.Reminder]: ...

    @abstractmethod
    def create_reminder(self, data: Dict[str, Any]) -> entities.Reminder: ...

    @abstractmethod
    def mark_reminder_completed(self, reminder_id: int) -> None: ...

    # ==================== HEALTH REPORTS ====================

    @abstractmethod
    def get_health_reports(self, user_id: str) -> List[entities.HealthReport]: ...

    @abstractmethod
    def create_health_report(self, data: Dict[str, Any]) -> entities.HealthReport: ...

    # ==================== TRANSCRIPTIONS ====================

    @abstractmethod
    def get_transcriptions(self, user_id: str) -> List[entities.Transcription]: ...

    @abstractmethod
    def get_transcription(self, transcription_id: int) -> Optional[entities.Transcription]: ...

    @abstractmethod
    def get_transcriptions_by_date(self, user_id: str, day: date) -> List[entities.Transcription]: ...

    @abstractmethod
    def create_transcription(self, data: Dict[str, Any]) -> entities.Transcription: ...

    @abstractmethod
    def update_transcription(self, transcription_id: int, updates: Dict[str, Any]) -> entities.Transcription: ...

    @abstractmethod
    def delete_transcription(self, transcription_id: int) -> None: ...

    # ==================== NOTIFICATIONS ====================

    @abstractmethod
    def get_notifications(self, user_id: str, limit: int = 50) -> List[entities.Notification]: ...

    @abstractmethod
    def get_unread_notifications(self, user_id: str) -> List[entities.Notification]: ...

    @abstractmethod
    def get_notification(self, notification_id: int) -> Optional[entities.Notification]: ...

    @abstractmethod
    def create_notification(self, data: Dict[str, Any]) -> entities.Notification: ...

    @abstractmethod
    def mark_notification_as_read(self, notification_id: int) -> None: ...

    @abstractmethod
    def mark_all_notifications_as_read(self, user_id: str) -> None: ...

    @abstractmethod
    def delete_notification(self, notification_id: int) -> None: ...

    @abstractmethod
    def get_scheduled_notifications(self, now: datetime) -> List[entities.Notification]:
        """Unread notifications whose scheduled_for is at or after now"""

    # ==================== NOTIFICATION SETTINGS ====================

    @abstractmethod
    def get_notification_settings(self, user_id: str) -> Optional[entities.NotificationSettings]: ...

    @abstractmethod
    def upsert_notification_settings(
        self,
        user_id: str,
        updates: Dict[str, Any]
    ) -> entities.NotificationSettings: ...

    # ==================== AGGREGATES ====================

    def get_dashboard_stats(self, user_id: str, now: Optional[datetime] = None) -> entities.DashboardStats:
        """Recomputed on every call"""
        now = now or datetime.utcnow()
        return compute_dashboard_stats(
            user=self.get_user(user_id),
            active_medications=self.get_active_medications(user_id),
            upcoming_appointments=self.get_upcoming_appointments(user_id, now=now),
            now=now,
        )

    def get_timeline_events(self, user_id: str, limit: int = 10) -> List[entities.TimelineEvent]:
        return build_timeline(
            symptoms=self.get_symptoms(user_id),
            medication_logs=self.get_medication_logs_with_names(user_id),
            appointments=self.get_appointments(user_id),
            limit=limit,
        )
