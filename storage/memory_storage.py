"""
In-Memory Storage
Dict-backed store for tests and local development.
Not safe for concurrent writers; there is no transaction isolation.
"""

import itertools
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import entities
from storage.base import ConflictError, NotFoundError, Storage


logger = logging.getLogger(__name__)

E = TypeVar("E", bound=entities.EntityModel)

_IMMUTABLE_FIELDS = {"id", "created_at"}


def _day_window(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class MemStorage(Storage):
    """
    Keeps one dict per table keyed by integer id (string id for users).
    Rows are copied on the way in and out so callers never share state
    with the store.
    """

    TABLES = (
        "users", "health_profiles", "medications", "medication_logs",
        "symptoms", "appointments", "health_metrics", "ai_insights",
        "reminders", "health_reports", "transcriptions", "notifications",
        "notification_settings",
    )

    def __init__(self):
        self._tables: Dict[str, Dict[Any, entities.EntityModel]] = {name: {} for name in self.TABLES}
        self._ids = {name: itertools.count(1) for name in self.TABLES}

    # ==================== HELPERS ====================

    def _insert(self, table: str, model: Type[E], data: Dict[str, Any], row_id: Any = None) -> E:
        now = datetime.utcnow()
        values = dict(data)
        for stamp in ("created_at", "updated_at", "generated_at", "recorded_at"):
            if stamp in model.model_fields and values.get(stamp) is None:
                values[stamp] = now
        values["id"] = row_id if row_id is not None else next(self._ids[table])

        row = model(**values)
        self._tables[table][row.id] = row
        return row.model_copy(deep=True)

    def _update(self, table: str, entity: str, row_id: Any, updates: Dict[str, Any]) -> Any:
        row = self._tables[table].get(row_id)
        if row is None:
            raise NotFoundError(entity, row_id)

        changes = {
            key: value for key, value in updates.items()
            if key in type(row).model_fields and key not in _IMMUTABLE_FIELDS
        }
        if "updated_at" in type(row).model_fields:
            changes["updated_at"] = datetime.utcnow()

        updated = row.model_copy(update=changes)
        self._tables[table][row_id] = updated
        return updated.model_copy(deep=True)

    def _get(self, table: str, row_id: Any) -> Optional[Any]:
        row = self._tables[table].get(row_id)
        return row.model_copy(deep=True) if row is not None else None

    def _select(self, table: str, **criteria) -> List[Any]:
        rows = [
            row for row in self._tables[table].values()
            if all(getattr(row, key) == value for key, value in criteria.items())
        ]
        return [row.model_copy(deep=True) for row in sorted(rows, key=lambda r: r.id)]

    # ==================== USERS ====================

    def get_user(self, user_id: str) -> Optional[entities.User]:
        return self._get("users", user_id)

    def _check_email_free(self, email: Optional[str], user_id: str) -> None:
        if email is None:
            return
        for other in self._tables["users"].values():
            if other.email == email and other.id != user_id:
                raise ConflictError(f"Email {email} is already in use")

    def upsert_user(self, data: Dict[str, Any]) -> entities.User:
        user_id = data["id"]
        self._check_email_free(data.get("email"), user_id)
        if user_id in self._tables["users"]:
            return self._update("users", "User", user_id, data)
        return self._insert("users", entities.User, data, row_id=user_id)

    def update_user_setup(self, user_id: str, updates: Dict[str, Any]) -> entities.User:
        self._check_email_free(updates.get("email"), user_id)
        return self._update("users", "User", user_id, updates)

    def get_patients(self) -> List[entities.User]:
        patients = [u for u in self._tables["users"].values() if not u.is_healthcare_professional]
        return [u.model_copy(deep=True) for u in sorted(patients, key=lambda u: u.created_at)]

    def delete_user(self, user_id: str) -> None:
        if self._tables["users"].pop(user_id, None) is None:
            return

        for table in self.TABLES:
            if table == "users":
                continue
            rows = self._tables[table]
            for row_id in [rid for rid, row in rows.items() if row.user_id == user_id]:
                del rows[row_id]

        for row_id, row in self._tables["transcriptions"].items():
            if row.patient_id == user_id:
                self._tables["transcriptions"][row_id] = row.model_copy(update={"patient_id": None})

        logger.info(f"Deleted user {user_id} and owned rows")

    # ==================== HEALTH PROFILE ====================

    def get_health_profile(self, user_id: str) -> Optional[entities.HealthProfile]:
        found = self._select("health_profiles", user_id=user_id)
        return found[0] if found else None

    def create_health_profile(self, data: Dict[str, Any]) -> entities.HealthProfile:
        return self._insert("health_profiles", entities.HealthProfile, data)

    def update_health_profile(self, user_id: str, updates: Dict[str, Any]) -> entities.HealthProfile:
        profile = self.get_health_profile(user_id)
        if profile is None:
            raise NotFoundError("Health profile", user_id)
        return self._update("health_profiles", "Health profile", profile.id, updates)

    # ==================== MEDICATIONS ====================

    def get_medications(self, user_id: str) -> List[entities.Medication]:
        return self._select("medications", user_id=user_id)

    def get_active_medications(self, user_id: str) -> List[entities.Medication]:
        return self._select("medications", user_id=user_id, is_active=True)

    def get_medication(self, medication_id: int) -> Optional[entities.Medication]:
        return self._get("medications", medication_id)

    def create_medication(self, data: Dict[str, Any]) -> entities.Medication:
        return self._insert("medications", entities.Medication, data)

    def update_medication(self, medication_id: int, updates: Dict[str, Any]) -> entities.Medication:
        return self._update("medications", "Medication", medication_id, updates)

    def delete_medication(self, medication_id: int) -> None:
        self._tables["medications"].pop(medication_id, None)
        logs = self._tables["medication_logs"]
        for log_id in [lid for lid, log in logs.items() if log.medication_id == medication_id]:
            del logs[log_id]

    # ==================== MEDICATION LOGS ====================

    def get_medication_logs(
        self,
        user_id: str,
        medication_id: Optional[int] = None
    ) -> List[entities.MedicationLog]:
        if medication_id is not None:
            return self._select("medication_logs", user_id=user_id, medication_id=medication_id)
        return self._select("medication_logs", user_id=user_id)

    def create_medication_log(self, data: Dict[str, Any]) -> entities.MedicationLog:
        return self._insert("medication_logs", entities.MedicationLog, data)

    def get_medication_logs_with_names(
        self,
        user_id: str
    ) -> List[Tuple[entities.MedicationLog, entities.Medication]]:
        medications = self._tables["medications"]
        return [
            (log, medications[log.medication_id].model_copy(deep=True))
            for log in self.get_medication_logs(user_id)
            if log.medication_id in medications
        ]

    # ==================== SYMPTOMS ====================

    def get_symptoms(self, user_id: str) -> List[entities.Symptom]:
        return self._select("symptoms", user_id=user_id)

    def get_symptom(self, symptom_id: int) -> Optional[entities.Symptom]:
        return self._get("symptoms", symptom_id)

    def create_symptom(self, data: Dict[str, Any]) -> entities.Symptom:
        return self._insert("symptoms", entities.Symptom, data)

    def update_symptom(self, symptom_id: int, updates: Dict[str, Any]) -> entities.Symptom:
        return self._update("symptoms", "Symptom", symptom_id, updates)

    def delete_symptom(self, symptom_id: int) -> None:
        self._tables["symptoms"].pop(symptom_id, None)

    # ==================== APPOINTMENTS ====================

    def get_appointments(self, user_id: str) -> List[entities.Appointment]:
        return self._select("appointments", user_id=user_id)

    def get_appointment(self, appointment_id: int) -> Optional[entities.Appointment]:
        return self._get("appointments", appointment_id)

    def get_upcoming_appointments(
        self,
        user_id: str,
        now: Optional[datetime] = None
    ) -> List[entities.Appointment]:
        now = now or datetime.utcnow()
        return [
            a for a in self._select("appointments", user_id=user_id, status="scheduled")
            if a.appointment_date >= now
        ]

    def get_appointments_by_date(
        self,
        day: Optional[date] = None,
        user_id: Optional[str] = None
    ) -> List[entities.Appointment]:
        rows = self._select("appointments", user_id=user_id) if user_id else self._select("appointments")
        if day is not None:
            start, end = _day_window(day)
            rows = [a for a in rows if start <= a.appointment_date < end]
        return sorted(rows, key=lambda a: (a.appointment_date, a.id))

    def create_appointment(self, data: Dict[str, Any]) -> entities.Appointment:
        return self._insert("appointments", entities.Appointment, data)

    def update_appointment(self, appointment_id: int, updates: Dict[str, Any]) -> entities.Appointment:
        return self._update("appointments", "Appointment", appointment_id, updates)

    def delete_appointment(self, appointment_id: int) -> None:
        if self._tables["appointments"].pop(appointment_id, None) is None:
            return
        transcriptions = self._tables["transcriptions"]
        for row_id, row in transcriptions.items():
            if row.appointment_id == appointment_id:
                transcriptions[row_id] = row.model_copy(update={"appointment_id": None})

    # ==================== HEALTH METRICS ====================

    def get_health_metrics(self, user_id: str, type: Optional[str] = None) -> List[entities.HealthMetric]:
        if type:
            return self._select("health_metrics", user_id=user_id, type=type)
        return self._select("health_metrics", user_id=user_id)

    def create_health_metric(self, data: Dict[str, Any]) -> entities.HealthMetric:
        return self._insert("health_metrics", entities.HealthMetric, data)

    # ==================== AI INSIGHTS ====================

    def get_ai_insights(self, user_id: str) -> List[entities.AiInsight]:
        return self._select("ai_insights", user_id=user_id)

    def get_ai_insight(self, insight_id: int) -> Optional[entities.AiInsight]:
        return self._get("ai_insights", insight_id)

    def create_ai_insight(self, data: Dict[str, Any]) -> entities.AiInsight:
        return self._insert("ai_insights", entities.AiInsight, data)

    def mark_insight_as_read(self, insight_id: int) -> None:
        self._update("ai_insights", "AI insight", insight_id, {"is_read": True})

    # ==================== REMINDERS ====================

    def get_reminders(self, user_id: str) -> List[entities.Reminder]:
        return self._select("reminders", user_id=user_id)

    def get_reminder(self, reminder_id: int) -> Optional[entities.Reminder]:
        return self._get("reminders", reminder_id)

    def get_today_reminders(self, user_id: str, now: Optional[datetime] = None) -> List[entities.Reminder]:
        start, end = _day_window((now or datetime.utcnow()).date())
        return [
            r for r in self._select("reminders", user_id=user_id, is_completed=False)
            if start <= r.scheduled_for < end
        ]

    def create_reminder(self, data: Dict[str, Any]) -> entities.Reminder:
        return self._insert("reminders", entities.Reminder, data)

    def mark_reminder_completed(self, reminder_id: int) -> None:
        self._update("reminders", "Reminder", reminder_id, {"is_completed": True})

    # ==================== HEALTH REPORTS ====================

    def get_health_reports(self, user_id: str) -> List[entities.HealthReport]:
        return self._select("health_reports", user_id=user_id)

    def create_health_report(self, data: Dict[str, Any]) -> entities.HealthReport:
        return self._insert("health_reports", entities.HealthReport, data)

    # ==================== TRANSCRIPTIONS ====================

    def get_transcriptions(self, user_id: str) -> List[entities.Transcription]:
        rows = self._select("transcriptions", user_id=user_id)
        return sorted(rows, key=lambda t: (t.recorded_at, t.id), reverse=True)

    def get_transcription(self, transcription_id: int) -> Optional[entities.Transcription]:
        return self._get("transcriptions", transcription_id)

    def get_transcriptions_by_date(self, user_id: str, day: date) -> List[entities.Transcription]:
        start, end = _day_window(day)
        return [t for t in self.get_transcriptions(user_id) if start <= t.recorded_at < end]

    def create_transcription(self, data: Dict[str, Any]) -> entities.Transcription:
        return self._insert("transcriptions", entities.Transcription, data)

    def update_transcription(self, transcription_id: int, updates: Dict[str, Any]) -> entities.Transcription:
        return self._update("transcriptions", "Transcription", transcription_id, updates)

    def delete_transcription(self, transcription_id: int) -> None:
        self._tables["transcriptions"].pop(transcription_id, None)

    # ==================== NOTIFICATIONS ====================

    def _newest_first(self, rows: List[entities.Notification]) -> List[entities.Notification]:
        return sorted(rows, key=lambda n: (n.created_at, n.id), reverse=True)

    def get_notifications(self, user_id: str, limit: int = 50) -> List[entities.Notification]:
        return self._newest_first(self._select("notifications", user_id=user_id))[:limit]

    def get_unread_notifications(self, user_id: str) -> List[entities.Notification]:
        return self._newest_first(self._select("notifications", user_id=user_id, is_read=False))

    def get_notification(self, notification_id: int) -> Optional[entities.Notification]:
        return self._get("notifications", notification_id)

    def create_notification(self, data: Dict[str, Any]) -> entities.Notification:
        return self._insert("notifications", entities.Notification, data)

    def mark_notification_as_read(self, notification_id: int) -> None:
        self._update(
            "notifications", "Notification", notification_id,
            {"is_read": True, "read_at": datetime.utcnow()}
        )

    def mark_all_notifications_as_read(self, user_id: str) -> None:
        now = datetime.utcnow()
        for row in self._select("notifications", user_id=user_id, is_read=False):
            self._update("notifications", "Notification", row.id, {"is_read": True, "read_at": now})

    def delete_notification(self, notification_id: int) -> None:
        self._tables["notifications"].pop(notification_id, None)

    def get_scheduled_notifications(self, now: datetime) -> List[entities.Notification]:
        return [
            n for n in self._select("notifications", is_read=False)
            if n.scheduled_for is not None and n.scheduled_for >= now
        ]

    # ==================== NOTIFICATION SETTINGS ====================

    def get_notification_settings(self, user_id: str) -> Optional[entities.NotificationSettings]:
        found = self._select("notification_settings", user_id=user_id)
        return found[0] if found else None

    def upsert_notification_settings(
        self,
        user_id: str,
        updates: Dict[str, Any]
    ) -> entities.NotificationSettings:
        existing = self.get_notification_settings(user_id)
        if existing is not None:
            return self._update("notification_settings", "Notification settings", existing.id, updates)
        return self._insert(
            "notification_settings",
            entities.NotificationSettings,
            {**updates, "user_id": user_id}
        )
