"""
Database Storage
SQLAlchemy-backed store; one session and one commit per call
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Generator, List, Optional, Tuple, Type

from sqlalchemy import and_, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

import entities
import models
from storage.base import ConflictError, NotFoundError, Storage


logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = {"id", "created_at"}


def _to_columns(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map entity field names onto ORM attribute names"""
    values = dict(data)
    if "metadata" in values:
        values["extra"] = values.pop("metadata")
    return values


def _day_window(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class DatabaseStorage(Storage):
    """
    Persists through the ORM models and returns pydantic rows, so callers
    never hold a live session object.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        if session_factory is None:
            from database import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory
        self.engine = session_factory.kw.get("bind")

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise ConflictError(f"Conflicting write: {e.orig}") from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ==================== HELPERS ====================

    def _insert(self, model: Type[models.Base], entity: Type[entities.EntityModel], data: Dict[str, Any]):
        with self._session() as db:
            row = model(**_to_columns(data))
            db.add(row)
            db.flush()
            db.refresh(row)
            return entity.model_validate(row)

    def _update(
        self,
        model: Type[models.Base],
        entity: Type[entities.EntityModel],
        name: str,
        row_id: Any,
        updates: Dict[str, Any]
    ):
        with self._session() as db:
            row = db.get(model, row_id)
            if row is None:
                raise NotFoundError(name, row_id)

            for key, value in _to_columns(updates).items():
                if key in _IMMUTABLE_FIELDS or not hasattr(model, key):
                    continue
                setattr(row, key, value)
            if hasattr(model, "updated_at"):
                row.updated_at = datetime.utcnow()

            db.flush()
            db.refresh(row)
            return entity.model_validate(row)

    def _get(self, model: Type[models.Base], entity: Type[entities.EntityModel], row_id: Any):
        with self._session() as db:
            row = db.get(model, row_id)
            return entity.model_validate(row) if row is not None else None

    def _list(self, model, entity, *criteria, order_by=None) -> List[Any]:
        with self._session() as db:
            query = db.query(model)
            if criteria:
                query = query.filter(and_(*criteria))
            if order_by is None:
                order_by = (model.id,)
            rows = query.order_by(*order_by).all()
            return [entity.model_validate(row) for row in rows]

    def _delete(self, model: Type[models.Base], row_id: Any) -> bool:
        with self._session() as db:
            row = db.get(model, row_id)
            if row is None:
                return False
            db.delete(row)
            return True

    # ==================== USERS ====================

    def get_user(self, user_id: str) -> Optional[entities.User]:
        return self._get(models.User, entities.User, user_id)

    def upsert_user(self, data: Dict[str, Any]) -> entities.User:
        with self._session() as db:
            user = db.get(models.User, data["id"])
            if user is None:
                user = models.User(**data)
                db.add(user)
            else:
                for key, value in data.items():
                    if key not in _IMMUTABLE_FIELDS and hasattr(models.User, key):
                        setattr(user, key, value)
                user.updated_at = datetime.utcnow()
            db.flush()
            db.refresh(user)
            return entities.User.model_validate(user)

    def update_user_setup(self, user_id: str, updates: Dict[str, Any]) -> entities.User:
        return self._update(models.User, entities.User, "User", user_id, updates)

    def get_patients(self) -> List[entities.User]:
        return self._list(
            models.User, entities.User,
            models.User.is_healthcare_professional.is_(False),
            order_by=(models.User.created_at,),
        )

    def delete_user(self, user_id: str) -> None:
        if self._delete(models.User, user_id):
            logger.info(f"Deleted user {user_id} and owned rows")

    # ==================== HEALTH PROFILE ====================

    def get_health_profile(self, user_id: str) -> Optional[entities.HealthProfile]:
        found = self._list(
            models.HealthProfile, entities.HealthProfile,
            models.HealthProfile.user_id == user_id,
        )
        return found[0] if found else None

    def create_health_profile(self, data: Dict[str, Any]) -> entities.HealthProfile:
        return self._insert(models.HealthProfile, entities.HealthProfile, data)

    def update_health_profile(self, user_id: str, updates: Dict[str, Any]) -> entities.HealthProfile:
        profile = self.get_health_profile(user_id)
        if profile is None:
            raise NotFoundError("Health profile", user_id)
        return self._update(models.HealthProfile, entities.HealthProfile, "Health profile", profile.id, updates)

    # ==================== MEDICATIONS ====================

    def get_medications(self, user_id: str) -> List[entities.Medication]:
        return self._list(models.Medication, entities.Medication, models.Medication.user_id == user_id)

    def get_active_medications(self, user_id: str) -> List[entities.Medication]:
        return self._list(
            models.Medication, entities.Medication,
            models.Medication.user_id == user_id,
            models.Medication.is_active.is_(True),
        )

    def get_medication(self, medication_id: int) -> Optional[entities.Medication]:
        return self._get(models.Medication, entities.Medication, medication_id)

    def create_medication(self, data: Dict[str, Any]) -> entities.Medication:
        return self._insert(models.Medication, entities.Medication, data)

    def update_medication(self, medication_id: int, updates: Dict[str, Any]) -> entities.Medication:
        return self._update(models.Medication, entities.Medication, "Medication", medication_id, updates)

    def delete_medication(self, medication_id: int) -> None:
        self._delete(models.Medication, medication_id)

    # ==================== MEDICATION LOGS ====================

    def get_medication_logs(
        self,
        user_id: str,
        medication_id: Optional[int] = None
    ) -> List[entities.MedicationLog]:
        criteria = [models.MedicationLog.user_id == user_id]
        if medication_id is not None:
            criteria.append(models.MedicationLog.medication_id == medication_id)
        return self._list(models.MedicationLog, entities.MedicationLog, *criteria)

    def create_medication_log(self, data: Dict[str, Any]) -> entities.MedicationLog:
        return self._insert(models.MedicationLog, entities.MedicationLog, data)

    def get_medication_logs_with_names(
        self,
        user_id: str
    ) -> List[Tuple[entities.MedicationLog, entities.Medication]]:
        with self._session() as db:
            rows = (
                db.query(models.MedicationLog, models.Medication)
                .join(models.Medication, models.MedicationLog.medication_id == models.Medication.id)
                .filter(models.MedicationLog.user_id == user_id)
                .order_by(models.MedicationLog.id)
                .all()
            )
            return [
                (entities.MedicationLog.model_validate(log), entities.Medication.model_validate(med))
                for log, med in rows
            ]

    # ==================== SYMPTOMS ====================

    def get_symptoms(self, user_id: str) -> List[entities.Symptom]:
        return self._list(models.Symptom, entities.Symptom, models.Symptom.user_id == user_id)

    def get_symptom(self, symptom_id: int) -> Optional[entities.Symptom]:
        return self._get(models.Symptom, entities.Symptom, symptom_id)

    def create_symptom(self, data: Dict[str, Any]) -> entities.Symptom:
        return self._insert(models.Symptom, entities.Symptom, data)

    def update_symptom(self, symptom_id: int, updates: Dict[str, Any]) -> entities.Symptom:
        return self._update(models.Symptom, entities.Symptom, "Symptom", symptom_id, updates)

    def delete_symptom(self, symptom_id: int) -> None:
        self._delete(models.Symptom, symptom_id)

    # ==================== APPOINTMENTS ====================

    def get_appointments(self, user_id: str) -> List[entities.Appointment]:
        return self._list(models.Appointment, entities.Appointment, models.Appointment.user_id == user_id)

    def get_appointment(self, appointment_id: int) -> Optional[entities.Appointment]:
        return self._get(models.Appointment, entities.Appointment, appointment_id)

    def get_upcoming_appointments(
        self,
        user_id: str,
        now: Optional[datetime] = None
    ) -> List[entities.Appointment]:
        return self._list(
            models.Appointment, entities.Appointment,
            models.Appointment.user_id == user_id,
            models.Appointment.status == models.AppointmentStatus.SCHEDULED.value,
            models.Appointment.appointment_date >= (now or datetime.utcnow()),
        )

    def get_appointments_by_date(
        self,
        day: Optional[date] = None,
        user_id: Optional[str] = None
    ) -> List[entities.Appointment]:
        criteria = []
        if user_id:
            criteria.append(models.Appointment.user_id == user_id)
        if day is not None:
            start, end = _day_window(day)
            criteria.append(models.Appointment.appointment_date >= start)
            criteria.append(models.Appointment.appointment_date < end)
        return self._list(
            models.Appointment, entities.Appointment, *criteria,
            order_by=(models.Appointment.appointment_date, models.Appointment.id),
        )

    def create_appointment(self, data: Dict[str, Any]) -> entities.Appointment:
        return self._insert(models.Appointment, entities.Appointment, data)

    def update_appointment(self, appointment_id: int, updates: Dict[str, Any]) -> entities.Appointment:
        return self._update(models.Appointment, entities.Appointment, "Appointment", appointment_id, updates)

    def delete_appointment(self, appointment_id: int) -> None:
        # Transcriptions keep their row; the FK is SET NULL
        self._delete(models.Appointment, appointment_id)

    # ==================== HEALTH METRICS ====================

    def get_health_metrics(self, user_id: str, type: Optional[str] = None) -> List[entities.HealthMetric]:
        criteria = [models.HealthMetric.user_id == user_id]
        if type:
            criteria.append(models.HealthMetric.type == type)
        return self._list(models.HealthMetric, entities.HealthMetric, *criteria)

    def create_health_metric(self, data: Dict[str, Any]) -> entities.HealthMetric:
        return self._insert(models.HealthMetric, entities.HealthMetric, data)

    # ==================== AI INSIGHTS ====================

    def get_ai_insights(self, user_id: str) -> List[entities.AiInsight]:
        return self._list(models.AiInsight, entities.AiInsight, models.AiInsight.user_id == user_id)

    def get_ai_insight(self, insight_id: int) -> Optional[entities.AiInsight]:
        return self._get(models.AiInsight, entities.AiInsight, insight_id)

    def create_ai_insight(self, data: Dict[str, Any]) -> entities.AiInsight:
        return self._insert(models.AiInsight, entities.AiInsight, data)

    def mark_insight_as_read(self, insight_id: int) -> None:
        self._update(models.AiInsight, entities.AiInsight, "AI insight", insight_id, {"is_read": True})

    # ==================== REMINDERS ====================

    def get_reminders(self, user_id: str) -> List[entities.Reminder]:
        return self._list(models.Reminder, entities.Reminder, models.Reminder.user_id == user_id)

    def get_reminder(self, reminder_id: int) -> Optional[entities.Reminder]:
        return self._get(models.Reminder, entities.Reminder, reminder_id)

    def get_today_reminders(self, user_id: str, now: Optional[datetime] = None) -> List[entities.Reminder]:
        start, end = _day_window((now or datetime.utcnow()).date())
        return self._list(
            models.Reminder, entities.Reminder,
            models.Reminder.user_id == user_id,
            models.Reminder.is_completed.is_(False),
            models.Reminder.scheduled_for >= start,
            models.Reminder.scheduled_for < end,
        )

    def create_reminder(self, data: Dict[str, Any]) -> entities.Reminder:
        return self._insert(models.Reminder, entities.Reminder, data)

    def mark_reminder_completed(self, reminder_id: int) -> None:
        self._update(models.Reminder, entities.Reminder, "Reminder", reminder_id, {"is_completed": True})

    # ==================== HEALTH REPORTS ====================

    def get_health_reports(self, user_id: str) -> List[entities.HealthReport]:
        return self._list(models.HealthReport, entities.HealthReport, models.HealthReport.user_id == user_id)

    def create_health_report(self, data: Dict[str, Any]) -> entities.HealthReport:
        return self._insert(models.HealthReport, entities.HealthReport, data)

    # ==================== TRANSCRIPTIONS ====================

    def _newest_transcriptions(self, *criteria) -> List[entities.Transcription]:
        return self._list(
            models.Transcription, entities.Transcription, *criteria,
            order_by=(desc(models.Transcription.recorded_at), desc(models.Transcription.id)),
        )

    def get_transcriptions(self, user_id: str) -> List[entities.Transcription]:
        return self._newest_transcriptions(models.Transcription.user_id == user_id)

    def get_transcription(self, transcription_id: int) -> Optional[entities.Transcription]:
        return self._get(models.Transcription, entities.Transcription, transcription_id)

    def get_transcriptions_by_date(self, user_id: str, day: date) -> List[entities.Transcription]:
        start, end = _day_window(day)
        return self._newest_transcriptions(
            models.Transcription.user_id == user_id,
            models.Transcription.recorded_at >= start,
            models.Transcription.recorded_at < end,
        )

    def create_transcription(self, data: Dict[str, Any]) -> entities.Transcription:
        return self._insert(models.Transcription, entities.Transcription, data)

    def update_transcription(self, transcription_id: int, updates: Dict[str, Any]) -> entities.Transcription:
        return self._update(
            models.Transcription, entities.Transcription, "Transcription", transcription_id, updates
        )

    def delete_transcription(self, transcription_id: int) -> None:
        self._delete(models.Transcription, transcription_id)

    # ==================== NOTIFICATIONS ====================

    _NEWEST_FIRST = (desc(models.Notification.created_at), desc(models.Notification.id))

    def get_notifications(self, user_id: str, limit: int = 50) -> List[entities.Notification]:
        with self._session() as db:
            rows = (
                db.query(models.Notification)
                .filter(models.Notification.user_id == user_id)
                .order_by(*self._NEWEST_FIRST)
                .limit(limit)
                .all()
            )
            return [entities.Notification.model_validate(row) for row in rows]

    def get_unread_notifications(self, user_id: str) -> List[entities.Notification]:
        return self._list(
            models.Notification, entities.Notification,
            models.Notification.user_id == user_id,
            models.Notification.is_read.is_(False),
            order_by=self._NEWEST_FIRST,
        )

    def get_notification(self, notification_id: int) -> Optional[entities.Notification]:
        return self._get(models.Notification, entities.Notification, notification_id)

    def create_notification(self, data: Dict[str, Any]) -> entities.Notification:
        return self._insert(models.Notification, entities.Notification, data)

    def mark_notification_as_read(self, notification_id: int) -> None:
        self._update(
            models.Notification, entities.Notification, "Notification", notification_id,
            {"is_read": True, "read_at": datetime.utcnow()}
        )

    def mark_all_notifications_as_read(self, user_id: str) -> None:
        with self._session() as db:
            db.query(models.Notification).filter(
                models.Notification.user_id == user_id,
                models.Notification.is_read.is_(False),
            ).update(
                {models.Notification.is_read: True, models.Notification.read_at: datetime.utcnow()},
                synchronize_session=False,
            )

    def delete_notification(self, notification_id: int) -> None:
        self._delete(models.Notification, notification_id)

    def get_scheduled_notifications(self, now: datetime) -> List[entities.Notification]:
        return self._list(
            models.Notification, entities.Notification,
            models.Notification.is_read.is_(False),
            models.Notification.scheduled_for.isnot(None),
            models.Notification.scheduled_for >= now,
        )

    # ==================== NOTIFICATION SETTINGS ====================

    def get_notification_settings(self, user_id: str) -> Optional[entities.NotificationSettings]:
        found = self._list(
            models.NotificationSettings, entities.NotificationSettings,
            models.NotificationSettings.user_id == user_id,
        )
        return found[0] if found else None

    def upsert_notification_settings(
        self,
        user_id: str,
        updates: Dict[str, Any]
    ) -> entities.NotificationSettings:
        existing = self.get_notification_settings(user_id)
        if existing is not None:
            return self._update(
                models.NotificationSettings, entities.NotificationSettings,
                "Notification settings", existing.id, updates
            )
        return self._insert(
            models.NotificationSettings,
            entities.NotificationSettings,
            {**updates, "user_id": user_id}
        )
