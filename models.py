"""
Database Models
SQLAlchemy ORM models for CareTrack
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Date, Index, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum

from database import Base
from config import TableNames, notification_defaults


# ==================== ENUMS ====================

class AppointmentStatus(str, PyEnum):
    """Lifecycle of an appointment; transitions are not guarded"""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ViewMode(str, PyEnum):
    """Dashboard a user is currently looking at"""
    PATIENT = "patient"
    PROFESSIONAL = "professional"


class NotificationType(str, PyEnum):
    """Notification categories"""
    MEDICATION_REMINDER = "medication_reminder"
    APPOINTMENT_REMINDER = "appointment_reminder"
    HEALTH_ALERT = "health_alert"
    AI_INSIGHT = "ai_insight"
    WEEKLY_REPORT = "weekly_report"
    EMERGENCY_ALERT = "emergency_alert"
    TRANSCRIPTION_COMPLETE = "transcription_complete"


def _owner_fk() -> Column:
    return Column(
        String(255),
        ForeignKey(f"{TableNames.USERS}.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )


# ==================== MODELS ====================

class User(Base):
    """Account holder; patients and healthcare professionals share this table"""
    __tablename__ = TableNames.USERS

    id = Column(String(255), primary_key=True)
    email = Column(String(255), unique=True, index=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    profile_image_url = Column(String(500))

    # Role / setup wizard
    user_role = Column(String(50), default="patient")
    is_healthcare_professional = Column(Boolean, default=False, nullable=False)
    license_number = Column(String(100))
    specialty = Column(String(100))
    institution = Column(String(255))
    setup_step = Column(Integer, default=0, nullable=False)
    setup_completed = Column(Boolean, default=False, nullable=False)
    current_view = Column(String(20), default=ViewMode.PATIENT.value, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    health_profile = relationship("HealthProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    medications = relationship("Medication", back_populates="user", cascade="all, delete-orphan")
    medication_logs = relationship("MedicationLog", back_populates="user", cascade="all, delete-orphan")
    symptoms = relationship("Symptom", back_populates="user", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="user", cascade="all, delete-orphan")
    health_metrics = relationship("HealthMetric", cascade="all, delete-orphan")
    ai_insights = relationship("AiInsight", cascade="all, delete-orphan")
    reminders = relationship("Reminder", cascade="all, delete-orphan")
    health_reports = relationship("HealthReport", cascade="all, delete-orphan")
    transcriptions = relationship("Transcription", cascade="all, delete-orphan", foreign_keys="Transcription.user_id")
    notifications = relationship("Notification", cascade="all, delete-orphan")
    notification_settings = relationship("NotificationSettings", uselist=False, cascade="all, delete-orphan")


class HealthProfile(Base):
    """Optional 1:1 health extension of a user"""
    __tablename__ = TableNames.HEALTH_PROFILES

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        String(255),
        ForeignKey(f"{TableNames.USERS}.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    date_of_birth = Column(Date)
    emergency_contact = Column(String(255))
    emergency_phone = Column(String(50))
    allergies = Column(JSON, default=list)
    chronic_conditions = Column(JSON, default=list)
    preferred_pharmacy = Column(String(255))
    insurance_provider = Column(String(255))
    primary_care_provider = Column(String(255))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="health_profile")


class Medication(Base):
    """Current and past medications"""
    __tablename__ = TableNames.MEDICATIONS

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()

    name = Column(String(255), nullable=False)
    dosage = Column(String(100), nullable=False)  # e.g., "500mg"
    frequency = Column(String(100), nullable=False)  # "twice daily", "once weekly"
    instructions = Column(Text)
    prescribed_by = Column(String(255))
    purpose = Column(Text)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date)  # null for ongoing medications
    is_active = Column(Boolean, default=True, nullable=False)
    side_effects = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="medications")
    logs = relationship("MedicationLog", back_populates="medication", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_medications_user_active", "user_id", "is_active"),
    )


class MedicationLog(Base):
    """One row per dose event, append-only"""
    __tablename__ = TableNames.MEDICATION_LOGS

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()
    medication_id = Column(
        Integer,
        ForeignKey(f"{TableNames.MEDICATIONS}.id", ondelete="CASCADE"),
        nullable=False
    )

    taken_at = Column(DateTime, nullable=False)
    dosage_taken = Column(String(100))
    notes = Column(Text)
    missed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="medication_logs")
    medication = relationship("Medication", back_populates="logs")

    __table_args__ = (
        Index("ix_medication_logs_user_taken", "user_id", "taken_at"),
    )


class Symptom(Base):
    """Symptom occurrences on a 1-10 severity scale"""
    __tablename__ = TableNames.SYMPTOMS

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()

    name = Column(String(255), nullable=False)
    severity = Column(Integer, nullable=False)
    location = Column(String(100))
    duration = Column(String(100))
    triggers = Column(JSON, default=list)
    notes = Column(Text)

    occurred_at = Column(DateTime, nullable=False)
    resolved_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="symptoms")


class Appointment(Base):
    """Medical appointments"""
    __tablename__ = TableNames.APPOINTMENTS

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()

    title = Column(String(255), nullable=False)
    provider = Column(String(255), nullable=False)
    type = Column(String(50))  # "checkup", "specialist", "follow-up"
    location = Column(String(255))
    appointment_date = Column(DateTime, nullable=False)
    duration = Column(Integer)  # minutes
    notes = Column(Text)
    status = Column(String(20), default=AppointmentStatus.SCHEDULED.value, nullable=False)
    outcome = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="appointments")

    __table_args__ = (
        Index("ix_appointments_user_date", "user_id", "appointment_date"),
    )


class HealthMetric(Base):
    """Generic measurement; value kept as text so units can vary"""
    __tablename__ = TableNames.HEALTH_METRICS

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()

    type = Column(String(50), nullable=False)  # blood_pressure, weight, glucose
    value = Column(String(100), nullable=False)
    unit = Column(String(20))
    measured_at = Column(DateTime, nullable=False)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)


class AiInsight(Base):
    """Generated insight; only is_read changes after creation"""
    __tablename__ = TableNames.AI_INSIGHTS

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()

    type = Column(String(30), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    confidence = Column(Integer)  # 1-100
    data_points = Column(JSON, default=dict)
    is_read = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)


class Reminder(Base):
    """One-shot reminder"""
    __tablename__ = TableNames.REMINDERS

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()

    type = Column(String(30), nullable=False)  # medication, appointment, health_check
    title = Column(String(255), nullable=False)
    description = Column(Text)
    scheduled_for = Column(DateTime, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    reminder_time = Column(String(5))  # "HH:MM"
    related_id = Column(Integer)

    created_at = Column(DateTime, default=datetime.utcnow)


class HealthReport(Base):
    """Generated provider handover snapshot"""
    __tablename__ = TableNames.HEALTH_REPORTS

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()

    title = Column(String(255), nullable=False)
    content = Column(JSON, nullable=False)
    generated_at = Column(DateTime, default=datetime.utcnow)
    period_start = Column(DateTime, nullable=False)
    period_end = Column(DateTime, nullable=False)
    report_type = Column(String(30), nullable=False)  # summary, provider_handover, weekly, export
    file_url = Column(String(500))


class Transcription(Base):
    """Session recording notes; transcript is a placeholder, duration an estimate"""
    __tablename__ = TableNames.TRANSCRIPTIONS

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()
    patient_id = Column(String(255), ForeignKey(f"{TableNames.USERS}.id", ondelete="SET NULL"))
    appointment_id = Column(Integer, ForeignKey(f"{TableNames.APPOINTMENTS}.id", ondelete="SET NULL"))

    title = Column(String(255), nullable=False)
    description = Column(Text)
    transcript = Column(Text, nullable=False)
    duration = Column(Integer, nullable=False)  # seconds
    audio_file_name = Column(String(255))
    audio_size_bytes = Column(Integer)
    recorded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Notification(Base):
    """In-app notification; read_at is set exactly when is_read is true"""
    __tablename__ = TableNames.NOTIFICATIONS

    id = Column(Integer, primary_key=True, index=True)
    user_id = _owner_fk()

    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime)
    is_actionable = Column(Boolean, default=False, nullable=False)
    action_url = Column(String(500))
    scheduled_for = Column(DateTime)
    # "metadata" is reserved on declarative classes
    extra = Column("metadata", JSON, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )


class NotificationSettings(Base):
    """Per-user notification toggles"""
    __tablename__ = TableNames.NOTIFICATION_SETTINGS

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        String(255),
        ForeignKey(f"{TableNames.USERS}.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )

    medication_reminders = Column(Boolean, default=notification_defaults.MEDICATION_REMINDERS, nullable=False)
    appointment_reminders = Column(Boolean, default=notification_defaults.APPOINTMENT_REMINDERS, nullable=False)
    health_alerts = Column(Boolean, default=notification_defaults.HEALTH_ALERTS, nullable=False)
    ai_insights = Column(Boolean, default=notification_defaults.AI_INSIGHTS, nullable=False)
    weekly_reports = Column(Boolean, default=notification_defaults.WEEKLY_REPORTS, nullable=False)
    emergency_alerts = Column(Boolean, default=notification_defaults.EMERGENCY_ALERTS, nullable=False)
    reminder_time = Column(String(5), default=notification_defaults.REMINDER_TIME, nullable=False)
    reminder_frequency = Column(String(20), default=notification_defaults.REMINDER_FREQUENCY, nullable=False)
    email_notifications = Column(Boolean, default=notification_defaults.EMAIL_NOTIFICATIONS, nullable=False)
    push_notifications = Column(Boolean, default=notification_defaults.PUSH_NOTIFICATIONS, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
