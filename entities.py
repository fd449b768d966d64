"""
Entity Types
Pydantic row types returned by every storage backend and served by the API
"""

from typing import Annotated, Optional, List, Dict, Any, Literal, Union
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict, AliasChoices
from pydantic.alias_generators import to_camel

from config import notification_defaults


class EntityModel(BaseModel):
    """Base for rows: snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ==================== USERS ====================

class User(EntityModel):
    """Full user row as stored"""
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    user_role: Optional[str] = "patient"
    is_healthcare_professional: bool = False
    license_number: Optional[str] = None
    specialty: Optional[str] = None
    institution: Optional[str] = None
    setup_step: int = 0
    setup_completed: bool = False
    current_view: str = "patient"
    created_at: datetime
    updated_at: datetime

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email or self.id


class _UserViewBase(EntityModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    user_role: Optional[str] = None
    setup_step: int = 0
    setup_completed: bool = False
    created_at: datetime
    updated_at: datetime


class PatientUser(_UserViewBase):
    """Session user without professional access"""
    kind: Literal["patient"] = "patient"
    is_healthcare_professional: Literal[False] = False
    current_view: Literal["patient"] = "patient"


class ProfessionalUser(_UserViewBase):
    """Session user with professional-only fields"""
    kind: Literal["professional"] = "professional"
    is_healthcare_professional: Literal[True] = True
    license_number: Optional[str] = None
    specialty: Optional[str] = None
    institution: Optional[str] = None
    current_view: Literal["patient", "professional"] = "patient"


UserView = Annotated[Union[PatientUser, ProfessionalUser], Field(discriminator="kind")]


def to_user_view(user: User) -> Union[PatientUser, ProfessionalUser]:
    """Narrow a stored user to the variant its role allows"""
    data = user.model_dump()
    if user.is_healthcare_professional:
        data.pop("is_healthcare_professional")
        return ProfessionalUser(**data)

    for key in ("is_healthcare_professional", "license_number", "specialty", "institution"):
        data.pop(key)
    # A demoted professional may still have "professional" persisted
    data["current_view"] = "patient"
    return PatientUser(**data)


class HealthProfile(EntityModel):
    id: int
    user_id: str
    date_of_birth: Optional[date] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    allergies: List[str] = Field(default_factory=list)
    chronic_conditions: List[str] = Field(default_factory=list)
    preferred_pharmacy: Optional[str] = None
    insurance_provider: Optional[str] = None
    primary_care_provider: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ==================== MEDICATIONS ====================

class Medication(EntityModel):
    id: int
    user_id: str
    name: str
    dosage: str
    frequency: str
    instructions: Optional[str] = None
    prescribed_by: Optional[str] = None
    purpose: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = True
    side_effects: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


def is_medication_current(medication: Medication, today: Optional[date] = None) -> bool:
    """
    A medication is current only if it is flagged active and its end date
    has not passed. Either signal alone marks it inactive.
    """
    today = today or datetime.utcnow().date()
    if not medication.is_active:
        return False
    return medication.end_date is None or medication.end_date >= today


class MedicationLog(EntityModel):
    id: int
    user_id: str
    medication_id: int
    taken_at: datetime
    dosage_taken: Optional[str] = None
    notes: Optional[str] = None
    missed: bool = False
    created_at: datetime


# ==================== SYMPTOMS / APPOINTMENTS / METRICS ====================

class Symptom(EntityModel):
    id: int
    user_id: str
    name: str
    severity: int
    location: Optional[str] = None
    duration: Optional[str] = None
    triggers: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    occurred_at: datetime
    resolved_at: Optional[datetime] = None
    created_at: datetime


class Appointment(EntityModel):
    id: int
    user_id: str
    title: str
    provider: str
    type: Optional[str] = None
    location: Optional[str] = None
    appointment_date: datetime
    duration: Optional[int] = None
    notes: Optional[str] = None
    status: str = "scheduled"
    outcome: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class HealthMetric(EntityModel):
    id: int
    user_id: str
    type: str
    value: str
    unit: Optional[str] = None
    measured_at: datetime
    notes: Optional[str] = None
    created_at: datetime


# ==================== INSIGHTS / REMINDERS / REPORTS ====================

class AiInsight(EntityModel):
    id: int
    user_id: str
    type: str
    title: str
    content: str
    confidence: Optional[int] = None
    data_points: Optional[Dict[str, Any]] = Field(default_factory=dict)
    is_read: bool = False
    created_at: datetime


class Reminder(EntityModel):
    id: int
    user_id: str
    type: str
    title: str
    description: Optional[str] = None
    scheduled_for: datetime
    is_completed: bool = False
    reminder_time: Optional[str] = None
    related_id: Optional[int] = None
    created_at: datetime


class HealthReport(EntityModel):
    id: int
    user_id: str
    title: str
    content: Dict[str, Any]
    generated_at: datetime
    period_start: datetime
    period_end: datetime
    report_type: str
    file_url: Optional[str] = None


class Transcription(EntityModel):
    id: int
    user_id: str
    patient_id: Optional[str] = None
    appointment_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    transcript: str
    duration: int
    audio_file_name: Optional[str] = None
    audio_size_bytes: Optional[int] = None
    recorded_at: datetime
    created_at: datetime
    updated_at: datetime


# ==================== NOTIFICATIONS ====================

class Notification(EntityModel):
    id: int
    user_id: str
    type: str
    title: str
    message: str
    is_read: bool = False
    read_at: Optional[datetime] = None
    is_actionable: bool = False
    action_url: Optional[str] = None
    scheduled_for: Optional[datetime] = None
    # ORM rows expose the column as "extra"
    metadata: Optional[Dict[str, Any]] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("extra", "metadata"),
    )
    created_at: datetime


class NotificationSettings(EntityModel):
    id: int
    user_id: str
    medication_reminders: bool = notification_defaults.MEDICATION_REMINDERS
    appointment_reminders: bool = notification_defaults.APPOINTMENT_REMINDERS
    health_alerts: bool = notification_defaults.HEALTH_ALERTS
    ai_insights: bool = notification_defaults.AI_INSIGHTS
    weekly_reports: bool = notification_defaults.WEEKLY_REPORTS
    emergency_alerts: bool = notification_defaults.EMERGENCY_ALERTS
    reminder_time: str = notification_defaults.REMINDER_TIME
    reminder_frequency: str = notification_defaults.REMINDER_FREQUENCY
    email_notifications: bool = notification_defaults.EMAIL_NOTIFICATIONS
    push_notifications: bool = notification_defaults.PUSH_NOTIFICATIONS
    created_at: datetime
    updated_at: datetime


# ==================== AGGREGATES ====================

class TimelineEvent(EntityModel):
    """Uniform shape for the mixed dashboard feed"""
    id: int
    type: Literal["symptom", "medication", "appointment", "metric"]
    title: str
    description: str
    date: datetime
    severity: Optional[int] = None
    tags: List[str] = Field(default_factory=list)


class DashboardStats(EntityModel):
    days_tracking: int
    medications_active: int
    upcoming_appointments: int


class MedicationAdherence(EntityModel):
    medication_id: int
    days: int
    adherence: int  # percent
