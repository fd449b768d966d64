"""
Dashboard Service
Timeline and summary statistics computed from already-fetched rows
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import entities


logger = logging.getLogger(__name__)


def _symptom_event(symptom: entities.Symptom) -> entities.TimelineEvent:
    return entities.TimelineEvent(
        id=symptom.id,
        type="symptom",
        title=f"Symptom: {symptom.name}",
        description=symptom.notes or f"Severity: {symptom.severity}/10",
        date=symptom.occurred_at,
        severity=symptom.severity,
        tags=["symptom", *(symptom.triggers or [])],
    )


def _medication_event(
    log: entities.MedicationLog,
    medication: entities.Medication
) -> entities.TimelineEvent:
    if log.missed:
        description = "Missed dose"
    else:
        description = f"Taken: {log.dosage_taken or medication.dosage}"

    return entities.TimelineEvent(
        id=log.id,
        type="medication",
        title=f"Medication: {medication.name}",
        description=description,
        date=log.taken_at,
        tags=["medication", "missed" if log.missed else "taken"],
    )


def _appointment_event(appointment: entities.Appointment) -> entities.TimelineEvent:
    description = appointment.provider
    if appointment.outcome:
        description += f" - {appointment.outcome}"

    return entities.TimelineEvent(
        id=appointment.id,
        type="appointment",
        title=f"Appointment: {appointment.title}",
        description=description,
        date=appointment.appointment_date,
        tags=["appointment", appointment.type or "general"],
    )


def build_timeline(
    symptoms: Sequence[entities.Symptom],
    medication_logs: Sequence[Tuple[entities.MedicationLog, entities.Medication]],
    appointments: Sequence[entities.Appointment],
    limit: int = 10
) -> List[entities.TimelineEvent]:
    """
    Merge symptoms, medication logs and appointments into one feed.

    Args:
        symptoms: Symptom rows for the user
        medication_logs: (log, medication) pairs for the user
        appointments: Appointment rows for the user
        limit: Maximum number of events returned

    Returns:
        Events sorted newest first, at most ``limit`` long
    """
    events = [_symptom_event(s) for s in symptoms]
    events.extend(_medication_event(log, med) for log, med in medication_logs)
    events.extend(_appointment_event(a) for a in appointments)

    # sorted() is stable, so ties keep source order
    events = sorted(events, key=lambda e: e.date, reverse=True)
    return events[:max(limit, 0)]


def compute_dashboard_stats(
    user: Optional[entities.User],
    active_medications: Sequence[entities.Medication],
    upcoming_appointments: Sequence[entities.Appointment],
    now: Optional[datetime] = None
) -> entities.DashboardStats:
    """Counts shown on the patient dashboard header"""
    now = now or datetime.utcnow()

    days_tracking = 0
    if user is not None and user.created_at is not None:
        days_tracking = max((now - user.created_at).days, 0)

    return entities.DashboardStats(
        days_tracking=days_tracking,
        medications_active=len(active_medications),
        upcoming_appointments=len(upcoming_appointments),
    )
