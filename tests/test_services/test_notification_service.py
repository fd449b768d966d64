"""
Tests for Notification Service
==============================

Tests settings gating, triggers, health monitors and scheduled dispatch.
"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock

from services.notification_service import (
    DispatchResult,
    LoggingDispatcher,
    NotificationDispatcher,
    NotificationService,
)


@pytest.fixture
def service(mem_storage):
    return NotificationService(mem_storage)


@pytest.fixture
def user(mem_storage):
    return mem_storage.upsert_user({"id": "patient-1", "email": "ada.patient@example.com"})


# ==================== SETTINGS ====================

class TestSettings:

    @pytest.mark.unit
    def test_defaults_created_on_first_read(self, service, mem_storage, user):
        assert mem_storage.get_notification_settings(user.id) is None

        settings = service.get_settings(user.id)

        assert settings.medication_reminders is True
        assert settings.weekly_reports is False
        assert mem_storage.get_notification_settings(user.id) is not None

    @pytest.mark.unit
    def test_disabled_type_is_suppressed(self, service, mem_storage, user):
        service.update_settings(user.id, {"health_alerts": False})

        result = service.trigger_health_alert(user.id, "Heads up", "Something happened")

        assert result is None
        assert mem_storage.get_notifications(user.id) == []

    @pytest.mark.unit
    def test_emergency_ignores_settings(self, service, user):
        service.update_settings(user.id, {"emergency_alerts": False, "health_alerts": False})

        alert = service.trigger_emergency_alert(user.id, "Call 911", "Severe symptoms reported")

        assert alert is not None
        assert alert.type == "emergency_alert"
        assert alert.metadata == {"priority": "emergency"}

    @pytest.mark.unit
    def test_transcription_complete_follows_ai_insights_flag(self, service, user):
        service.update_settings(user.id, {"ai_insights": False})
        assert service.trigger_transcription_complete(user.id, "Ada Lovelace", 300) is None


# ==================== TRIGGERS ====================

class TestTriggers:

    @pytest.mark.unit
    def test_medication_reminder(self, service, user):
        when = datetime(2024, 6, 1, 8, 0)
        note = service.trigger_medication_reminder(user.id, "Lisinopril", "10mg", when)

        assert note.title == "Time for Lisinopril"
        assert note.message == "Don't forget to take your 10mg of Lisinopril"
        assert note.scheduled_for == when
        assert note.is_actionable is True

    @pytest.mark.unit
    def test_appointment_reminder_scheduled_a_day_before(self, service, user):
        when = datetime(2024, 6, 10, 14, 30)
        note = service.trigger_appointment_reminder(user.id, "Cardiology follow-up", when, doctor_name="Dr. Smith")

        assert note.scheduled_for == when - timedelta(hours=24)
        assert note.message == "You have an appointment tomorrow: Cardiology follow-up with Dr. Smith"
        assert note.metadata["appointmentTime"] == when.isoformat()

    @pytest.mark.unit
    def test_weekly_report_needs_opt_in(self, service, user):
        assert service.trigger_weekly_report(user.id, "All good") is None

        service.update_settings(user.id, {"weekly_reports": True})
        assert service.trigger_weekly_report(user.id, "All good").action_url == "/reports"

    @pytest.mark.unit
    @pytest.mark.parametrize("duration,minutes", [(300, 5), (89, 1), (90, 2), (20, 0)])
    def test_transcription_minutes_rounded(self, service, user, duration, minutes):
        note = service.trigger_transcription_complete(user.id, "Ada Lovelace", duration)
        assert f"({minutes} minutes)" in note.message


# ==================== MONITORS ====================

class TestMonitors:

    @pytest.mark.unit
    def test_high_severity_alert(self, service, user):
        note = service.check_symptom_severity(user.id, "Chest pain", 8)

        assert note.title == "High Severity Symptom Alert"
        assert note.metadata == {"severity": "high"}

    @pytest.mark.unit
    def test_worsening_alert_needs_more_than_two_points(self, service, user):
        assert service.check_symptom_severity(user.id, "Headache", 5, previous_severity=3) is None

        note = service.check_symptom_severity(user.id, "Headache", 6, previous_severity=3)
        assert note.title == "Symptom Worsening Alert"
        assert "Current: 6/10, Previous: 3/10" in note.message

    @pytest.mark.unit
    def test_no_alert_for_mild_first_entry(self, service, user):
        assert service.check_symptom_severity(user.id, "Headache", 4) is None

    @pytest.mark.unit
    def test_low_adherence_alert(self, service, user):
        assert service.check_medication_adherence(user.id, "Lisinopril", 80) is None

        note = service.check_medication_adherence(user.id, "Lisinopril", 71)
        assert note.title == "Low Medication Adherence"
        assert "71%" in note.message


# ==================== DELIVERY ====================

class TestScheduledDispatch:

    @pytest.mark.unit
    def test_logging_dispatcher_handles_pending(self, mem_storage, user, now):
        service = NotificationService(mem_storage, dispatcher=LoggingDispatcher())
        service.trigger_medication_reminder(user.id, "Lisinopril", "10mg", now + timedelta(hours=1))

        results = service.process_scheduled_notifications(now=now)

        assert len(results) == 1
        assert results[0].channel == "log"

    @pytest.mark.unit
    def test_dispatch_failure_is_reported_not_raised(self, mem_storage, user, now):
        dispatcher = MagicMock(spec=NotificationDispatcher)
        dispatcher.dispatch.side_effect = RuntimeError("smtp down")
        dispatcher.channel = "email"
        service = NotificationService(mem_storage, dispatcher=dispatcher)
        note = service.trigger_medication_reminder(user.id, "Lisinopril", "10mg", now + timedelta(hours=1))

        results = service.process_scheduled_notifications(now=now)

        assert results == [DispatchResult(notification_id=note.id, delivered=False, channel="email", error="smtp down")]
