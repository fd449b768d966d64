"""
Tests for Appointments API
==========================

The calendar is professional-only and shared across patients.
"""

import pytest
from datetime import datetime, timedelta
from fastapi import status
from fastapi.testclient import TestClient


pytestmark = pytest.mark.api


def _schedule(client, headers, when, user_id=None, **extra):
    body = {"title": "Follow-up", "provider": "Dr. Smith", "appointmentDate": when, **extra}
    if user_id:
        body["userId"] = user_id
    return client.post("/api/appointments", json=body, headers=headers)


class TestAppointments:

    def test_date_filter(self, client: TestClient, professional_headers, patient, other_patient):
        _schedule(client, professional_headers, "2024-06-01T15:00:00", user_id=patient.id)
        _schedule(client, professional_headers, "2024-06-01T09:00:00", user_id=other_patient.id)
        _schedule(client, professional_headers, "2024-06-02T00:00:00", user_id=patient.id)

        june_first = client.get("/api/appointments?date=2024-06-01", headers=professional_headers)
        june_second = client.get("/api/appointments?date=2024-06-02", headers=professional_headers)
        everything = client.get("/api/appointments", headers=professional_headers)

        assert june_first.status_code == status.HTTP_200_OK
        assert [a["appointmentDate"] for a in june_first.json()] == ["2024-06-01T09:00:00", "2024-06-01T15:00:00"]
        assert len(june_second.json()) == 1
        assert len(everything.json()) == 3

    def test_invalid_date(self, client: TestClient, professional_headers):
        response = client.get("/api/appointments?date=June-first", headers=professional_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_patients_forbidden(self, client: TestClient, patient_headers):
        response = client.get("/api/appointments", headers=patient_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["message"] == "Healthcare professional access required"

    def test_create_for_patient_sends_reminder(self, client: TestClient, professional_headers, patient_headers, patient):
        when = datetime.utcnow() + timedelta(days=3)

        response = _schedule(client, professional_headers, when.isoformat(), user_id=patient.id)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["userId"] == patient.id
        assert response.json()["status"] == "scheduled"

        notifications = client.get("/api/notifications", headers=patient_headers).json()
        assert [n["type"] for n in notifications] == ["appointment_reminder"]
        assert notifications[0]["message"] == "You have an appointment tomorrow: Follow-up with Dr. Smith"

    def test_cancelled_appointment_has_no_reminder(self, client: TestClient, professional_headers, patient_headers, patient):
        _schedule(client, professional_headers, "2030-01-01T10:00:00", user_id=patient.id, status="cancelled")
        assert client.get("/api/notifications", headers=patient_headers).json() == []

    def test_defaults_to_caller(self, client: TestClient, professional_headers, professional):
        response = _schedule(client, professional_headers, "2030-01-01T10:00:00")
        assert response.json()["userId"] == professional.id

    def test_unknown_patient(self, client: TestClient, professional_headers):
        response = _schedule(client, professional_headers, "2030-01-01T10:00:00", user_id="nobody")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_invalid_status(self, client: TestClient, professional_headers):
        response = _schedule(client, professional_headers, "2030-01-01T10:00:00", status="postponed")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_update_and_delete(self, client: TestClient, professional_headers, patient):
        appointment = _schedule(client, professional_headers, "2030-01-01T10:00:00", user_id=patient.id).json()

        updated = client.patch(
            f"/api/appointments/{appointment['id']}",
            json={"status": "completed", "outcome": "Blood pressure stable"},
            headers=professional_headers,
        )
        assert updated.json()["status"] == "completed"
        assert updated.json()["outcome"] == "Blood pressure stable"

        deleted = client.delete(f"/api/appointments/{appointment['id']}", headers=professional_headers)
        assert deleted.status_code == status.HTTP_204_NO_CONTENT

    def test_update_missing_returns_404(self, client: TestClient, professional_headers):
        response = client.patch("/api/appointments/999", json={"status": "completed"}, headers=professional_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
