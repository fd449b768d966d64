"""
Tests for Notifications API
===========================

Tests the notification list, read state and per-user settings.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


pytestmark = pytest.mark.api


def _create(client, headers, type="health_alert", title="Check in", **extra):
    return client.post(
        "/api/notifications",
        json={"type": type, "title": title, "message": f"{title} message", **extra},
        headers=headers,
    )


class TestNotifications:

    def test_create_and_list_newest_first(self, client: TestClient, patient_headers):
        first = _create(client, patient_headers, title="First")
        second = _create(client, patient_headers, title="Second", metadata={"source": "test"})

        assert first.status_code == status.HTTP_201_CREATED
        listed = client.get("/api/notifications", headers=patient_headers).json()
        assert [n["title"] for n in listed] == ["Second", "First"]
        assert listed[0]["metadata"] == {"source": "test"}
        assert second.json()["isRead"] is False

    def test_suppressed_by_settings(self, client: TestClient, patient_headers):
        client.put("/api/settings/notifications", json={"aiInsights": False}, headers=patient_headers)

        response = _create(client, patient_headers, type="ai_insight")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get("/api/notifications", headers=patient_headers).json() == []

    def test_emergency_bypasses_settings(self, client: TestClient, patient_headers):
        client.put(
            "/api/settings/notifications",
            json={"emergencyAlerts": False, "healthAlerts": False},
            headers=patient_headers,
        )

        response = _create(client, patient_headers, type="emergency_alert", title="Urgent")

        assert response.status_code == status.HTTP_201_CREATED

    def test_unknown_type(self, client: TestClient, patient_headers):
        assert _create(client, patient_headers, type="spam").status_code == status.HTTP_400_BAD_REQUEST

    def test_read_and_read_all(self, client: TestClient, patient_headers):
        one = _create(client, patient_headers, title="One").json()
        _create(client, patient_headers, title="Two")

        client.patch(f"/api/notifications/{one['id']}/read", headers=patient_headers)
        unread = client.get("/api/notifications/unread", headers=patient_headers).json()
        assert [n["title"] for n in unread] == ["Two"]

        response = client.patch("/api/notifications/read-all", headers=patient_headers)
        assert response.json() == {"success": True}
        assert client.get("/api/notifications/unread", headers=patient_headers).json() == []

    def test_read_missing_returns_404(self, client: TestClient, patient_headers):
        response = client.patch("/api/notifications/4242/read", headers=patient_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete(self, client: TestClient, patient_headers):
        note = _create(client, patient_headers).json()

        response = client.delete(f"/api/notifications/{note['id']}", headers=patient_headers)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get("/api/notifications", headers=patient_headers).json() == []


class TestNotificationSettings:

    def test_defaults_on_first_read(self, client: TestClient, patient_headers):
        response = client.get("/api/settings/notifications", headers=patient_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["medicationReminders"] is True
        assert data["weeklyReports"] is False
        assert data["reminderTime"] == "09:00"
        assert data["reminderFrequency"] == "daily"

    def test_partial_update(self, client: TestClient, patient_headers):
        response = client.put(
            "/api/settings/notifications",
            json={"weeklyReports": True, "reminderTime": "07:30", "pushNotifications": None},
            headers=patient_headers,
        )

        data = response.json()
        assert data["weeklyReports"] is True
        assert data["reminderTime"] == "07:30"
        assert data["pushNotifications"] is True
        assert data["healthAlerts"] is True

    def test_invalid_reminder_time(self, client: TestClient, patient_headers):
        response = client.put("/api/settings/notifications", json={"reminderTime": "25:00"}, headers=patient_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
