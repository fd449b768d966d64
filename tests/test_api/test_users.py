"""
Tests for Users API
===================

Tests development login, the setup wizard, view switching and the patient list.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


pytestmark = pytest.mark.api


def _login(client, **body):
    return client.post("/api/auth/login", json={"email": "new.user@example.com", **body})


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


class TestLogin:

    def test_login_creates_user(self, client: TestClient):
        response = _login(client, firstName="New")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["tokenType"] == "bearer"
        assert data["userId"] == "new.user@example.com"

        me = client.get("/api/auth/user", headers=_auth(data["accessToken"]))
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["kind"] == "patient"
        assert me.json()["firstName"] == "New"
        assert "licenseNumber" not in me.json()

    def test_login_rejects_bad_email(self, client: TestClient):
        response = client.post("/api/auth/login", json={"email": "not-an-email"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_relogin_keeps_professional_role(self, client: TestClient, professional):
        token = client.post("/api/auth/login", json={"id": professional.id, "email": professional.email}).json()["accessToken"]

        me = client.get("/api/auth/user", headers=_auth(token)).json()
        assert me["kind"] == "professional"
        assert me["specialty"] == "Cardiology"

    def test_relogin_cannot_change_email_or_role(self, client: TestClient, storage, patient):
        response = client.post(
            "/api/auth/login",
            json={"id": patient.id, "email": "someone.else@example.com", "isHealthcareProfessional": True},
        )
        assert response.status_code == status.HTTP_200_OK

        stored = storage.get_user(patient.id)
        assert stored.email == "ada.patient@example.com"
        assert stored.is_healthcare_professional is False

        patients = client.get("/api/patients", headers=_auth(response.json()["accessToken"]))
        assert patients.status_code == status.HTTP_403_FORBIDDEN

    def test_login_with_taken_email_conflicts(self, client: TestClient, patient):
        response = client.post("/api/auth/login", json={"id": "someone-new", "email": patient.email})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"] is True

    @pytest.mark.unit
    def test_login_off_by_default(self):
        from config import Settings
        assert Settings().DEV_LOGIN_ENABLED is False

    def test_login_disabled(self, client: TestClient, app):
        app.state.settings = app.state.settings.model_copy(update={"DEV_LOGIN_ENABLED": False})
        assert _login(client).status_code == status.HTTP_404_NOT_FOUND

    def test_token_for_deleted_user(self, client: TestClient, storage, patient, patient_headers):
        storage.delete_user(patient.id)

        response = client.get("/api/auth/user", headers=patient_headers)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestSetupWizard:

    def test_professional_setup_flow(self, client: TestClient, patient_headers):
        role = client.post(
            "/api/setup/role",
            json={"userRole": "professional"},
            headers=patient_headers,
        )
        assert role.json()["kind"] == "professional"
        assert role.json()["setupStep"] == 1

        profile = client.post(
            "/api/setup/profile",
            json={"firstName": "Ada", "lastName": "Lovelace"},
            headers=patient_headers,
        )
        assert profile.json()["setupStep"] == 2

        details = client.post(
            "/api/setup/professional",
            json={"licenseNumber": "MD-1", "specialty": "Neurology", "institution": "General Hospital"},
            headers=patient_headers,
        )
        assert details.json()["specialty"] == "Neurology"
        assert details.json()["setupStep"] == 3

        done = client.post("/api/setup/complete", headers=patient_headers)
        assert done.json()["setupCompleted"] is True

    def test_patient_cannot_submit_professional_details(self, client: TestClient, patient_headers):
        response = client.post(
            "/api/setup/professional",
            json={"licenseNumber": "MD-1", "specialty": "Neurology"},
            headers=patient_headers,
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestSwitchView:

    def test_professional_can_switch(self, client: TestClient, professional_headers):
        response = client.post("/api/user/switch-view", json={"view": "professional"}, headers=professional_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["currentView"] == "professional"

    def test_patient_cannot_switch_to_professional(self, client: TestClient, patient_headers):
        response = client.post("/api/user/switch-view", json={"view": "professional"}, headers=patient_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_view(self, client: TestClient, professional_headers):
        response = client.post("/api/user/switch-view", json={"view": "admin"}, headers=professional_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestPatients:

    def test_professional_lists_patients(self, client: TestClient, professional_headers, patient, other_patient):
        response = client.get("/api/patients", headers=professional_headers)

        assert response.status_code == status.HTTP_200_OK
        assert {p["id"] for p in response.json()} == {patient.id, other_patient.id}
        assert all(p["kind"] == "patient" for p in response.json())

    def test_patient_forbidden(self, client: TestClient, patient_headers):
        assert client.get("/api/patients", headers=patient_headers).status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.unit
def test_display_name_falls_back_to_email_then_id():
    from datetime import datetime
    import entities

    stamp = datetime(2024, 6, 1)
    named = entities.User(id="u1", email="u1@example.com", first_name="Ada", last_name="Lovelace", created_at=stamp, updated_at=stamp)
    unnamed = entities.User(id="u2", email="u2@example.com", created_at=stamp, updated_at=stamp)
    bare = entities.User(id="u3", created_at=stamp, updated_at=stamp)

    assert named.display_name == "Ada Lovelace"
    assert unnamed.display_name == "u2@example.com"
    assert bare.display_name == "u3"
