"""
CareTrack API Client
Typed, cached access to the REST API over httpx
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import TypeAdapter

import entities
from client.query_cache import QueryCache, QueryKey


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiError(Exception):
    """Non-2xx response from the API"""

    def __init__(self, status_code: int, message: str, payload: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}
        super().__init__(f"{status_code}: {message}")


class UnauthorizedError(ApiError):
    """401 from the API; the token is missing, invalid or expired"""


def _wire(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset values and make dates JSON friendly"""
    return {
        key: value.isoformat() if isinstance(value, date) else value
        for key, value in data.items()
        if value is not None
    }


class CareTrackClient:
    """
    Entry point for API consumers.

    Usage:
        with httpx.Client(base_url="http://localhost:8000") as http:
            client = CareTrackClient(http)
            client.auth.login("ada@example.com")
            meds = client.medications.list()
    """

    def __init__(
        self,
        http: httpx.Client,
        token: Optional[str] = None,
        cache: Optional[QueryCache] = None,
        api_prefix: str = "/api"
    ):
        self.http = http
        self.token = token
        self.cache = cache or QueryCache()
        self.api_prefix = api_prefix.rstrip("/")

        self.auth = AuthApi(self)
        self.medications = MedicationsApi(self)
        self.symptoms = SymptomsApi(self)
        self.appointments = AppointmentsApi(self)
        self.dashboard = DashboardApi(self)
        self.insights = InsightsApi(self)
        self.reports = ReportsApi(self)
        self.notifications = NotificationsApi(self)
        self.settings = SettingsApi(self)
        self.transcriptions = TranscriptionsApi(self)
        self.patients = PatientsApi(self)

    # ==================== TRANSPORT ====================

    def request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Send one request and return decoded JSON (None for empty bodies).

        Raises:
            UnauthorizedError: on 401
            ApiError: on any other non-2xx status
        """
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = self.http.request(
            method,
            f"{self.api_prefix}{path}",
            json=json,
            params=_wire(params) if params else None,
            data=data,
            files=files,
            headers=headers,
        )

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = {"message": response.text}
            message = payload.get("message") if isinstance(payload, dict) else None
            message = message or response.reason_phrase
            logger.debug(f"{method} {path} failed: {response.status_code} {message}")
            error_cls = UnauthorizedError if response.status_code == 401 else ApiError
            raise error_cls(response.status_code, message, payload if isinstance(payload, dict) else None)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def query(self, key: QueryKey, path: str, model: Type[T], refresh: bool = False) -> T:
        """Cached GET parsed into model"""
        adapter = TypeAdapter(model)
        return self.cache.get_or_fetch(
            key,
            lambda: adapter.validate_python(self.request("GET", path, params=dict(key.params))),
            refresh=refresh,
        )

    def mutate(self, method: str, path: str, invalidates: List[str], **kwargs) -> Any:
        """Send a write and drop cached queries it may have changed"""
        result = self.request(method, path, **kwargs)
        self.cache.invalidate(*invalidates)
        return result


class _ResourceApi:

    def __init__(self, client: CareTrackClient):
        self.client = client


# ==================== RESOURCE APIS ====================

class AuthApi(_ResourceApi):

    def login(
        self,
        email: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        is_healthcare_professional: bool = False,
        user_id: Optional[str] = None
    ) -> str:
        """Development login; stores and returns the bearer token"""
        body = _wire({
            "id": user_id,
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
            "isHealthcareProfessional": is_healthcare_professional,
        })
        result = self.client.request("POST", "/auth/login", json=body)
        self.client.token = result["accessToken"]
        self.client.cache.clear()
        return self.client.token

    def logout(self) -> None:
        self.client.token = None
        self.client.cache.clear()

    def user(self, refresh: bool = False) -> entities.UserView:
        return self.client.query(QueryKey.of("auth/user"), "/auth/user", entities.UserView, refresh)

    def switch_view(self, view: str) -> entities.UserView:
        data = self.client.mutate("POST", "/user/switch-view", ["auth"], json={"view": view})
        return TypeAdapter(entities.UserView).validate_python(data)


class MedicationsApi(_ResourceApi):
    INVALIDATES = ["medications", "dashboard"]

    def list(self, refresh: bool = False) -> List[entities.Medication]:
        return self.client.query(QueryKey.of("medications"), "/medications", List[entities.Medication], refresh)

    def create(self, **fields) -> entities.Medication:
        """Fields use the API's camelCase names, e.g. startDate"""
        data = self.client.mutate("POST", "/medications", self.INVALIDATES, json=_wire(fields))
        return entities.Medication.model_validate(data)

    def update(self, medication_id: int, **fields) -> entities.Medication:
        data = self.client.mutate("PATCH", f"/medications/{medication_id}", self.INVALIDATES, json=_wire(fields))
        return entities.Medication.model_validate(data)

    def delete(self, medication_id: int) -> None:
        self.client.mutate("DELETE", f"/medications/{medication_id}", self.INVALIDATES)

    def logs(self, medication_id: int, refresh: bool = False) -> List[entities.MedicationLog]:
        return self.client.query(
            QueryKey.of(f"medications/{medication_id}/logs"),
            f"/medications/{medication_id}/logs",
            List[entities.MedicationLog],
            refresh,
        )

    def log_dose(self, medication_id: int, **fields) -> entities.MedicationLog:
        data = self.client.mutate(
            "POST", f"/medications/{medication_id}/logs",
            self.INVALIDATES + ["notifications"],
            json=_wire(fields),
        )
        return entities.MedicationLog.model_validate(data)

    def adherence(self, medication_id: int, days: int = 7) -> entities.MedicationAdherence:
        return self.client.query(
            QueryKey.of(f"medications/{medication_id}/adherence", days=days),
            f"/medications/{medication_id}/adherence",
            entities.MedicationAdherence,
        )


class SymptomsApi(_ResourceApi):
    INVALIDATES = ["symptoms", "dashboard", "notifications"]

    def list(self, refresh: bool = False) -> List[entities.Symptom]:
        return self.client.query(QueryKey.of("symptoms"), "/symptoms", List[entities.Symptom], refresh)

    def create(self, **fields) -> entities.Symptom:
        data = self.client.mutate("POST", "/symptoms", self.INVALIDATES, json=_wire(fields))
        return entities.Symptom.model_validate(data)

    def update(self, symptom_id: int, **fields) -> entities.Symptom:
        data = self.client.mutate("PATCH", f"/symptoms/{symptom_id}", self.INVALIDATES, json=_wire(fields))
        return entities.Symptom.model_validate(data)

    def delete(self, symptom_id: int) -> None:
        self.client.mutate("DELETE", f"/symptoms/{symptom_id}", self.INVALIDATES)


class AppointmentsApi(_ResourceApi):
    INVALIDATES = ["appointments", "dashboard", "notifications"]

    def list(self, day: Optional[date] = None, refresh: bool = False) -> List[entities.Appointment]:
        return self.client.query(
            QueryKey.of("appointments", date=day.isoformat() if day else None),
            "/appointments",
            List[entities.Appointment],
            refresh,
        )

    def create(self, **fields) -> entities.Appointment:
        data = self.client.mutate("POST", "/appointments", self.INVALIDATES, json=_wire(fields))
        return entities.Appointment.model_validate(data)

    def update(self, appointment_id: int, **fields) -> entities.Appointment:
        data = self.client.mutate("PATCH", f"/appointments/{appointment_id}", self.INVALIDATES, json=_wire(fields))
        return entities.Appointment.model_validate(data)

    def delete(self, appointment_id: int) -> None:
        self.client.mutate("DELETE", f"/appointments/{appointment_id}", self.INVALIDATES)


class DashboardApi(_ResourceApi):

    def stats(self, refresh: bool = False) -> entities.DashboardStats:
        return self.client.query(QueryKey.of("dashboard/stats"), "/dashboard/stats", entities.DashboardStats, refresh)

    def timeline(self, limit: int = 10, refresh: bool = False) -> List[entities.TimelineEvent]:
        return self.client.query(
            QueryKey.of("dashboard/timeline", limit=limit),
            "/dashboard/timeline",
            List[entities.TimelineEvent],
            refresh,
        )

    def reminders(self, refresh: bool = False) -> List[entities.Reminder]:
        return self.client.query(
            QueryKey.of("dashboard/reminders"), "/dashboard/reminders", List[entities.Reminder], refresh
        )

    def complete_reminder(self, reminder_id: int) -> None:
        self.client.mutate("PATCH", f"/reminders/{reminder_id}/complete", ["dashboard", "reminders"])


class InsightsApi(_ResourceApi):

    def list(self, refresh: bool = False) -> List[entities.AiInsight]:
        return self.client.query(QueryKey.of("ai-insights"), "/ai-insights", List[entities.AiInsight], refresh)

    def generate(self) -> List[entities.AiInsight]:
        data = self.client.mutate("POST", "/ai-insights/generate", ["ai-insights", "notifications"])
        return TypeAdapter(List[entities.AiInsight]).validate_python(data)

    def mark_read(self, insight_id: int) -> None:
        self.client.mutate("PATCH", f"/ai-insights/{insight_id}/read", ["ai-insights"])

    def translate(self, term: str) -> Dict[str, str]:
        """{"plainLanguage": ..., "explanation": ...}"""
        return self.client.request("POST", "/translate-term", json={"term": term})


class ReportsApi(_ResourceApi):

    def list(self, refresh: bool = False) -> List[entities.HealthReport]:
        return self.client.query(QueryKey.of("reports"), "/reports", List[entities.HealthReport], refresh)

    def generate(self, period_start, period_end, report_type: Optional[str] = None) -> entities.HealthReport:
        body = _wire({"periodStart": period_start, "periodEnd": period_end, "reportType": report_type})
        data = self.client.mutate("POST", "/reports/generate", ["reports", "notifications"], json=body)
        return entities.HealthReport.model_validate(data)


class NotificationsApi(_ResourceApi):
    INVALIDATES = ["notifications"]

    def list(self, refresh: bool = False) -> List[entities.Notification]:
        return self.client.query(
            QueryKey.of("notifications"), "/notifications", List[entities.Notification], refresh
        )

    def unread(self, refresh: bool = False) -> List[entities.Notification]:
        return self.client.query(
            QueryKey.of("notifications/unread"), "/notifications/unread", List[entities.Notification], refresh
        )

    def create(self, **fields) -> Optional[entities.Notification]:
        """None when the user's settings suppress the notification"""
        data = self.client.mutate("POST", "/notifications", self.INVALIDATES, json=_wire(fields))
        return entities.Notification.model_validate(data) if data is not None else None

    def mark_read(self, notification_id: int) -> None:
        self.client.mutate("PATCH", f"/notifications/{notification_id}/read", self.INVALIDATES)

    def mark_all_read(self) -> None:
        self.client.mutate("PATCH", "/notifications/read-all", self.INVALIDATES)

    def delete(self, notification_id: int) -> None:
        self.client.mutate("DELETE", f"/notifications/{notification_id}", self.INVALIDATES)


class SettingsApi(_ResourceApi):

    def notifications(self, refresh: bool = False) -> entities.NotificationSettings:
        return self.client.query(
            QueryKey.of("settings/notifications"),
            "/settings/notifications",
            entities.NotificationSettings,
            refresh,
        )

    def update_notifications(self, **fields) -> entities.NotificationSettings:
        data = self.client.mutate("PUT", "/settings/notifications", ["settings"], json=_wire(fields))
        return entities.NotificationSettings.model_validate(data)


class TranscriptionsApi(_ResourceApi):
    INVALIDATES = ["transcriptions", "notifications"]

    def list(self, day: Optional[date] = None, refresh: bool = False) -> List[entities.Transcription]:
        return self.client.query(
            QueryKey.of("transcriptions", date=day.isoformat() if day else None),
            "/transcriptions",
            List[entities.Transcription],
            refresh,
        )

    def get(self, transcription_id: int) -> entities.Transcription:
        return self.client.query(
            QueryKey.of(f"transcriptions/{transcription_id}"),
            f"/transcriptions/{transcription_id}",
            entities.Transcription,
        )

    def upload(
        self,
        audio: bytes,
        title: str,
        filename: str = "recording.webm",
        content_type: str = "audio/webm",
        description: Optional[str] = None,
        patient_id: Optional[str] = None,
        appointment_id: Optional[int] = None
    ) -> entities.Transcription:
        form = _wire({
            "title": title,
            "description": description,
            "patientId": patient_id,
            "appointmentId": str(appointment_id) if appointment_id is not None else None,
        })
        data = self.client.mutate(
            "POST", "/transcriptions", self.INVALIDATES,
            data=form,
            files={"audio": (filename, audio, content_type)},
        )
        return entities.Transcription.model_validate(data)

    def update(self, transcription_id: int, **fields) -> entities.Transcription:
        data = self.client.mutate(
            "PATCH", f"/transcriptions/{transcription_id}", self.INVALIDATES, json=_wire(fields)
        )
        return entities.Transcription.model_validate(data)

    def delete(self, transcription_id: int) -> None:
        self.client.mutate("DELETE", f"/transcriptions/{transcription_id}", self.INVALIDATES)


class PatientsApi(_ResourceApi):

    def list(self, refresh: bool = False) -> List[entities.PatientUser]:
        return self.client.query(QueryKey.of("patients"), "/patients", List[entities.PatientUser], refresh)
