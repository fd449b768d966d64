"""
Tests for Insight, LLM and Report Services
==========================================

The language model is mocked; no network calls are made.
"""

import pytest
from datetime import datetime, date, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import requests

import entities
from config import Settings
from services.insight_service import (
    CONSULT_PROVIDER,
    UNABLE_TO_TRANSLATE,
    UNABLE_TO_SUMMARIZE,
    GeneratedInsight,
    InsightService,
    PlaceholderInsightEngine,
    collect_health_data,
    create_insight_engine,
    generate_and_store_insights,
)
from services.llm_service import LLMService, LLMServiceError
from services.notification_service import NotificationService
from services.report_service import ReportService, report_title


@pytest.fixture
def user(mem_storage):
    return mem_storage.upsert_user({"id": "patient-1", "email": "ada.patient@example.com"})


@pytest.fixture
def mock_llm():
    llm = MagicMock(spec=LLMService)
    llm.generate_json = AsyncMock()
    llm.generate = AsyncMock()
    return llm


@pytest.fixture
def seeded(mem_storage, user, now):
    """A week of records for one user"""
    med = mem_storage.create_medication({
        "user_id": user.id,
        "name": "Lisinopril",
        "dosage": "10mg",
        "frequency": "Once daily",
        "start_date": date(2024, 5, 1),
    })
    mem_storage.create_medication({
        "user_id": user.id,
        "name": "Ibuprofen",
        "dosage": "200mg",
        "frequency": "As needed",
        "start_date": date(2024, 4, 1),
        "is_active": False,
    })
    for days_ago in (1, 2):
        mem_storage.create_medication_log({
            "user_id": user.id,
            "medication_id": med.id,
            "taken_at": now - timedelta(days=days_ago),
        })
    mem_storage.create_symptom({
        "user_id": user.id,
        "name": "Headache",
        "severity": 4,
        "occurred_at": now - timedelta(days=1),
    })
    return med


# ==================== DATA COLLECTION ====================

class TestCollectHealthData:

    @pytest.mark.unit
    def test_active_medications_with_adherence(self, mem_storage, user, seeded, now):
        data = collect_health_data(mem_storage, user.id, now=now)

        assert [m["name"] for m in data["medications"]] == ["Lisinopril"]
        assert data["medications"][0]["adherence"] == 29
        assert data["medications"][0]["lastTaken"] == (now - timedelta(days=1)).isoformat()
        assert data["symptoms"][0]["name"] == "Headache"

    @pytest.mark.unit
    def test_all_medications_for_reports(self, mem_storage, user, seeded, now):
        data = collect_health_data(mem_storage, user.id, now=now, active_only=False)
        assert len(data["medications"]) == 2

    @pytest.mark.unit
    def test_end_dated_medication_is_not_current(self, mem_storage, user, seeded, now):
        mem_storage.create_medication({
            "user_id": user.id,
            "name": "Amoxicillin",
            "dosage": "500mg",
            "frequency": "Three times daily",
            "start_date": date(2024, 5, 20),
            "end_date": date(2024, 5, 27),
        })

        current = collect_health_data(mem_storage, user.id, now=now)
        everything = collect_health_data(mem_storage, user.id, now=now, active_only=False)

        assert [m["name"] for m in current["medications"]] == ["Lisinopril"]
        assert {m["name"]: m["current"] for m in everything["medications"]} == {
            "Lisinopril": True,
            "Ibuprofen": False,
            "Amoxicillin": False,
        }

    @pytest.mark.asyncio
    async def test_placeholder_counts_only_current_medications(self, mem_storage, user, seeded, now):
        data = collect_health_data(mem_storage, user.id, now=now, active_only=False)

        insights = await PlaceholderInsightEngine().generate_health_insights(data)

        assert "tracking 1 active medications" in insights[0].content


class TestMedicationCurrency:

    @staticmethod
    def _medication(**overrides):
        values = {
            "id": 1,
            "user_id": "patient-1",
            "name": "Lisinopril",
            "dosage": "10mg",
            "frequency": "Once daily",
            "start_date": date(2024, 5, 1),
            "created_at": datetime(2024, 5, 1),
            "updated_at": datetime(2024, 5, 1),
        }
        values.update(overrides)
        return entities.Medication(**values)

    @pytest.mark.unit
    def test_active_without_end_date(self):
        assert entities.is_medication_current(self._medication(), date(2024, 6, 1)) is True

    @pytest.mark.unit
    def test_inactive_flag_alone(self):
        medication = self._medication(is_active=False, end_date=date(2030, 1, 1))
        assert entities.is_medication_current(medication, date(2024, 6, 1)) is False

    @pytest.mark.unit
    def test_past_end_date_alone(self):
        medication = self._medication(end_date=date(2024, 5, 31))
        assert entities.is_medication_current(medication, date(2024, 6, 1)) is False

    @pytest.mark.unit
    def test_ends_today_is_still_current(self):
        medication = self._medication(end_date=date(2024, 6, 1))
        assert entities.is_medication_current(medication, date(2024, 6, 1)) is True


# ==================== INSIGHT SERVICE ====================

class TestInsightService:

    @pytest.mark.asyncio
    async def test_insights_parsed_and_malformed_dropped(self, mock_llm):
        mock_llm.generate_json.return_value = {"insights": [
            {"type": "pattern", "title": "Steady routine", "content": "You took every dose.", "confidence": 80},
            {"type": "pattern", "content": "missing title"},
            {"type": "observation", "title": "Out of range", "content": "x", "confidence": 500},
        ]}

        insights = await InsightService(mock_llm).generate_health_insights({"symptoms": []})

        assert insights == [GeneratedInsight(type="pattern", title="Steady routine", content="You took every dose.", confidence=80)]
        assert mock_llm.generate_json.call_args.kwargs["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_unknown_insight_type_dropped(self, mock_llm):
        mock_llm.generate_json.return_value = {"insights": [
            {"type": "diagnosis", "title": "Not allowed", "content": "x"},
            {"type": "recommendation", "title": "Walk daily", "content": "Short walks may help."},
        ]}

        insights = await InsightService(mock_llm).generate_health_insights({"symptoms": []})

        assert [i.type for i in insights] == ["recommendation"]

    @pytest.mark.asyncio
    async def test_translate_fallbacks(self, mock_llm):
        mock_llm.generate_json.return_value = {}

        translation = await InsightService(mock_llm).translate_clinical_term("hypertension")

        assert translation.plain_language == UNABLE_TO_TRANSLATE
        assert translation.explanation == CONSULT_PROVIDER

    @pytest.mark.asyncio
    async def test_translate(self, mock_llm):
        mock_llm.generate_json.return_value = {
            "plainLanguage": "High blood pressure",
            "explanation": "Your blood pushes too hard against artery walls.",
        }

        translation = await InsightService(mock_llm).translate_clinical_term("hypertension")

        assert translation.plain_language == "High blood pressure"
        assert '"hypertension"' in mock_llm.generate_json.call_args.args[0]

    @pytest.mark.asyncio
    async def test_summary_fallback(self, mock_llm):
        mock_llm.generate.return_value = ""
        summary = await InsightService(mock_llm).generate_provider_summary("patient-1", {})
        assert summary == UNABLE_TO_SUMMARIZE

    @pytest.mark.unit
    def test_engine_selection(self):
        assert isinstance(create_insight_engine(Settings(LLM_PROVIDER="placeholder")), PlaceholderInsightEngine)
        assert isinstance(create_insight_engine(Settings(LLM_PROVIDER="openai")), InsightService)


class TestGenerateAndStore:

    @pytest.mark.asyncio
    async def test_stores_insights_and_notifies_once(self, mem_storage, user, mock_llm, now):
        mock_llm.generate_json.return_value = {"insights": [
            {"type": "pattern", "title": "One", "content": "First"},
            {"type": "observation", "title": "Two", "content": "Second"},
        ]}
        notifications = NotificationService(mem_storage)

        saved = await generate_and_store_insights(InsightService(mock_llm), mem_storage, notifications, user.id, now=now)

        assert [i.title for i in saved] == ["One", "Two"]
        assert all(i.is_read is False for i in saved)
        notes = mem_storage.get_notifications(user.id)
        assert len(notes) == 1
        assert notes[0].type == "ai_insight"
        assert notes[0].metadata == {"insightIds": [i.id for i in saved]}

    @pytest.mark.asyncio
    async def test_nothing_generated_means_no_notification(self, mem_storage, user, mock_llm):
        mock_llm.generate_json.return_value = {"insights": []}

        saved = await generate_and_store_insights(
            InsightService(mock_llm), mem_storage, NotificationService(mem_storage), user.id
        )

        assert saved == []
        assert mem_storage.get_notifications(user.id) == []

    @pytest.mark.asyncio
    async def test_placeholder_flags_low_adherence(self, mem_storage, user, seeded, now):
        saved = await generate_and_store_insights(
            PlaceholderInsightEngine(), mem_storage, NotificationService(mem_storage), user.id, now=now
        )

        assert len(saved) == 2
        assert all(i.title.startswith(PlaceholderInsightEngine.LABEL) for i in saved)
        assert "Lisinopril" in saved[1].content


# ==================== LLM SERVICE ====================

class TestLLMService:

    @pytest.mark.asyncio
    async def test_unconfigured_raises(self):
        llm = LLMService(Settings(OPENAI_API_KEY=None))
        with pytest.raises(LLMServiceError):
            await llm.generate("hello")

    @pytest.mark.asyncio
    async def test_posts_chat_completion(self):
        llm = LLMService(Settings(OPENAI_API_KEY="sk-test", OPENAI_BASE_URL="https://llm.example.com/v1/"))
        response = MagicMock(status_code=200)
        response.json.return_value = {
            "choices": [{"message": {"content": '{"ok": true}'}}],
            "usage": {"total_tokens": 42},
        }

        with patch("services.llm_service.requests.post", return_value=response) as mock_post:
            result = await llm.generate_json("ping", system_prompt="be brief")

        assert result == {"ok": True}
        url = mock_post.call_args.args[0]
        payload = mock_post.call_args.kwargs["json"]
        assert url == "https://llm.example.com/v1/chat/completions"
        assert payload["response_format"] == {"type": "json_object"}
        assert payload["messages"][0]["role"] == "system"

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        llm = LLMService(Settings(OPENAI_API_KEY="sk-test"))
        response = MagicMock(status_code=503, text="overloaded")

        with patch("services.llm_service.requests.post", return_value=response):
            with pytest.raises(LLMServiceError):
                await llm.generate("ping")

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        llm = LLMService(Settings(OPENAI_API_KEY="sk-test"))

        with patch("services.llm_service.requests.post", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(LLMServiceError):
                await llm.generate("ping")

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self):
        llm = LLMService(Settings(OPENAI_API_KEY="sk-test"))
        response = MagicMock(status_code=200, text="<html>gateway</html>")
        response.json.side_effect = ValueError("not json")

        with patch("services.llm_service.requests.post", return_value=response):
            with pytest.raises(LLMServiceError):
                await llm.generate("ping")

    @pytest.mark.asyncio
    async def test_json_array_reply_raises(self):
        llm = LLMService(Settings(OPENAI_API_KEY="sk-test"))
        response = MagicMock(status_code=200)
        response.json.return_value = {"choices": [{"message": {"content": '[{"title": "x"}]'}}]}

        with patch("services.llm_service.requests.post", return_value=response):
            with pytest.raises(LLMServiceError):
                await llm.generate_json("ping")

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", [
        '{"a": 1}',
        '```json\n{"a": 1}\n```',
        'Sure! {"a": 1} Hope that helps.',
    ])
    def test_parse_json_response(self, raw):
        assert LLMService(Settings()).parse_json_response(raw) == {"a": 1}

    @pytest.mark.unit
    def test_parse_json_response_default(self):
        assert LLMService(Settings()).parse_json_response("no json here", default={"x": 0}) == {"x": 0}


# ==================== REPORTS ====================

class TestReportService:

    @pytest.mark.unit
    def test_report_title(self):
        assert report_title(datetime(2024, 6, 1, 15, 0)) == "Health Summary - 6/1/2024"

    @pytest.mark.asyncio
    async def test_summary_report(self, mem_storage, user, seeded, now):
        service = ReportService(mem_storage, PlaceholderInsightEngine(), NotificationService(mem_storage))

        report = await service.generate_report(user.id, now - timedelta(days=7), now, now=now)

        assert report.report_type == "summary"
        assert report.title == "Health Summary - 6/1/2024"
        assert report.content["summary"].startswith(PlaceholderInsightEngine.LABEL)
        assert len(report.content["data"]["medications"]) == 2
        assert [m["current"] for m in report.content["data"]["medications"]] == [True, False]
        assert mem_storage.get_notifications(user.id) == []

    @pytest.mark.asyncio
    async def test_weekly_report_notifies_with_preview(self, mem_storage, user, now):
        engine = MagicMock()
        engine.generate_provider_summary = AsyncMock(return_value="x" * 500)
        notifications = NotificationService(mem_storage)
        notifications.update_settings(user.id, {"weekly_reports": True})

        await ReportService(mem_storage, engine, notifications).generate_report(
            user.id, now - timedelta(days=7), now, report_type="weekly", now=now
        )

        notes = mem_storage.get_notifications(user.id)
        assert len(notes) == 1
        assert notes[0].message == "x" * 200
