"""
Insight Service
AI-generated health insights, clinical term translation and provider summaries
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

import entities
from services.llm_service import LLMService


logger = logging.getLogger(__name__)


INSIGHTS_SYSTEM_PROMPT = (
    "You are a compassionate healthcare AI that helps patients understand "
    "their health data without providing medical advice."
)

TRANSLATE_SYSTEM_PROMPT = (
    "You are a medical translator that converts complex medical terms into "
    "clear, understandable language for patients."
)

SUMMARY_SYSTEM_PROMPT = (
    "You are a medical documentation assistant that creates professional "
    "summaries for healthcare providers."
)

UNABLE_TO_TRANSLATE = "Unable to translate"
CONSULT_PROVIDER = "Please consult with your healthcare provider for clarification."
UNABLE_TO_SUMMARIZE = "Unable to generate summary"


class GeneratedInsight(BaseModel):
    """One insight as returned by the model, before it is stored"""
    type: Literal["pattern", "observation", "recommendation"] = "observation"
    title: str
    content: str
    confidence: Optional[int] = Field(default=None, ge=1, le=100)


class TermTranslation(BaseModel):
    plain_language: str
    explanation: str


def collect_health_data(
    storage,
    user_id: str,
    now: Optional[datetime] = None,
    active_only: bool = True,
    symptom_limit: Optional[int] = 10,
    appointment_limit: Optional[int] = 5,
    metric_limit: Optional[int] = 10,
    adherence_days: int = 7
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Snapshot of a user's records in the shape sent to the model.

    Args:
        storage: Storage backend to read from
        user_id: Owner of the records
        now: Reference time for adherence
        active_only: Only include current medications (active flag set and not past their end date)
        symptom_limit: Cap on symptoms included (None for all)
        appointment_limit: Cap on appointments included (None for all)
        metric_limit: Cap on metrics included (None for all)
        adherence_days: Trailing window for each medication's adherence

    Returns:
        Dict with symptoms, medications, appointments and metrics lists
    """
    now = now or datetime.utcnow()

    symptoms = storage.get_symptoms(user_id)[:symptom_limit]
    medications = [
        (medication, entities.is_medication_current(medication, now.date()))
        for medication in storage.get_medications(user_id)
    ]
    if active_only:
        medications = [(m, current) for m, current in medications if current]
    appointments = storage.get_appointments(user_id)[:appointment_limit]
    metrics = storage.get_health_metrics(user_id)[:metric_limit]

    medication_data = []
    for medication, current in medications:
        taken = [
            log.taken_at for log in storage.get_medication_logs(user_id, medication.id)
            if not log.missed
        ]
        medication_data.append({
            "name": medication.name,
            "adherence": storage.get_medication_adherence(
                user_id, medication.id, adherence_days, now=now
            ),
            "lastTaken": max(taken).isoformat() if taken else None,
            "current": current,
        })

    return {
        "symptoms": [
            {
                "name": s.name,
                "severity": s.severity,
                "date": s.occurred_at.isoformat(),
                "notes": s.notes,
            }
            for s in symptoms
        ],
        "medications": medication_data,
        "appointments": [
            {
                "title": a.title,
                "date": a.appointment_date.isoformat(),
                "outcome": a.outcome,
            }
            for a in appointments
        ],
        "metrics": [
            {"type": m.type, "value": m.value, "date": m.measured_at.isoformat()}
            for m in metrics
        ],
    }


def _parse_insights(raw: Any) -> List[GeneratedInsight]:
    insights = []
    for item in raw or []:
        try:
            insights.append(GeneratedInsight.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed insight from model: {e}")
    return insights


class InsightService:
    """
    Wraps the LLM with the three prompt templates the app needs
    """

    def __init__(self, llm: LLMService):
        self.llm = llm

    async def generate_health_insights(self, data: Dict[str, Any]) -> List[GeneratedInsight]:
        """
        Ask the model for 3-4 supportive observations about the data

        Args:
            data: Output of collect_health_data

        Returns:
            Parsed insights; malformed entries are dropped
        """
        prompt = f"""Analyze the following health information and provide supportive, empathetic insights that help the patient understand their health journey.

IMPORTANT GUIDELINES:
- NEVER provide medical diagnosis, treatment recommendations, or triage decisions
- Focus on patterns, observations, and supportive communication
- Use empathetic, patient-first language
- Suggest discussing findings with healthcare providers
- Highlight positive patterns when possible

Health Data:
{json.dumps(data, indent=2)}

Respond in JSON with the structure:
{{"insights": [{{"type": "pattern|observation|recommendation", "title": "Brief title", "content": "Detailed, empathetic explanation", "confidence": 1-100}}]}}

Limit to 3-4 most relevant insights."""

        result = await self.llm.generate_json(
            prompt,
            system_prompt=INSIGHTS_SYSTEM_PROMPT,
            temperature=0.3,
        )
        return _parse_insights(result.get("insights"))

    async def translate_clinical_term(self, term: str) -> TermTranslation:
        """Plain-language rendering of a clinical term, with fixed fallbacks"""
        prompt = f"""Translate the following medical/clinical term into plain, understandable language:

Term: "{term}"

Respond in JSON:
{{"plainLanguage": "Simple term or phrase", "explanation": "Clear, friendly explanation in 1-2 sentences"}}

Make the explanation accessible to someone without medical background."""

        result = await self.llm.generate_json(
            prompt,
            system_prompt=TRANSLATE_SYSTEM_PROMPT,
            temperature=0.2,
        )
        return TermTranslation(
            plain_language=result.get("plainLanguage") or UNABLE_TO_TRANSLATE,
            explanation=result.get("explanation") or CONSULT_PROVIDER,
        )

    async def generate_provider_summary(self, user_id: str, data: Dict[str, Any]) -> str:
        """Clinical handover text for a provider"""
        prompt = f"""Generate a professional healthcare provider summary based on the following patient data.
This summary will be shared with healthcare providers to facilitate continuity of care.

Patient Health Data:
{json.dumps(data, indent=2)}

Include:
- Current medication adherence patterns
- Recent symptom trends and severity
- Notable health events or changes
- Patient-reported outcomes and observations

Format as a clear, clinical summary suitable for provider handoff.
Focus on factual observations without making diagnostic conclusions."""

        summary = await self.llm.generate(
            prompt,
            system_prompt=SUMMARY_SYSTEM_PROMPT,
            temperature=0.2,
        )
        logger.info(f"Generated provider summary for user {user_id}")
        return summary or UNABLE_TO_SUMMARIZE


class PlaceholderInsightEngine:
    """
    Offline stand-in used when no model is configured.
    Output is canned and labelled as such.
    """

    LABEL = "[placeholder]"

    async def generate_health_insights(self, data: Dict[str, Any]) -> List[GeneratedInsight]:
        symptoms = data.get("symptoms") or []
        medications = data.get("medications") or []
        current = [m for m in medications if m.get("current", True)]

        insights = [
            GeneratedInsight(
                type="observation",
                title=f"{self.LABEL} Tracking summary",
                content=(
                    f"You have logged {len(symptoms)} recent symptoms and are "
                    f"tracking {len(current)} active medications."
                ),
                confidence=50,
            )
        ]
        low = [m["name"] for m in current if (m.get("adherence") or 0) < 80]
        if low:
            insights.append(GeneratedInsight(
                type="recommendation",
                title=f"{self.LABEL} Medication routine",
                content=(
                    f"Doses for {', '.join(low)} were missed this week. "
                    "Consider discussing your routine with your healthcare provider."
                ),
                confidence=50,
            ))
        return insights

    async def translate_clinical_term(self, term: str) -> TermTranslation:
        return TermTranslation(plain_language=UNABLE_TO_TRANSLATE, explanation=CONSULT_PROVIDER)

    async def generate_provider_summary(self, user_id: str, data: Dict[str, Any]) -> str:
        return (
            f"{self.LABEL} {len(data.get('symptoms') or [])} symptoms, "
            f"{len(data.get('medications') or [])} medications, "
            f"{len(data.get('appointments') or [])} appointments, "
            f"{len(data.get('metrics') or [])} metrics recorded."
        )


def create_insight_engine(settings):
    """Pick the insight backend named by LLM_PROVIDER"""
    if settings.LLM_PROVIDER == "placeholder":
        logger.info("Using placeholder insight engine")
        return PlaceholderInsightEngine()
    return InsightService(LLMService(settings))


async def generate_and_store_insights(engine, storage, notifications, user_id: str, now: Optional[datetime] = None):
    """
    Run the engine over the user's recent data, store each insight and
    announce the batch with an ai_insight notification.

    Returns:
        The stored AiInsight rows
    """
    data = collect_health_data(storage, user_id, now=now)
    generated = await engine.generate_health_insights(data)

    saved = [
        storage.create_ai_insight({
            "user_id": user_id,
            "type": insight.type,
            "title": insight.title,
            "content": insight.content,
            "confidence": insight.confidence,
            "data_points": {},
            "is_read": False,
        })
        for insight in generated
    ]
    logger.info(f"Stored {len(saved)} insights for user {user_id}")

    if saved:
        notifications.trigger_ai_insight(
            user_id,
            saved[0].title if len(saved) == 1 else f"{len(saved)} new insights about your health",
            related_data={"insightIds": [i.id for i in saved]},
        )
    return saved
