"""
Report Service
Provider-facing health summaries over a reporting period
"""

import logging
from datetime import datetime
from typing import Optional

import entities
from services.insight_service import collect_health_data


logger = logging.getLogger(__name__)

WEEKLY_REPORT_TYPE = "weekly"
DEFAULT_REPORT_TYPE = "summary"
NOTIFICATION_PREVIEW_CHARS = 200


def report_title(generated_at: datetime) -> str:
    return f"Health Summary - {generated_at.month}/{generated_at.day}/{generated_at.year}"


class ReportService:
    """
    Builds a HealthReport from the user's full record and an LLM summary
    """

    def __init__(self, storage, insight_engine, notifications):
        self.storage = storage
        self.insight_engine = insight_engine
        self.notifications = notifications

    async def generate_report(
        self,
        user_id: str,
        period_start: datetime,
        period_end: datetime,
        report_type: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> entities.HealthReport:
        """
        Create and store a report

        Args:
            user_id: Report subject
            period_start: Start of reporting period
            period_end: End of reporting period
            report_type: Free-form label; "weekly" also notifies the user
            now: Generation time

        Returns:
            Created HealthReport
        """
        now = now or datetime.utcnow()
        report_type = report_type or DEFAULT_REPORT_TYPE

        data = collect_health_data(
            self.storage,
            user_id,
            now=now,
            active_only=False,
            symptom_limit=None,
            appointment_limit=None,
            metric_limit=None,
        )
        summary = await self.insight_engine.generate_provider_summary(user_id, data)

        report = self.storage.create_health_report({
            "user_id": user_id,
            "title": report_title(now),
            "content": {"summary": summary, "data": data},
            "generated_at": now,
            "period_start": period_start,
            "period_end": period_end,
            "report_type": report_type,
        })
        logger.info(f"Generated {report_type} report {report.id} for user {user_id}")

        if report_type == WEEKLY_REPORT_TYPE:
            preview = summary[:NOTIFICATION_PREVIEW_CHARS]
            self.notifications.trigger_weekly_report(user_id, preview)

        return report
