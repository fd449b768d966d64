"""
Services Module
Business logic layer for the CareTrack application
"""

from services.dashboard_service import build_timeline, compute_dashboard_stats
from services.llm_service import LLMService, LLMServiceError
from services.insight_service import (
    InsightService,
    PlaceholderInsightEngine,
    create_insight_engine,
    generate_and_store_insights,
)
from services.notification_service import (
    NotificationService,
    NotificationDispatcher,
    LoggingDispatcher,
)
from services.report_service import ReportService
from services.transcription_service import (
    Transcriber,
    PlaceholderTranscriber,
    TranscriptionError,
    estimate_duration_seconds,
)


__all__ = [
    # Dashboard
    "build_timeline",
    "compute_dashboard_stats",
    # LLM / insights
    "LLMService",
    "LLMServiceError",
    "InsightService",
    "PlaceholderInsightEngine",
    "create_insight_engine",
    "generate_and_store_insights",
    # Notifications
    "NotificationService",
    "NotificationDispatcher",
    "LoggingDispatcher",
    # Reports
    "ReportService",
    # Transcription
    "Transcriber",
    "PlaceholderTranscriber",
    "TranscriptionError",
    "estimate_duration_seconds",
]
