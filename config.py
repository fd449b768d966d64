"""
Configuration management for CareTrack
"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "CareTrack"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Storage backend: "database" or "memory"
    STORAGE_BACKEND: str = "database"

    # Database
    DATABASE_URL: str = "sqlite:///./caretrack.db"
    DATABASE_ECHO: bool = False

    # LLM Configuration ("openai" or "placeholder")
    LLM_PROVIDER: str = "openai"
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    LLM_MODEL: str = "gpt-4o"
    LLM_TEMPERATURE: float = 0.3
    LLM_MAX_TOKENS: int = 2048

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours
    DEV_LOGIN_ENABLED: bool = False
    # Mutations by id only check row ownership when this is on
    ENFORCE_OWNERSHIP: bool = False

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Transcriptions
    AUDIO_BYTES_PER_SECOND: int = 16000  # ~128 kbps compressed audio
    MAX_AUDIO_UPLOAD_BYTES: int = 50 * 1024 * 1024

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class NotificationDefaults:
    """Values used when a user's notification settings are created lazily"""

    MEDICATION_REMINDERS: bool = True
    APPOINTMENT_REMINDERS: bool = True
    HEALTH_ALERTS: bool = True
    AI_INSIGHTS: bool = True
    WEEKLY_REPORTS: bool = False
    EMERGENCY_ALERTS: bool = True
    REMINDER_TIME: str = "09:00"
    REMINDER_FREQUENCY: str = "daily"
    EMAIL_NOTIFICATIONS: bool = False
    PUSH_NOTIFICATIONS: bool = True


class MonitoringConfig:
    """Thresholds for the server-side health monitors"""

    HIGH_SEVERITY_THRESHOLD: int = 8
    WORSENING_DELTA: int = 2
    LOW_ADHERENCE_PERCENT: int = 80
    ADHERENCE_WINDOW_DAYS: int = 7
    APPOINTMENT_REMINDER_HOURS: int = 24


# Database table names
class TableNames:
    USERS = "users"
    HEALTH_PROFILES = "health_profiles"
    MEDICATIONS = "medications"
    MEDICATION_LOGS = "medication_logs"
    SYMPTOMS = "symptoms"
    APPOINTMENTS = "appointments"
    HEALTH_METRICS = "health_metrics"
    AI_INSIGHTS = "ai_insights"
    REMINDERS = "reminders"
    HEALTH_REPORTS = "health_reports"
    TRANSCRIPTIONS = "transcriptions"
    NOTIFICATIONS = "notifications"
    NOTIFICATION_SETTINGS = "notification_settings"


settings = get_settings()
notification_defaults = NotificationDefaults()
monitoring_config = MonitoringConfig()
