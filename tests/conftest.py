"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all CareTrack tests.
Fixtures include storage backends, settings, test clients, users and auth headers.
"""

import os
import sys
from datetime import datetime, date, timedelta
from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from api.auth import create_access_token
from config import Settings
from database import create_db_engine, drop_db, init_db
from services.insight_service import PlaceholderInsightEngine
from storage import DatabaseStorage, MemStorage


# ==================== STORAGE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """In-memory SQLite engine with all tables created"""
    engine = create_db_engine("sqlite://")
    init_db(bind=engine)

    yield engine

    drop_db(bind=engine)
    engine.dispose()


@pytest.fixture(params=["memory", "sqlite"])
def storage(request):
    """Every storage contract test runs against both backends"""
    if request.param == "memory":
        yield MemStorage()
        return

    engine = request.getfixturevalue("test_engine")
    yield DatabaseStorage(sessionmaker(autocommit=False, autoflush=False, bind=engine))


@pytest.fixture
def mem_storage() -> MemStorage:
    return MemStorage()


# ==================== APP FIXTURES ====================

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        STORAGE_BACKEND="memory",
        LLM_PROVIDER="placeholder",
        SECRET_KEY="test-secret-key",
        DEV_LOGIN_ENABLED=True,
        ENFORCE_OWNERSHIP=False,
        AUDIO_BYTES_PER_SECOND=16000,
    )


@pytest.fixture
def app(test_settings, storage):
    return create_app(
        settings=test_settings,
        storage=storage,
        insight_engine=PlaceholderInsightEngine(),
    )


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


# ==================== USER FIXTURES ====================

@pytest.fixture
def patient(storage):
    return storage.upsert_user({
        "id": "patient-1",
        "email": "ada.patient@example.com",
        "first_name": "Ada",
        "last_name": "Lovelace",
    })


@pytest.fixture
def other_patient(storage):
    return storage.upsert_user({
        "id": "patient-2",
        "email": "grace.patient@example.com",
        "first_name": "Grace",
        "last_name": "Hopper",
    })


@pytest.fixture
def professional(storage):
    return storage.upsert_user({
        "id": "doctor-1",
        "email": "dr.who@example.com",
        "first_name": "John",
        "last_name": "Smith",
        "user_role": "professional",
        "is_healthcare_professional": True,
        "specialty": "Cardiology",
        "license_number": "MD-12345",
    })


def _bearer(user_id: str, settings: Settings) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, settings=settings)}"}


@pytest.fixture
def patient_headers(patient, test_settings) -> Dict[str, str]:
    return _bearer(patient.id, test_settings)


@pytest.fixture
def other_patient_headers(other_patient, test_settings) -> Dict[str, str]:
    return _bearer(other_patient.id, test_settings)


@pytest.fixture
def professional_headers(professional, test_settings) -> Dict[str, str]:
    return _bearer(professional.id, test_settings)


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def medication_payload() -> Dict[str, object]:
    """Request body for adding a medication"""
    return {
        "name": "Lisinopril",
        "dosage": "10mg",
        "frequency": "Once daily",
        "purpose": "Blood pressure",
        "startDate": (date.today() - timedelta(days=30)).isoformat(),
        "isActive": True,
    }


@pytest.fixture
def medication(storage, patient):
    return storage.create_medication({
        "user_id": patient.id,
        "name": "Lisinopril",
        "dosage": "10mg",
        "frequency": "Once daily",
        "start_date": date.today() - timedelta(days=30),
        "is_active": True,
    })


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 6, 1, 12, 0, 0)
