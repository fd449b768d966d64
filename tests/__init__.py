"""
CareTrack Test Suite
====================

Test Structure:
- test_storage/: Storage contract tests, run against memory and SQLite
- test_services/: Notification, insight, report, dashboard and transcription services
- test_api/: API endpoint tests for FastAPI routes
- test_client/: Python client and query cache
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_api/

    # Run only marked tests
    pytest -m "unit"
    pytest -m "database"
"""
