"""
API Module
FastAPI routers for the CareTrack application
"""

from api.users import router as users_router
from api.health import router as health_router
from api.medications import router as medications_router
from api.symptoms import router as symptoms_router
from api.appointments import router as appointments_router
from api.dashboard import router as dashboard_router
from api.insights import router as insights_router
from api.reports import router as reports_router
from api.transcriptions import router as transcriptions_router
from api.notifications import router as notifications_router
from api.patients import router as patients_router

from api.deps import (
    get_storage,
    get_current_user,
    require_professional,
    check_ownership,
)


__all__ = [
    # Routers
    "users_router",
    "health_router",
    "medications_router",
    "symptoms_router",
    "appointments_router",
    "dashboard_router",
    "insights_router",
    "reports_router",
    "transcriptions_router",
    "notifications_router",
    "patients_router",
    # Dependencies
    "get_storage",
    "get_current_user",
    "require_professional",
    "check_ownership",
    "include_routers",
]


def include_routers(app, prefix: str = "/api"):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    for router in (
        users_router,
        health_router,
        medications_router,
        symptoms_router,
        appointments_router,
        dashboard_router,
        insights_router,
        reports_router,
        transcriptions_router,
        notifications_router,
        patients_router,
    ):
        app.include_router(router, prefix=prefix)
