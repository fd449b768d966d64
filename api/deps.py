"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

import logging
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import entities
from api.auth import verify_token
from config import Settings
from services.notification_service import NotificationService
from services.report_service import ReportService
from storage.base import Storage


logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was built with"""
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    """
    Storage backend chosen at startup
    """
    return request.app.state.storage


def get_insight_engine(request: Request):
    return request.app.state.insight_engine


def get_transcriber(request: Request):
    return request.app.state.transcriber


def get_notification_service(
    request: Request,
    storage: Storage = Depends(get_storage)
) -> NotificationService:
    return NotificationService(storage, dispatcher=request.app.state.dispatcher)


def get_report_service(
    storage: Storage = Depends(get_storage),
    insight_engine=Depends(get_insight_engine),
    notifications: NotificationService = Depends(get_notification_service)
) -> ReportService:
    return ReportService(storage, insight_engine, notifications)


def _unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
) -> entities.User:
    """
    Resolve the bearer token to a stored user.
    Raises 401 when the token is missing, invalid, expired or names an unknown user.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized()

    claims = verify_token(credentials.credentials, settings)
    if claims is None:
        raise _unauthorized("Invalid or expired token")

    user = storage.get_user(claims["sub"])
    if user is None:
        raise _unauthorized("Unknown user")
    return user


async def require_professional(
    user: entities.User = Depends(get_current_user)
) -> entities.User:
    """Re-checks the stored role on every request"""
    if not user.is_healthcare_professional:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Healthcare professional access required",
        )
    return user


def check_ownership(row: Optional[Any], user: entities.User, settings: Settings, name: str) -> None:
    """
    With ENFORCE_OWNERSHIP on, a row owned by someone else is reported as
    missing. Without it any authenticated user may act on any id.
    """
    if row is None or not settings.ENFORCE_OWNERSHIP:
        return
    if row.user_id != user.id:
        logger.warning(f"User {user.id} attempted to access {name} {row.id} owned by {row.user_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{name} {row.id} not found")
