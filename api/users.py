"""
Users API Router
Session user, development login, setup wizard and view switching
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

import entities
from api.auth import create_access_token
from api.deps import get_app_settings, get_current_user, get_storage, require_professional
from api.schemas.user import DevLogin, ProfessionalSetup, ProfileSetup, RoleSelection, SwitchView, TokenResponse
from config import Settings
from models import ViewMode
from storage.base import Storage


logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


@router.get("/auth/user", response_model=entities.UserView)
async def get_session_user(user: entities.User = Depends(get_current_user)):
    """Current user, narrowed to the patient or professional shape"""
    return entities.to_user_view(user)


@router.post("/auth/login", response_model=TokenResponse)
async def dev_login(
    login: DevLogin,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    """
    Sign in without an identity provider. Only available with DEV_LOGIN_ENABLED.
    The user is created on first login. Later logins never change the stored
    user; role and profile go through the setup wizard.
    """
    if not settings.DEV_LOGIN_ENABLED:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    user_id = login.id or login.email
    user = storage.get_user(user_id)
    if user is None:
        data = login.model_dump(exclude={"is_healthcare_professional"}, exclude_none=True)
        data["id"] = user_id
        if login.is_healthcare_professional:
            data["is_healthcare_professional"] = True
            data["user_role"] = "professional"
        user = storage.upsert_user(data)
    logger.info(f"Development login for user {user.id}")
    return TokenResponse(access_token=create_access_token(user.id, settings=settings), user_id=user.id)


# ==================== SETUP WIZARD ====================

@router.post("/setup/role", response_model=entities.UserView)
async def setup_role(
    selection: RoleSelection,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    """Step 1: patient or healthcare professional"""
    is_professional = selection.is_healthcare_professional
    if is_professional is None:
        is_professional = selection.user_role == "professional"

    updates = {
        "user_role": selection.user_role,
        "is_healthcare_professional": is_professional,
        "setup_step": 1,
    }
    if not is_professional:
        updates["current_view"] = ViewMode.PATIENT.value

    return entities.to_user_view(storage.update_user_setup(user.id, updates))


@router.post("/setup/profile", response_model=entities.UserView)
async def setup_profile(
    profile: ProfileSetup,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    """Step 2: name and avatar"""
    updates = {**profile.to_fields(), "setup_step": 2}
    return entities.to_user_view(storage.update_user_setup(user.id, updates))


@router.post("/setup/professional", response_model=entities.UserView)
async def setup_professional(
    details: ProfessionalSetup,
    user: entities.User = Depends(require_professional),
    storage: Storage = Depends(get_storage)
):
    """Step 3: license and practice details"""
    updates = {**details.to_fields(), "setup_step": 3}
    return entities.to_user_view(storage.update_user_setup(user.id, updates))


@router.post("/setup/complete", response_model=entities.UserView)
async def setup_complete(
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    return entities.to_user_view(storage.complete_user_setup(user.id))


@router.post("/user/switch-view", response_model=entities.UserView)
async def switch_view(
    switch: SwitchView,
    user: entities.User = Depends(get_current_user),
    storage: Storage = Depends(get_storage)
):
    """Toggle between the patient and professional dashboards"""
    if switch.view == ViewMode.PROFESSIONAL.value and not user.is_healthcare_professional:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Healthcare professional access required"
        )
    updated = storage.update_user_setup(user.id, {"current_view": switch.view})
    return entities.to_user_view(updated)
