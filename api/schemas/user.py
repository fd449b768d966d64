"""
User Schemas
Login, setup wizard and view switching
"""

from typing import Optional, Literal
from pydantic import Field, EmailStr

from api.schemas.common import ApiModel


class DevLogin(ApiModel):
    """
    Development sign-in. Creates the user on first use.
    """
    id: Optional[str] = Field(None, min_length=1, max_length=255)
    email: EmailStr
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    profile_image_url: Optional[str] = Field(None, max_length=500)
    is_healthcare_professional: bool = False


class TokenResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str


class RoleSelection(ApiModel):
    """Setup step 1"""
    user_role: Literal["patient", "professional"]
    is_healthcare_professional: Optional[bool] = None


class ProfileSetup(ApiModel):
    """Setup step 2"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    profile_image_url: Optional[str] = Field(None, max_length=500)


class ProfessionalSetup(ApiModel):
    """Setup step 3, professionals only"""
    license_number: str = Field(..., min_length=1, max_length=100)
    specialty: str = Field(..., min_length=1, max_length=100)
    institution: Optional[str] = Field(None, max_length=255)


class SwitchView(ApiModel):
    view: Literal["patient", "professional"]
