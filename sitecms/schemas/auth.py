from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from sitecms.models.user import UserRole
from sitecms.schemas.base import CamelModel


class LoginRequest(CamelModel):
    # Plain str: a malformed address fails like any other wrong credential
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    site_id: str = Field(..., min_length=1)


class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    site_id: str = Field(..., min_length=1)


class AuthResponse(CamelModel):
    token: str
    user_id: str
    site_id: str
    email: str
    role: UserRole


class UserResponse(CamelModel):
    user_id: str
    site_id: str
    email: str
    role: UserRole
    active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
