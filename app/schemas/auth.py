"""
Authentication Schemas for the charity association API
"""
from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime

from app.models.user import UserRole
from app.schemas.common import CamelModel


class UserLogin(CamelModel):
    email: EmailStr
    password: str


class UserRegister(CamelModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=2)
    role: UserRole = UserRole.MEMBER


class UserResponse(CamelModel):
    id: int
    username: str
    email: str
    full_name: str
    role: UserRole
    last_login: Optional[datetime] = None
    created_at: datetime


class PasswordReset(CamelModel):
    email: EmailStr


class PasswordChange(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6)
