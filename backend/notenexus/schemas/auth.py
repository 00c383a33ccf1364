from pydantic import EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from notenexus.models.user import UserRole
from notenexus.schemas.base import CamelModel


class OtpRequest(CamelModel):
    email: EmailStr


class OtpVerify(CamelModel):
    email: EmailStr
    code: str = Field(..., min_length=1, max_length=32)


class UserSignup(CamelModel):
    email: EmailStr
    name: str = Field(..., min_length=5, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.STUDENT

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 5:
            raise ValueError('Name must be at least 5 characters')
        return v


class UserSignin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserPublic(CamelModel):
    id: str
    email: str
    name: str
    role: UserRole


class UserDetail(UserPublic):
    created_at: datetime


class UserSummary(CamelModel):
    """Author/uploader shown next to content"""
    id: str
    name: str


class SignupResponse(CamelModel):
    token: str
    user: UserPublic


class SigninResponse(CamelModel):
    message: str
    jwt: str
    user: UserPublic


class AdminCheckResponse(CamelModel):
    admin_exists: bool
    admin_count: int


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=5, max_length=255)
    password: Optional[str] = Field(None, min_length=6, max_length=128)


class DeleteUserRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
