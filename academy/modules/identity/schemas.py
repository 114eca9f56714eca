"""Identity schemas."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from academy.core.enums import LevelEnum, RoleEnum


class UserMetadata(BaseModel):
    """Account metadata stored by the identity provider."""

    model_config = ConfigDict(extra="ignore")

    full_name: str = Field(default="", max_length=128)
    role: RoleEnum | None = None
    phone: str | None = Field(default=None, max_length=32)
    level: LevelEnum | None = None


class SignUpRequest(BaseModel):
    """Self-service registration request; role is derived from email."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str = Field(min_length=2, max_length=128)
    phone: str | None = Field(default=None, max_length=32)


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    """Refresh token payload."""

    refresh_token: str


class TokenPair(BaseModel):
    """Access + refresh JWT response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthUser(BaseModel):
    """Account created or authenticated by the identity provider."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: EmailStr
    user_metadata: UserMetadata


class SessionRead(BaseModel):
    """Current session context."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    email: str
    role: RoleEnum
    full_name: str
    level: LevelEnum | None
