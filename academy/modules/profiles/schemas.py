"""Profile schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from academy.core.enums import LevelEnum, RoleEnum


class ProfileCreate(BaseModel):
    """Admin request to create a trainer or trainee with an account."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str = Field(min_length=2, max_length=128)
    phone: str | None = Field(default=None, max_length=32)
    role: RoleEnum = RoleEnum.TRAINEE
    level: LevelEnum | None = None


class ProfileUpdate(BaseModel):
    """Partial profile update; email and role are admin-only."""

    full_name: str | None = Field(default=None, min_length=2, max_length=128)
    phone: str | None = Field(default=None, max_length=32)
    level: LevelEnum | None = None
    email: EmailStr | None = None


class ProfileRead(BaseModel):
    """Profile response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str
    email: str
    phone: str | None
    role: RoleEnum
    level: LevelEnum | None
    created_at: datetime
    updated_at: datetime


class ProfileSummary(BaseModel):
    """Embedded display fields of a related profile."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str
    level: LevelEnum | None = None


class TrainerWorkloadRead(ProfileRead):
    """Trainer with booking counters."""

    total_bookings: int
    today_bookings: int


class DirectoryOverviewRead(BaseModel):
    """Academy-wide counters for the admin dashboard."""

    total_bookings: int
    total_trainers: int
    total_trainees: int
    active_schedules: int
