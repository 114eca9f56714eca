"""Scheduling schemas."""

from __future__ import annotations

import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from academy.core.enums import ScheduleStatusEnum
from academy.modules.profiles.schemas import ProfileSummary


def normalize_time_slot(value: str | list[str]) -> str | list[str]:
    """Strip a single range string or every range in a list; reject blanks."""
    if isinstance(value, str):
        if not value.strip():
            raise ValueError("time_slot must not be empty")
        return value.strip()
    cleaned = [item.strip() for item in value]
    if not cleaned or not all(cleaned):
        raise ValueError("time_slot list must hold non-empty values")
    return cleaned


class ScheduleCreate(BaseModel):
    """Create schedule request."""

    trainer_id: UUID
    date: datetime.date
    time_slot: str | list[str]
    capacity: int = Field(default=1, ge=1)
    status: ScheduleStatusEnum = ScheduleStatusEnum.ACTIVE

    @field_validator("time_slot")
    @classmethod
    def check_time_slot(cls, value: str | list[str]) -> str | list[str]:
        return normalize_time_slot(value)


class ScheduleUpdate(BaseModel):
    """Partial schedule update."""

    date: datetime.date | None = None
    time_slot: str | list[str] | None = None
    capacity: int | None = Field(default=None, ge=1)
    status: ScheduleStatusEnum | None = None

    @field_validator("time_slot")
    @classmethod
    def check_time_slot(cls, value: str | list[str] | None) -> str | list[str] | None:
        return None if value is None else normalize_time_slot(value)


class ScheduleRead(BaseModel):
    """Schedule response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    trainer_id: UUID
    date: datetime.date
    time_slot: str | list[str]
    capacity: int
    status: ScheduleStatusEnum
    trainer: ProfileSummary | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class AvailableTimesRead(BaseModel):
    """Flattened time slots of a trainer on a date."""

    trainer_id: UUID
    date: datetime.date
    times: list[str]
