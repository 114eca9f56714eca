"""Booking schemas."""

from __future__ import annotations

import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from academy.core.enums import AttendanceEnum, BookingStatusEnum, LevelEnum
from academy.modules.profiles.schemas import ProfileSummary


class BookingCreate(BaseModel):
    """Create booking request.

    Required fields are checked by the service so that every missing one is
    reported at once.
    """

    student_id: UUID | None = None
    trainer_id: UUID | None = None
    day: datetime.date | None = None
    time: str | None = Field(default=None, max_length=32)
    status: BookingStatusEnum = BookingStatusEnum.CONFIRMED


class BookingUpdate(BaseModel):
    """Partial booking update."""

    student_id: UUID | None = None
    trainer_id: UUID | None = None
    day: datetime.date | None = None
    time: str | None = Field(default=None, max_length=32)
    status: BookingStatusEnum | None = None
    level: LevelEnum | None = None


class AttendanceUpdate(BaseModel):
    """Attendance outcome; null clears it."""

    attendance: AttendanceEnum | None


class BookingRead(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    trainer_id: UUID
    day: datetime.date
    time: str
    status: BookingStatusEnum
    attendance: AttendanceEnum | None
    level: LevelEnum | None
    student_name: str
    trainer_name: str
    student: ProfileSummary | None = None
    trainer: ProfileSummary | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class BookingStatsRead(BaseModel):
    """Dashboard statistics over all visible bookings."""

    total: int
    today_total: int
    today_confirmed: int
    unique_trainees: int
    by_status: dict[BookingStatusEnum, int]
    by_attendance: dict[AttendanceEnum, int]
    active_schedules: int
    progress_percent: float


class ProgressRead(BaseModel):
    """Attendance progress of one trainee."""

    student_id: UUID
    total: int
    present: int
    progress_percent: float
