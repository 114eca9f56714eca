"""Booking ORM models."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, Enum as SAEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academy.core.database import Base, BaseModelMixin
from academy.core.enums import AttendanceEnum, BookingStatusEnum, LevelEnum

if TYPE_CHECKING:
    from academy.modules.profiles.models import Profile


class Booking(BaseModelMixin, Base):
    """Training session booking."""

    __tablename__ = "bookings"

    student_id: Mapped[UUID] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    trainer_id: Mapped[UUID] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    day: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    time: Mapped[str] = mapped_column(String(32), nullable=False)

    status: Mapped[BookingStatusEnum] = mapped_column(
        SAEnum(BookingStatusEnum, name="booking_status_enum", native_enum=False),
        default=BookingStatusEnum.CONFIRMED,
        nullable=False,
        index=True,
    )
    attendance: Mapped[AttendanceEnum | None] = mapped_column(
        SAEnum(AttendanceEnum, name="attendance_enum", native_enum=False),
        nullable=True,
    )
    level: Mapped[LevelEnum | None] = mapped_column(
        SAEnum(LevelEnum, name="level_enum", native_enum=False),
        nullable=True,
    )
    # Display snapshots taken at booking time.
    student_name: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    trainer_name: Mapped[str] = mapped_column(String(128), default="", nullable=False)

    student: Mapped["Profile"] = relationship(foreign_keys=[student_id])
    trainer: Mapped["Profile"] = relationship(foreign_keys=[trainer_id])
