"""Scheduling ORM models."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Integer
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academy.core.database import Base, BaseModelMixin
from academy.core.enums import ScheduleStatusEnum

if TYPE_CHECKING:
    from academy.modules.profiles.models import Profile


class Schedule(BaseModelMixin, Base):
    """Declared trainer availability; not a commitment."""

    __tablename__ = "schedules"

    trainer_id: Mapped[UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    # Either a single range string or a list of them.
    time_slot: Mapped[Any] = mapped_column(JSONB, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    status: Mapped[ScheduleStatusEnum] = mapped_column(
        SAEnum(ScheduleStatusEnum, name="schedule_status_enum", native_enum=False),
        default=ScheduleStatusEnum.ACTIVE,
        nullable=False,
        index=True,
    )

    trainer: Mapped["Profile"] = relationship()
