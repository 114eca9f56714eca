"""In-memory search, sort and statistics over booking lists."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from academy.core.enums import AttendanceEnum, BookingStatusEnum, ScheduleStatusEnum, SortDirectionEnum
from academy.modules.booking.models import Booking
from academy.modules.booking.schemas import BookingStatsRead
from academy.modules.scheduling.models import Schedule
from academy.shared.utils import contains_casefold, utc_today

SORT_KEYS = frozenset(
    {
        "id",
        "day",
        "time",
        "status",
        "attendance",
        "level",
        "student_name",
        "trainer_name",
        "created_at",
    },
)


def student_display_name(booking: Booking) -> str:
    """Embedded trainee name, falling back to the snapshot."""
    student = getattr(booking, "student", None)
    if student is not None and student.full_name:
        return student.full_name
    return booking.student_name


def trainer_display_name(booking: Booking) -> str:
    """Embedded trainer name, falling back to the snapshot."""
    trainer = getattr(booking, "trainer", None)
    if trainer is not None and trainer.full_name:
        return trainer.full_name
    return booking.trainer_name


def _sort_value(booking: Booking, key: str) -> Any:
    if key == "student_name":
        value = student_display_name(booking)
    elif key == "trainer_name":
        value = trainer_display_name(booking)
    else:
        value = getattr(booking, key)
    if isinstance(value, str):
        return value.casefold()
    return value


def sort_bookings(
    bookings: Iterable[Booking],
    key: str,
    direction: SortDirectionEnum = SortDirectionEnum.ASC,
) -> list[Booking]:
    """Stable sort by column; missing values go last in ascending order."""
    if key not in SORT_KEYS:
        raise ValueError(f"Unsupported sort key: {key}")

    def _key(booking: Booking) -> tuple[bool, Any]:
        value = _sort_value(booking, key)
        return value is None, value

    return sorted(bookings, key=_key, reverse=direction == SortDirectionEnum.DESC)


@dataclass(frozen=True, slots=True)
class SortState:
    """Current sort column and direction of a booking table."""

    key: str = "day"
    direction: SortDirectionEnum = SortDirectionEnum.ASC

    def select(self, key: str) -> SortState:
        """Toggle direction for the same key, reset to ascending for a new one."""
        if key != self.key:
            return SortState(key=key, direction=SortDirectionEnum.ASC)
        if self.direction == SortDirectionEnum.ASC:
            return SortState(key=key, direction=SortDirectionEnum.DESC)
        return SortState(key=key, direction=SortDirectionEnum.ASC)

    def apply(self, bookings: Iterable[Booking]) -> list[Booking]:
        return sort_bookings(bookings, self.key, self.direction)


def filter_by_search(
    bookings: Iterable[Booking],
    term: str | None,
    include_schedule_fields: bool = False,
) -> list[Booking]:
    """Case-insensitive match on trainee or trainer name.

    With ``include_schedule_fields`` the day and time strings are matched too.
    """
    if not term:
        return list(bookings)

    def _matches(booking: Booking) -> bool:
        if contains_casefold(student_display_name(booking), term):
            return True
        if contains_casefold(trainer_display_name(booking), term):
            return True
        if include_schedule_fields:
            return contains_casefold(booking.day.isoformat(), term) or contains_casefold(booking.time, term)
        return False

    return [booking for booking in bookings if _matches(booking)]


def compute_progress(bookings: Sequence[Booking]) -> float:
    """Share of bookings marked present, as a percentage."""
    if not bookings:
        return 0.0
    present = sum(1 for booking in bookings if booking.attendance == AttendanceEnum.PRESENT)
    return round(present / len(bookings) * 100, 2)


def compute_stats(
    bookings: Sequence[Booking],
    schedules: Sequence[Schedule],
    today: date | None = None,
) -> BookingStatsRead:
    """Dashboard counters over the full, unfiltered booking list."""
    today = today or utc_today()
    todays = [booking for booking in bookings if booking.day == today]

    statuses = Counter(booking.status for booking in bookings)
    outcomes = Counter(booking.attendance for booking in bookings if booking.attendance is not None)

    return BookingStatsRead(
        total=len(bookings),
        today_total=len(todays),
        today_confirmed=sum(1 for booking in todays if booking.status == BookingStatusEnum.CONFIRMED),
        unique_trainees=len({booking.student_id for booking in bookings}),
        by_status={item: statuses.get(item, 0) for item in BookingStatusEnum},
        by_attendance={item: outcomes.get(item, 0) for item in AttendanceEnum},
        active_schedules=sum(1 for schedule in schedules if schedule.status == ScheduleStatusEnum.ACTIVE),
        progress_percent=compute_progress(bookings),
    )
