"""Booking business logic layer."""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.config import Settings, get_settings
from academy.core.database import get_db_session
from academy.core.enums import (
    AttendanceEnum,
    BookingConflictPolicyEnum,
    BookingStatusEnum,
    CapabilityEnum,
    RoleEnum,
    ScheduleStatusEnum,
    SortDirectionEnum,
)
from academy.core.metrics import record_booking_conflict, record_booking_created
from academy.core.record_store import BOOKINGS, PROFILES, SCHEDULES, RecordStore, SQLAlchemyRecordStore
from academy.modules.booking.models import Booking
from academy.modules.booking.query import compute_progress, compute_stats, filter_by_search, sort_bookings
from academy.modules.booking.schemas import BookingCreate, BookingStatsRead, BookingUpdate, ProgressRead
from academy.modules.identity.access import SessionContext, has_capability, require_capability
from academy.modules.profiles.models import Profile
from academy.modules.scheduling.service import flatten_time_slots
from academy.shared.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)

logger = logging.getLogger(__name__)

FIXED_TIME_SLOTS: tuple[str, ...] = tuple(f"{hour:02d}:00 - {hour + 1:02d}:00" for hour in range(8, 20))

REQUIRED_FIELDS = ("student_id", "trainer_id", "day", "time")

PARTICIPANTS_EMBED = {"student_id": PROFILES, "trainer_id": PROFILES}

TRAINEE_STATUSES = (BookingStatusEnum.PENDING, BookingStatusEnum.CONFIRMED)


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


class BookingService:
    """Booking domain service: creation rules, status and attendance changes, projections."""

    def __init__(self, store: RecordStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    async def _get(self, booking_id: UUID) -> Booking:
        matches = await self.store.select(BOOKINGS, {"id": booking_id}, embed=PARTICIPANTS_EMBED)
        if not matches:
            raise NotFoundException("Booking not found")
        return matches[0]

    async def _get_participant(self, profile_id: UUID, role: RoleEnum) -> Profile:
        matches = await self.store.select(PROFILES, {"id": profile_id})
        if not matches:
            raise NotFoundException(f"{role.value.capitalize()} not found")
        profile = matches[0]
        if profile.role != role:
            raise BusinessRuleException(f"Profile {profile_id} is not a {role.value}")
        return profile

    def _validate_actor_access(self, booking: Booking, session: SessionContext) -> None:
        if has_capability(session, CapabilityEnum.BOOKING_VIEW_ALL):
            return
        if session.role == RoleEnum.TRAINER and booking.trainer_id == session.user_id:
            return
        raise UnauthorizedException("You cannot manage this booking")

    async def _count_taken(self, trainer_id: UUID, day: date, time: str, exclude_id: UUID | None) -> int:
        existing = await self.store.select(BOOKINGS, {"trainer_id": trainer_id, "day": day, "time": time})
        return sum(
            1
            for booking in existing
            if booking.status != BookingStatusEnum.CANCELLED and booking.id != exclude_id
        )

    async def _slot_capacity(self, trainer_id: UUID, day: date, time: str) -> int:
        schedules = await self.store.select(
            SCHEDULES,
            {"trainer_id": trainer_id, "date": day, "status": ScheduleStatusEnum.ACTIVE},
        )
        capacity = sum(schedule.capacity for schedule in schedules if time in flatten_time_slots([schedule]))
        return capacity or 1

    async def _check_conflict(
        self,
        trainer_id: UUID,
        day: date,
        time: str,
        exclude_id: UUID | None = None,
    ) -> None:
        policy = self.settings.booking_conflict_policy
        if policy == BookingConflictPolicyEnum.ALLOW:
            return

        taken = await self._count_taken(trainer_id, day, time, exclude_id)
        if policy == BookingConflictPolicyEnum.UNIQUE:
            limit = 1
        elif policy == BookingConflictPolicyEnum.CAPACITY:
            limit = await self._slot_capacity(trainer_id, day, time)
        else:
            raise ValueError(f"Unsupported conflict policy: {policy}")

        if taken >= limit:
            record_booking_conflict(policy.value)
            logger.warning(
                "Booking rejected by %s policy: trainer=%s day=%s time=%s taken=%s",
                policy.value,
                trainer_id,
                day,
                time,
                taken,
            )
            raise ConflictException("This time is already booked for the trainer")

    def _check_time(self, time: str) -> None:
        if self.settings.booking_restrict_time_slots and time not in FIXED_TIME_SLOTS:
            raise ValidationException(f"Time must be one of the academy slots, got {time!r}", fields=["time"])

    async def create_booking(self, session: SessionContext, payload: BookingCreate) -> Booking:
        """Create booking for a trainee and trainer pair."""
        values = payload.model_dump()
        if has_capability(session, CapabilityEnum.BOOKING_CREATE_ANY):
            pass
        elif has_capability(session, CapabilityEnum.BOOKING_CREATE_ON_BEHALF):
            values["trainer_id"] = session.user_id
        elif has_capability(session, CapabilityEnum.BOOKING_CREATE_OWN):
            values["student_id"] = session.user_id
            if values["status"] not in TRAINEE_STATUSES:
                raise ValidationException("Trainees may only request pending or confirmed bookings", fields=["status"])
        else:
            raise UnauthorizedException("Your role cannot create bookings")

        missing = [field for field in REQUIRED_FIELDS if _is_blank(values[field])]
        if missing:
            raise ValidationException(f"Missing required fields: {', '.join(missing)}", fields=missing)
        values["time"] = values["time"].strip()
        self._check_time(values["time"])

        student = await self._get_participant(values["student_id"], RoleEnum.TRAINEE)
        trainer = await self._get_participant(values["trainer_id"], RoleEnum.TRAINER)
        await self._check_conflict(trainer.id, values["day"], values["time"])

        booking = await self.store.insert(
            BOOKINGS,
            {
                **values,
                "attendance": None,
                "level": student.level or self.settings.booking_default_level,
                "student_name": student.full_name,
                "trainer_name": trainer.full_name,
            },
        )
        record_booking_created(session.role.value)
        logger.info(
            "Booking %s created by %s for trainee %s with trainer %s on %s %s",
            booking.id,
            session.user_id,
            student.id,
            trainer.id,
            booking.day,
            booking.time,
        )
        return await self._get(booking.id)

    async def update_booking(
        self,
        session: SessionContext,
        booking_id: UUID,
        payload: BookingUpdate,
    ) -> Booking:
        """Update booking fields; any status may be set to any other."""
        require_capability(session, CapabilityEnum.BOOKING_UPDATE)
        booking = await self._get(booking_id)
        self._validate_actor_access(booking, session)

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if not has_capability(session, CapabilityEnum.BOOKING_CREATE_ANY) and "trainer_id" in changes:
            if changes["trainer_id"] != session.user_id:
                raise UnauthorizedException("Trainers cannot move bookings to another trainer")

        if "time" in changes:
            changes["time"] = changes["time"].strip()
            if not changes["time"]:
                raise ValidationException("Missing required fields: time", fields=["time"])
            self._check_time(changes["time"])

        if "student_id" in changes and changes["student_id"] != booking.student_id:
            student = await self._get_participant(changes["student_id"], RoleEnum.TRAINEE)
            changes["student_name"] = student.full_name
            changes.setdefault("level", student.level or self.settings.booking_default_level)
        if "trainer_id" in changes and changes["trainer_id"] != booking.trainer_id:
            trainer = await self._get_participant(changes["trainer_id"], RoleEnum.TRAINER)
            changes["trainer_name"] = trainer.full_name

        moved = any(
            field in changes and changes[field] != getattr(booking, field) for field in ("trainer_id", "day", "time")
        )
        status = changes.get("status", booking.status)
        revived = booking.status == BookingStatusEnum.CANCELLED and status != BookingStatusEnum.CANCELLED
        if (moved or revived) and status != BookingStatusEnum.CANCELLED:
            await self._check_conflict(
                changes.get("trainer_id", booking.trainer_id),
                changes.get("day", booking.day),
                changes.get("time", booking.time),
                exclude_id=booking.id,
            )

        await self.store.update(BOOKINGS, booking_id, changes)
        logger.info("Booking %s updated by %s: %s", booking_id, session.user_id, sorted(changes))
        return await self._get(booking_id)

    async def record_attendance(
        self,
        session: SessionContext,
        booking_id: UUID,
        attendance: AttendanceEnum | None,
    ) -> Booking:
        """Set or clear attendance; status is left untouched."""
        require_capability(session, CapabilityEnum.BOOKING_RECORD_ATTENDANCE)
        booking = await self._get(booking_id)
        self._validate_actor_access(booking, session)

        await self.store.update(BOOKINGS, booking_id, {"attendance": attendance})
        logger.info("Attendance of booking %s set to %s by %s", booking_id, attendance, session.user_id)
        return await self._get(booking_id)

    async def delete_booking(self, session: SessionContext, booking_id: UUID) -> None:
        """Delete booking."""
        require_capability(session, CapabilityEnum.BOOKING_DELETE)
        booking = await self._get(booking_id)
        self._validate_actor_access(booking, session)
        await self.store.delete(BOOKINGS, booking_id)
        logger.info("Booking %s deleted by %s", booking_id, session.user_id)

    async def _visible_bookings(self, session: SessionContext, filters: dict) -> list[Booking]:
        if session.role == RoleEnum.TRAINEE:
            filters["student_id"] = session.user_id
        elif session.role == RoleEnum.TRAINER:
            filters["trainer_id"] = session.user_id
        elif session.role != RoleEnum.ADMIN:
            raise UnauthorizedException("Unknown role")
        return await self.store.select(BOOKINGS, filters, embed=PARTICIPANTS_EMBED)

    async def list_bookings(
        self,
        session: SessionContext,
        student_id: UUID | None = None,
        trainer_id: UUID | None = None,
        day: date | None = None,
        status: BookingStatusEnum | None = None,
        search: str | None = None,
        sort: str | None = None,
        direction: SortDirectionEnum = SortDirectionEnum.ASC,
    ) -> list[Booking]:
        """List bookings visible to the caller, then search and sort in memory."""
        filters: dict = {}
        if student_id is not None:
            filters["student_id"] = student_id
        if trainer_id is not None:
            filters["trainer_id"] = trainer_id
        if day is not None:
            filters["day"] = day
        if status is not None:
            filters["status"] = status

        bookings = await self._visible_bookings(session, filters)
        bookings = filter_by_search(bookings, search, include_schedule_fields=session.role == RoleEnum.TRAINER)
        if sort is not None:
            try:
                bookings = sort_bookings(bookings, sort, direction)
            except ValueError as exc:
                raise ValidationException(str(exc), fields=["sort"]) from exc
        return bookings

    async def stats(self, session: SessionContext) -> BookingStatsRead:
        """Counters over every booking the caller can see."""
        bookings = await self._visible_bookings(session, {})
        schedule_filters: dict = {}
        if session.role == RoleEnum.TRAINER:
            schedule_filters["trainer_id"] = session.user_id
        schedules = await self.store.select(SCHEDULES, schedule_filters)
        return compute_stats(bookings, schedules)

    async def progress(self, session: SessionContext, student_id: UUID | None = None) -> ProgressRead:
        """Attendance progress of a trainee; trainees always get their own."""
        if session.role == RoleEnum.TRAINEE:
            student_id = session.user_id
        elif student_id is None:
            raise ValidationException("Missing required fields: student_id", fields=["student_id"])

        bookings = await self._visible_bookings(session, {"student_id": student_id})
        return ProgressRead(
            student_id=student_id,
            total=len(bookings),
            present=sum(1 for booking in bookings if booking.attendance == AttendanceEnum.PRESENT),
            progress_percent=compute_progress(bookings),
        )

    async def resync_display_names(self, session: SessionContext, profile_id: UUID) -> int:
        """Refresh name snapshots of one profile's bookings; return how many changed."""
        require_capability(session, CapabilityEnum.PROFILE_MANAGE)
        matches = await self.store.select(PROFILES, {"id": profile_id})
        if not matches:
            raise NotFoundException("Profile not found")
        profile = matches[0]

        updated = 0
        for field, name_field in (("student_id", "student_name"), ("trainer_id", "trainer_name")):
            for booking in await self.store.select(BOOKINGS, {field: profile_id}):
                if getattr(booking, name_field) != profile.full_name:
                    await self.store.update(BOOKINGS, booking.id, {name_field: profile.full_name})
                    updated += 1
        logger.info("Resynced %s booking name snapshots for profile %s", updated, profile_id)
        return updated

    @staticmethod
    def time_slots() -> list[str]:
        """Hour-long academy slots offered for booking."""
        return list(FIXED_TIME_SLOTS)


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    return BookingService(SQLAlchemyRecordStore(session))
