from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest

from academy.core.config import Settings
from academy.core.enums import (
    AttendanceEnum,
    BookingStatusEnum,
    LevelEnum,
    RoleEnum,
    ScheduleStatusEnum,
)
from academy.core.record_store import BOOKINGS, SCHEDULES
from academy.modules.booking.schemas import BookingCreate, BookingUpdate
from academy.modules.booking.service import FIXED_TIME_SLOTS, BookingService
from academy.shared.exceptions import (
    BusinessRuleException,
    ConflictException,
    PersistenceException,
    UnauthorizedException,
    ValidationException,
)

DAY = date(2026, 3, 2)
SLOT = "09:00 - 10:00"


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def _service(store, **overrides) -> BookingService:
    return BookingService(store, _settings(**overrides))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("payload", "missing"),
    [
        ({}, ["student_id", "trainer_id", "day", "time"]),
        ({"day": DAY, "time": SLOT}, ["student_id", "trainer_id"]),
        ({"student_id": uuid4(), "trainer_id": uuid4(), "day": DAY, "time": "   "}, ["time"]),
        ({"student_id": uuid4(), "trainer_id": uuid4(), "time": SLOT}, ["day"]),
    ],
)
async def test_create_booking_reports_every_missing_field_before_persistence(
    store,
    admin_session,
    payload,
    missing,
) -> None:
    service = _service(store)

    with pytest.raises(ValidationException) as exc:
        await service.create_booking(admin_session, BookingCreate(**payload))

    assert exc.value.fields == missing
    assert exc.value.status_code == 422
    assert store.calls == []


@pytest.mark.asyncio
async def test_trainee_books_for_themself_with_snapshots(store, trainer, trainee, trainee_session) -> None:
    service = _service(store)
    someone_else = store.add_profile("Other Kid", RoleEnum.TRAINEE)

    booking = await service.create_booking(
        trainee_session,
        BookingCreate(
            student_id=someone_else.id,
            trainer_id=trainer.id,
            day=DAY,
            time=SLOT,
            status=BookingStatusEnum.PENDING,
        ),
    )

    assert booking.student_id == trainee.id
    assert booking.status == BookingStatusEnum.PENDING
    assert booking.attendance is None
    assert booking.level == LevelEnum.LEVEL2
    assert booking.student_name == "Ali Hassan"
    assert booking.trainer_name == "Alia Corp"
    assert booking.student is trainee
    assert booking.trainer is trainer


@pytest.mark.asyncio
async def test_trainer_books_on_own_schedule_and_may_leave_pending(
    store,
    trainer,
    trainee,
    trainer_session,
) -> None:
    service = _service(store)
    other_trainer = store.add_profile("Bob Coach", RoleEnum.TRAINER)

    booking = await service.create_booking(
        trainer_session,
        BookingCreate(
            student_id=trainee.id,
            trainer_id=other_trainer.id,
            day=DAY,
            time=SLOT,
            status=BookingStatusEnum.PENDING,
        ),
    )

    assert booking.trainer_id == trainer.id
    assert booking.status == BookingStatusEnum.PENDING


@pytest.mark.asyncio
async def test_trainee_booking_defaults_to_confirmed(store, trainer, trainee_session) -> None:
    booking = await _service(store).create_booking(
        trainee_session,
        BookingCreate(trainer_id=trainer.id, day=DAY, time=SLOT),
    )

    assert booking.status == BookingStatusEnum.CONFIRMED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [BookingStatusEnum.CANCELLED, BookingStatusEnum.ATTENDED, BookingStatusEnum.ABSENT, BookingStatusEnum.APOLOGIZED],
)
async def test_trainee_may_only_request_pending_or_confirmed(store, trainer, trainee_session, status) -> None:
    with pytest.raises(ValidationException) as exc:
        await _service(store).create_booking(
            trainee_session,
            BookingCreate(trainer_id=trainer.id, day=DAY, time=SLOT, status=status),
        )

    assert exc.value.fields == ["status"]
    assert store.records(BOOKINGS) == []


@pytest.mark.asyncio
async def test_insert_failure_reaches_caller_unchanged(store, trainer, trainee, admin_session) -> None:
    store.failing.add(("insert", BOOKINGS))

    with pytest.raises(PersistenceException) as exc:
        await _service(store).create_booking(
            admin_session,
            BookingCreate(student_id=trainee.id, trainer_id=trainer.id, day=DAY, time=SLOT),
        )

    assert exc.value.details() == {"operation": "insert", "collection": BOOKINGS}
    assert store.records(BOOKINGS) == []

@pytest.mark.asyncio
async def test_trainee_without_level_gets_default_level(store, trainer, admin_session) -> None:
    service = _service(store, booking_default_level="Adult")
    newcomer = store.add_profile("New Swimmer", RoleEnum.TRAINEE)

    booking = await service.create_booking(
        admin_session,
        BookingCreate(student_id=newcomer.id, trainer_id=trainer.id, day=DAY, time=SLOT),
    )

    assert booking.level == LevelEnum.ADULT


@pytest.mark.asyncio
async def test_booking_requires_trainee_and_trainer_roles(store, trainer, admin_session) -> None:
    service = _service(store)

    with pytest.raises(BusinessRuleException):
        await service.create_booking(
            admin_session,
            BookingCreate(student_id=trainer.id, trainer_id=trainer.id, day=DAY, time=SLOT),
        )


@pytest.mark.asyncio
async def test_default_policy_accepts_duplicate_slot_bookings(store, trainer, trainee, admin_session) -> None:
    service = _service(store)
    payload = BookingCreate(student_id=trainee.id, trainer_id=trainer.id, day=DAY, time=SLOT)

    first = await service.create_booking(admin_session, payload)
    second = await service.create_booking(admin_session, payload)

    assert first.id != second.id
    assert len(store.records(BOOKINGS)) == 2


@pytest.mark.asyncio
async def test_unique_policy_rejects_taken_slot_but_ignores_cancelled(
    store,
    trainer,
    trainee,
    admin_session,
) -> None:
    service = _service(store, booking_conflict_policy="UNIQUE")
    payload = BookingCreate(student_id=trainee.id, trainer_id=trainer.id, day=DAY, time=SLOT)

    first = await service.create_booking(admin_session, payload)
    with pytest.raises(ConflictException):
        await service.create_booking(admin_session, payload)

    await service.update_booking(admin_session, first.id, BookingUpdate(status=BookingStatusEnum.CANCELLED))
    await service.create_booking(admin_session, payload)

    assert len(store.records(BOOKINGS)) == 2


@pytest.mark.asyncio
async def test_unique_policy_rejects_reviving_cancelled_booking_into_taken_slot(
    store,
    trainer,
    trainee,
    admin_session,
) -> None:
    service = _service(store, booking_conflict_policy="UNIQUE")
    payload = BookingCreate(student_id=trainee.id, trainer_id=trainer.id, day=DAY, time=SLOT)

    first = await service.create_booking(admin_session, payload)
    await service.update_booking(admin_session, first.id, BookingUpdate(status=BookingStatusEnum.CANCELLED))
    await service.create_booking(admin_session, payload)

    with pytest.raises(ConflictException):
        await service.update_booking(admin_session, first.id, BookingUpdate(status=BookingStatusEnum.CONFIRMED))

    live = [booking for booking in store.records(BOOKINGS) if booking.status != BookingStatusEnum.CANCELLED]
    assert len(live) == 1
    assert first.status == BookingStatusEnum.CANCELLED


@pytest.mark.asyncio
async def test_capacity_policy_sums_matching_active_schedules(store, trainer, trainee, admin_session) -> None:
    service = _service(store, booking_conflict_policy="capacity")
    for time_slot, capacity, status in (
        (SLOT, 1, ScheduleStatusEnum.ACTIVE),
        ([SLOT, "10:00 - 11:00"], 1, ScheduleStatusEnum.ACTIVE),
        (SLOT, 5, ScheduleStatusEnum.INACTIVE),
    ):
        await store.insert(
            SCHEDULES,
            {
                "trainer_id": trainer.id,
                "date": DAY,
                "time_slot": time_slot,
                "capacity": capacity,
                "status": status,
            },
        )
    payload = BookingCreate(student_id=trainee.id, trainer_id=trainer.id, day=DAY, time=SLOT)

    await service.create_booking(admin_session, payload)
    await service.create_booking(admin_session, payload)
    with pytest.raises(ConflictException):
        await service.create_booking(admin_session, payload)


@pytest.mark.asyncio
async def test_capacity_policy_without_schedule_allows_one_booking(store, trainer, trainee, admin_session) -> None:
    service = _service(store, booking_conflict_policy="capacity")
    payload = BookingCreate(student_id=trainee.id, trainer_id=trainer.id, day=DAY, time="18:00 - 19:00")

    await service.create_booking(admin_session, payload)
    with pytest.raises(ConflictException):
        await service.create_booking(admin_session, payload)


@pytest.mark.asyncio
async def test_restricted_time_slots_reject_free_text_time(store, trainer, trainee, admin_session) -> None:
    service = _service(store, booking_restrict_time_slots=True)

    with pytest.raises(ValidationException) as exc:
        await service.create_booking(
            admin_session,
            BookingCreate(student_id=trainee.id, trainer_id=trainer.id, day=DAY, time="7am"),
        )

    assert exc.value.fields == ["time"]
    assert FIXED_TIME_SLOTS[0] == "08:00 - 09:00"
    assert FIXED_TIME_SLOTS[-1] == "19:00 - 20:00"
    assert len(FIXED_TIME_SLOTS) == 12


@pytest.mark.asyncio
async def test_any_status_transition_is_allowed_and_attendance_is_independent(
    store,
    trainer,
    trainee,
    trainer_session,
) -> None:
    service = _service(store)
    booking = await service.create_booking(
        trainer_session,
        BookingCreate(student_id=trainee.id, trainer_id=trainer.id, day=DAY, time=SLOT),
    )

    for status in (BookingStatusEnum.CANCELLED, BookingStatusEnum.PENDING, BookingStatusEnum.ATTENDED):
        booking = await service.update_booking(trainer_session, booking.id, BookingUpdate(status=status))
        assert booking.status == status

    booking = await service.record_attendance(trainer_session, booking.id, AttendanceEnum.ABSENT)
    assert booking.attendance == AttendanceEnum.ABSENT
    assert booking.status == BookingStatusEnum.ATTENDED

    booking = await service.record_attendance(trainer_session, booking.id, None)
    assert booking.attendance is None


@pytest.mark.asyncio
async def test_trainer_cannot_touch_other_trainers_bookings(store, trainee, admin_session, trainer_session) -> None:
    service = _service(store)
    other_trainer = store.add_profile("Bob Coach", RoleEnum.TRAINER)
    booking = await service.create_booking(
        admin_session,
        BookingCreate(student_id=trainee.id, trainer_id=other_trainer.id, day=DAY, time=SLOT),
    )

    with pytest.raises(UnauthorizedException):
        await service.record_attendance(trainer_session, booking.id, AttendanceEnum.PRESENT)
    with pytest.raises(UnauthorizedException):
        await service.delete_booking(trainer_session, booking.id)


@pytest.mark.asyncio
async def test_trainee_cannot_update_or_delete_bookings(store, trainer, trainee_session) -> None:
    service = _service(store)
    booking = await service.create_booking(
        trainee_session,
        BookingCreate(trainer_id=trainer.id, day=DAY, time=SLOT),
    )

    with pytest.raises(UnauthorizedException):
        await service.update_booking(trainee_session, booking.id, BookingUpdate(status=BookingStatusEnum.CANCELLED))
    with pytest.raises(UnauthorizedException):
        await service.delete_booking(trainee_session, booking.id)


@pytest.mark.asyncio
async def test_admin_reassigning_trainee_refreshes_snapshots(store, trainer, trainee, admin_session) -> None:
    service = _service(store)
    booking = await service.create_booking(
        admin_session,
        BookingCreate(student_id=trainee.id, trainer_id=trainer.id, day=DAY, time=SLOT),
    )
    other = store.add_profile("Mona Lisa", RoleEnum.TRAINEE, level=LevelEnum.DREAM_TEAM)

    updated = await service.update_booking(admin_session, booking.id, BookingUpdate(student_id=other.id))

    assert updated.student_name == "Mona Lisa"
    assert updated.level == LevelEnum.DREAM_TEAM


@pytest.mark.asyncio
async def test_list_bookings_is_scoped_by_role(store, trainer, trainee, admin_session, trainee_session) -> None:
    service = _service(store)
    other_trainee = store.add_profile("Other Kid", RoleEnum.TRAINEE)
    for student in (trainee, other_trainee):
        await service.create_booking(
            admin_session,
            BookingCreate(student_id=student.id, trainer_id=trainer.id, day=DAY, time=SLOT),
        )

    own = await service.list_bookings(trainee_session)
    everything = await service.list_bookings(admin_session)

    assert [booking.student_id for booking in own] == [trainee.id]
    assert len(everything) == 2


@pytest.mark.asyncio
async def test_list_bookings_rejects_unknown_sort_key(store, admin_session) -> None:
    service = _service(store)

    with pytest.raises(ValidationException) as exc:
        await service.list_bookings(admin_session, sort="password")

    assert exc.value.fields == ["sort"]


@pytest.mark.asyncio
async def test_progress_for_trainee_counts_present_only(store, trainer, trainee, admin_session, trainee_session) -> None:
    service = _service(store)
    outcomes = [AttendanceEnum.PRESENT, AttendanceEnum.PRESENT, None, AttendanceEnum.ABSENT]
    for outcome in outcomes:
        booking = await service.create_booking(
            admin_session,
            BookingCreate(student_id=trainee.id, trainer_id=trainer.id, day=DAY, time=SLOT),
        )
        await service.record_attendance(admin_session, booking.id, outcome)

    progress = await service.progress(trainee_session)

    assert progress.total == 4
    assert progress.present == 2
    assert progress.progress_percent == 50.0


@pytest.mark.asyncio
async def test_staff_progress_requires_student_id(store, admin_session) -> None:
    service = _service(store)

    with pytest.raises(ValidationException):
        await service.progress(admin_session)


@pytest.mark.asyncio
async def test_resync_display_names_refreshes_stale_snapshots(store, trainer, trainee, admin_session) -> None:
    service = _service(store)
    booking = await service.create_booking(
        admin_session,
        BookingCreate(student_id=trainee.id, trainer_id=trainer.id, day=DAY, time=SLOT),
    )
    trainee.full_name = "Ali H. Hassan"

    assert booking.student_name == "Ali Hassan"
    assert await service.resync_display_names(admin_session, trainee.id) == 1
    assert booking.student_name == "Ali H. Hassan"
    assert await service.resync_display_names(admin_session, trainee.id) == 0
