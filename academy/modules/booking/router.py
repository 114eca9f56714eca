"""Booking API router."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy.core.enums import BookingStatusEnum, SortDirectionEnum
from academy.modules.booking.schemas import (
    AttendanceUpdate,
    BookingCreate,
    BookingRead,
    BookingStatsRead,
    BookingUpdate,
    ProgressRead,
)
from academy.modules.booking.service import BookingService, get_booking_service
from academy.modules.identity.access import SessionContext
from academy.modules.identity.service import get_current_session
from academy.shared.pagination import Page, get_pagination_params, paginate

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("", response_model=Page[BookingRead])
async def list_bookings(
    student_id: UUID | None = Query(default=None),
    trainer_id: UUID | None = Query(default=None),
    day: date | None = Query(default=None),
    status_filter: BookingStatusEnum | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=128),
    sort: str | None = Query(default=None),
    direction: SortDirectionEnum = Query(default=SortDirectionEnum.ASC),
    pagination=Depends(get_pagination_params),
    service: BookingService = Depends(get_booking_service),
    session: SessionContext = Depends(get_current_session),
) -> Page[BookingRead]:
    """List bookings visible to the current user."""
    bookings = await service.list_bookings(
        session,
        student_id=student_id,
        trainer_id=trainer_id,
        day=day,
        status=status_filter,
        search=search,
        sort=sort,
        direction=direction,
    )
    return paginate([BookingRead.model_validate(item) for item in bookings], pagination)


@router.get("/stats", response_model=BookingStatsRead)
async def get_booking_stats(
    service: BookingService = Depends(get_booking_service),
    session: SessionContext = Depends(get_current_session),
) -> BookingStatsRead:
    """Dashboard counters."""
    return await service.stats(session)


@router.get("/progress", response_model=ProgressRead)
async def get_progress(
    student_id: UUID | None = Query(default=None),
    service: BookingService = Depends(get_booking_service),
    session: SessionContext = Depends(get_current_session),
) -> ProgressRead:
    """Attendance progress of a trainee."""
    return await service.progress(session, student_id)


@router.get("/time-slots", response_model=list[str])
async def list_time_slots(
    service: BookingService = Depends(get_booking_service),
    session: SessionContext = Depends(get_current_session),
) -> list[str]:
    """Academy hour slots."""
    return service.time_slots()


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    service: BookingService = Depends(get_booking_service),
    session: SessionContext = Depends(get_current_session),
) -> BookingRead:
    """Create booking."""
    return BookingRead.model_validate(await service.create_booking(session, payload))


@router.patch("/{booking_id}", response_model=BookingRead)
async def update_booking(
    booking_id: UUID,
    payload: BookingUpdate,
    service: BookingService = Depends(get_booking_service),
    session: SessionContext = Depends(get_current_session),
) -> BookingRead:
    """Update booking fields or status."""
    return BookingRead.model_validate(await service.update_booking(session, booking_id, payload))


@router.put("/{booking_id}/attendance", response_model=BookingRead)
async def record_attendance(
    booking_id: UUID,
    payload: AttendanceUpdate,
    service: BookingService = Depends(get_booking_service),
    session: SessionContext = Depends(get_current_session),
) -> BookingRead:
    """Record attendance outcome."""
    booking = await service.record_attendance(session, booking_id, payload.attendance)
    return BookingRead.model_validate(booking)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    session: SessionContext = Depends(get_current_session),
) -> None:
    """Delete booking."""
    await service.delete_booking(session, booking_id)


@router.post("/display-names/{profile_id}/resync", response_model=int)
async def resync_display_names(
    profile_id: UUID,
    service: BookingService = Depends(get_booking_service),
    session: SessionContext = Depends(get_current_session),
) -> int:
    """Refresh booking name snapshots of a profile."""
    return await service.resync_display_names(session, profile_id)
