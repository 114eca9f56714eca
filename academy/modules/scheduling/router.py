"""Scheduling API router."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy.core.enums import ScheduleStatusEnum
from academy.modules.identity.access import SessionContext
from academy.modules.identity.service import get_current_session
from academy.modules.scheduling.schemas import (
    AvailableTimesRead,
    ScheduleCreate,
    ScheduleRead,
    ScheduleUpdate,
)
from academy.modules.scheduling.service import SchedulingService, get_scheduling_service
from academy.shared.pagination import Page, get_pagination_params, paginate

router = APIRouter(prefix="/scheduling", tags=["scheduling"])


@router.get("/schedules", response_model=Page[ScheduleRead])
async def list_schedules(
    trainer_id: UUID | None = Query(default=None),
    on_date: date | None = Query(default=None, alias="date"),
    status_filter: ScheduleStatusEnum | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=128),
    pagination=Depends(get_pagination_params),
    service: SchedulingService = Depends(get_scheduling_service),
    session: SessionContext = Depends(get_current_session),
) -> Page[ScheduleRead]:
    """List schedules."""
    schedules = await service.list_schedules(
        session,
        trainer_id=trainer_id,
        on_date=on_date,
        status=status_filter,
        search=search,
    )
    return paginate([ScheduleRead.model_validate(item) for item in schedules], pagination)


@router.post("/schedules", response_model=ScheduleRead, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    payload: ScheduleCreate,
    service: SchedulingService = Depends(get_scheduling_service),
    session: SessionContext = Depends(get_current_session),
) -> ScheduleRead:
    """Create schedule."""
    return ScheduleRead.model_validate(await service.create_schedule(session, payload))


@router.patch("/schedules/{schedule_id}", response_model=ScheduleRead)
async def update_schedule(
    schedule_id: UUID,
    payload: ScheduleUpdate,
    service: SchedulingService = Depends(get_scheduling_service),
    session: SessionContext = Depends(get_current_session),
) -> ScheduleRead:
    """Update schedule."""
    return ScheduleRead.model_validate(await service.update_schedule(session, schedule_id, payload))


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    schedule_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
    session: SessionContext = Depends(get_current_session),
) -> None:
    """Delete schedule."""
    await service.delete_schedule(session, schedule_id)


@router.get("/available-times", response_model=AvailableTimesRead)
async def get_available_times(
    trainer_id: UUID = Query(...),
    on_date: date = Query(..., alias="date"),
    service: SchedulingService = Depends(get_scheduling_service),
    session: SessionContext = Depends(get_current_session),
) -> AvailableTimesRead:
    """Time slots a trainer declared for a date."""
    times = await service.get_available_times(trainer_id, on_date)
    return AvailableTimesRead(trainer_id=trainer_id, date=on_date, times=times)
