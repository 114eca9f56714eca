"""Scheduling business logic layer."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.database import get_db_session
from academy.core.enums import CapabilityEnum, RoleEnum, ScheduleStatusEnum
from academy.core.record_store import PROFILES, SCHEDULES, RecordStore, SQLAlchemyRecordStore
from academy.modules.identity.access import SessionContext, has_capability, require_capability
from academy.modules.scheduling.models import Schedule
from academy.modules.scheduling.schemas import ScheduleCreate, ScheduleUpdate
from academy.shared.exceptions import BusinessRuleException, NotFoundException, UnauthorizedException
from academy.shared.utils import contains_casefold

logger = logging.getLogger(__name__)

TRAINER_EMBED = {"trainer_id": PROFILES}


def flatten_time_slots(schedules: Iterable[Schedule]) -> list[str]:
    """Flatten time_slot values in record order; duplicates are kept."""
    times: list[str] = []
    for schedule in schedules:
        slot = schedule.time_slot
        if isinstance(slot, list | tuple):
            times.extend(slot)
        elif slot:
            times.append(slot)
    return times


def filter_schedules(schedules: list[Schedule], term: str | None) -> list[Schedule]:
    """Match trainer name, any time slot or the ISO date."""
    if not term:
        return list(schedules)

    def _matches(schedule: Schedule) -> bool:
        trainer = getattr(schedule, "trainer", None)
        if trainer is not None and contains_casefold(trainer.full_name, term):
            return True
        if any(contains_casefold(slot, term) for slot in flatten_time_slots([schedule])):
            return True
        return contains_casefold(schedule.date.isoformat(), term)

    return [schedule for schedule in schedules if _matches(schedule)]


class SchedulingService:
    """Scheduling domain service."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def _ensure_can_manage(self, session: SessionContext, trainer_id: UUID) -> None:
        if has_capability(session, CapabilityEnum.SCHEDULE_MANAGE_ANY):
            return
        require_capability(session, CapabilityEnum.SCHEDULE_MANAGE_OWN)
        if trainer_id != session.user_id:
            raise UnauthorizedException("Trainers can only manage their own schedules")

    async def _get(self, schedule_id: UUID) -> Schedule:
        matches = await self.store.select(SCHEDULES, {"id": schedule_id}, embed=TRAINER_EMBED)
        if not matches:
            raise NotFoundException("Schedule not found")
        return matches[0]

    async def _ensure_trainer(self, trainer_id: UUID) -> None:
        profiles = await self.store.select(PROFILES, {"id": trainer_id})
        if not profiles:
            raise NotFoundException("Trainer not found")
        if profiles[0].role != RoleEnum.TRAINER:
            raise BusinessRuleException("Schedules can only be assigned to trainers")

    async def create_schedule(self, session: SessionContext, payload: ScheduleCreate) -> Schedule:
        """Declare trainer availability."""
        self._ensure_can_manage(session, payload.trainer_id)
        await self._ensure_trainer(payload.trainer_id)

        schedule = await self.store.insert(SCHEDULES, payload.model_dump())
        logger.info("Schedule %s created for trainer %s", schedule.id, payload.trainer_id)
        return await self._get(schedule.id)

    async def update_schedule(
        self,
        session: SessionContext,
        schedule_id: UUID,
        payload: ScheduleUpdate,
    ) -> Schedule:
        """Update schedule fields."""
        schedule = await self._get(schedule_id)
        self._ensure_can_manage(session, schedule.trainer_id)

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        await self.store.update(SCHEDULES, schedule_id, changes)
        return await self._get(schedule_id)

    async def delete_schedule(self, session: SessionContext, schedule_id: UUID) -> None:
        """Delete schedule."""
        schedule = await self._get(schedule_id)
        self._ensure_can_manage(session, schedule.trainer_id)
        await self.store.delete(SCHEDULES, schedule_id)
        logger.info("Schedule %s deleted by %s", schedule_id, session.user_id)

    async def list_schedules(
        self,
        session: SessionContext,
        trainer_id: UUID | None = None,
        on_date: date | None = None,
        status: ScheduleStatusEnum | None = None,
        search: str | None = None,
    ) -> list[Schedule]:
        """List schedules visible to the caller.

        Trainers see their own schedules, trainees only active ones.
        """
        if session.role == RoleEnum.TRAINER:
            trainer_id = session.user_id
        elif session.role == RoleEnum.TRAINEE:
            status = ScheduleStatusEnum.ACTIVE

        filters: dict = {}
        if trainer_id is not None:
            filters["trainer_id"] = trainer_id
        if on_date is not None:
            filters["date"] = on_date
        if status is not None:
            filters["status"] = status

        schedules = await self.store.select(SCHEDULES, filters, embed=TRAINER_EMBED)
        return filter_schedules(schedules, search)

    async def get_available_times(self, trainer_id: UUID, on_date: date) -> list[str]:
        """Time slots of the trainer's active schedules on the date."""
        schedules = await self.store.select(
            SCHEDULES,
            {"trainer_id": trainer_id, "date": on_date, "status": ScheduleStatusEnum.ACTIVE},
        )
        return flatten_time_slots(schedules)


async def get_scheduling_service(session: AsyncSession = Depends(get_db_session)) -> SchedulingService:
    """Dependency provider for scheduling service."""
    return SchedulingService(SQLAlchemyRecordStore(session))
