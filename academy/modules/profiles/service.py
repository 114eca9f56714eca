"""Profiles business logic layer."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.database import get_db_session
from academy.core.enums import CapabilityEnum, RoleEnum, ScheduleStatusEnum
from academy.core.record_store import BOOKINGS, PROFILES, SCHEDULES, RecordStore, SQLAlchemyRecordStore
from academy.modules.identity.access import SessionContext, has_capability, require_capability
from academy.modules.identity.repository import IdentityRepository
from academy.modules.identity.schemas import UserMetadata
from academy.modules.identity.service import IdentityProvider, IdentityService
from academy.modules.profiles.models import Profile
from academy.modules.profiles.schemas import (
    DirectoryOverviewRead,
    ProfileCreate,
    ProfileUpdate,
    TrainerWorkloadRead,
)
from academy.shared.exceptions import (
    BusinessRuleException,
    NotFoundException,
    PartialFailureException,
    UnauthorizedException,
)
from academy.shared.utils import contains_casefold, utc_today

logger = logging.getLogger(__name__)

_PROFILE_SNAPSHOT_FIELDS = ("id", "full_name", "email", "phone", "role", "level", "created_at")


def _snapshot(profile: Profile) -> dict:
    return {field: getattr(profile, field) for field in _PROFILE_SNAPSHOT_FIELDS}


def filter_profiles(profiles: list[Profile], term: str | None) -> list[Profile]:
    """Match full name, email or level, case-insensitively."""
    if not term:
        return list(profiles)
    return [
        profile
        for profile in profiles
        if contains_casefold(profile.full_name, term)
        or contains_casefold(profile.email, term)
        or contains_casefold(profile.level, term)
    ]


class ProfilesService:
    """Profiles domain service."""

    def __init__(self, store: RecordStore, identity: IdentityProvider) -> None:
        self.store = store
        self.identity = identity

    async def _get(self, profile_id: UUID) -> Profile:
        matches = await self.store.select(PROFILES, {"id": profile_id})
        if not matches:
            raise NotFoundException("Profile not found")
        return matches[0]

    async def list_profiles(
        self,
        session: SessionContext,
        role: RoleEnum | None = None,
        search: str | None = None,
    ) -> list[Profile]:
        """List profiles; callers without directory access only see trainers."""
        if not has_capability(session, CapabilityEnum.PROFILE_VIEW_DIRECTORY):
            if role not in (None, RoleEnum.TRAINER):
                raise UnauthorizedException("Only trainer profiles are visible to your role")
            role = RoleEnum.TRAINER

        filters = {"role": role} if role is not None else {}
        profiles = await self.store.select(PROFILES, filters)
        return filter_profiles(profiles, search)

    async def get_profile(self, session: SessionContext, profile_id: UUID) -> Profile:
        """Return one profile visible to the caller."""
        profile = await self._get(profile_id)
        if profile.id == session.user_id:
            return profile
        if has_capability(session, CapabilityEnum.PROFILE_VIEW_DIRECTORY) or profile.role == RoleEnum.TRAINER:
            return profile
        raise UnauthorizedException("You cannot view this profile")

    async def create_profile(self, session: SessionContext, payload: ProfileCreate) -> Profile:
        """Create account plus profile with an explicit role."""
        require_capability(session, CapabilityEnum.PROFILE_MANAGE)
        metadata = UserMetadata(
            full_name=payload.full_name,
            role=payload.role,
            phone=payload.phone,
            level=payload.level,
        )
        account = await self.identity.sign_up(payload.email, payload.password, metadata)
        return await self._get(account.id)

    async def update_profile(
        self,
        session: SessionContext,
        profile_id: UUID,
        payload: ProfileUpdate,
    ) -> Profile:
        """Update profile; an email change also moves the login email."""
        profile = await self._get(profile_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        is_manager = has_capability(session, CapabilityEnum.PROFILE_MANAGE)

        if not is_manager:
            if profile.id != session.user_id:
                raise UnauthorizedException("Only admin or owner can update profile")
            require_capability(session, CapabilityEnum.PROFILE_EDIT_SELF)
            if "email" in changes:
                raise UnauthorizedException("Only admin can change email")
            if "level" in changes and session.role == RoleEnum.TRAINEE:
                raise UnauthorizedException("Trainee level is assigned by staff")

        new_email = changes.get("email")
        if new_email is None or new_email == profile.email:
            changes.pop("email", None)
            return await self.store.update(PROFILES, profile.id, changes)

        previous = {field: getattr(profile, field) for field in changes}
        updated = await self.store.update(PROFILES, profile.id, changes)
        try:
            await self.identity.admin_update_user_email(profile.id, new_email)
        except Exception as exc:
            compensated = await self._compensate(
                "restore profile fields",
                self.store.update(PROFILES, profile.id, previous),
            )
            raise PartialFailureException(
                f"Profile updated but account email change failed: {exc}",
                completed_steps=["update_profile"],
                failed_step="update_account_email",
                compensated=compensated,
            ) from exc
        return updated

    async def delete_profile(self, session: SessionContext, profile_id: UUID) -> None:
        """Remove profile, then its account; undo the profile removal if the second step fails."""
        require_capability(session, CapabilityEnum.PROFILE_MANAGE)
        if profile_id == session.user_id:
            raise BusinessRuleException("Admins cannot remove their own profile")

        profile = await self._get(profile_id)
        snapshot = _snapshot(profile)
        await self.store.delete(PROFILES, profile_id)
        try:
            await self.identity.admin_delete_user(profile_id)
        except Exception as exc:
            compensated = await self._compensate("restore profile", self.store.insert(PROFILES, snapshot))
            raise PartialFailureException(
                f"Profile removed but account deletion failed: {exc}",
                completed_steps=["delete_profile"],
                failed_step="delete_account",
                compensated=compensated,
            ) from exc
        logger.info("Profile %s and its account removed by %s", profile_id, session.user_id)

    async def trainer_workload(self, session: SessionContext) -> list[TrainerWorkloadRead]:
        """Trainers with their total and today's booking counts."""
        require_capability(session, CapabilityEnum.BOOKING_VIEW_ALL)
        trainers = await self.store.select(PROFILES, {"role": RoleEnum.TRAINER})
        bookings = await self.store.select(BOOKINGS)
        today = utc_today()

        workload = []
        for trainer in trainers:
            own = [booking for booking in bookings if booking.trainer_id == trainer.id]
            workload.append(
                TrainerWorkloadRead.model_validate(
                    {
                        **_snapshot(trainer),
                        "updated_at": trainer.updated_at,
                        "total_bookings": len(own),
                        "today_bookings": sum(1 for booking in own if booking.day == today),
                    },
                ),
            )
        return workload

    async def overview(self, session: SessionContext) -> DirectoryOverviewRead:
        """Academy-wide counters."""
        require_capability(session, CapabilityEnum.BOOKING_VIEW_ALL)
        bookings = await self.store.select(BOOKINGS)
        trainers = await self.store.select(PROFILES, {"role": RoleEnum.TRAINER})
        trainees = await self.store.select(PROFILES, {"role": RoleEnum.TRAINEE})
        schedules = await self.store.select(SCHEDULES, {"status": ScheduleStatusEnum.ACTIVE})
        return DirectoryOverviewRead(
            total_bookings=len(bookings),
            total_trainers=len(trainers),
            total_trainees=len(trainees),
            active_schedules=len(schedules),
        )

    @staticmethod
    async def _compensate(description: str, action: Awaitable[object]) -> bool:
        try:
            await action
        except Exception:
            logger.exception("Compensation failed: %s", description)
            return False
        logger.warning("Compensation applied: %s", description)
        return True


async def get_profiles_service(session: AsyncSession = Depends(get_db_session)) -> ProfilesService:
    """Dependency provider for profiles service."""
    store = SQLAlchemyRecordStore(session)
    return ProfilesService(store, IdentityService(IdentityRepository(session), store))
