"""Profiles API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy.core.enums import RoleEnum
from academy.modules.identity.access import SessionContext
from academy.modules.identity.service import get_current_session
from academy.modules.profiles.schemas import (
    DirectoryOverviewRead,
    ProfileCreate,
    ProfileRead,
    ProfileUpdate,
    TrainerWorkloadRead,
)
from academy.modules.profiles.service import ProfilesService, get_profiles_service
from academy.shared.pagination import Page, get_pagination_params, paginate

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("", response_model=Page[ProfileRead])
async def list_profiles(
    role: RoleEnum | None = Query(default=None),
    search: str | None = Query(default=None, max_length=128),
    pagination=Depends(get_pagination_params),
    service: ProfilesService = Depends(get_profiles_service),
    session: SessionContext = Depends(get_current_session),
) -> Page[ProfileRead]:
    """List profiles, optionally by role and search term."""
    profiles = await service.list_profiles(session, role=role, search=search)
    return paginate([ProfileRead.model_validate(item) for item in profiles], pagination)


@router.get("/overview", response_model=DirectoryOverviewRead)
async def get_overview(
    service: ProfilesService = Depends(get_profiles_service),
    session: SessionContext = Depends(get_current_session),
) -> DirectoryOverviewRead:
    """Academy-wide counters."""
    return await service.overview(session)


@router.get("/trainers/workload", response_model=list[TrainerWorkloadRead])
async def get_trainer_workload(
    service: ProfilesService = Depends(get_profiles_service),
    session: SessionContext = Depends(get_current_session),
) -> list[TrainerWorkloadRead]:
    """Trainers with booking counters."""
    return await service.trainer_workload(session)


@router.get("/{profile_id}", response_model=ProfileRead)
async def get_profile(
    profile_id: UUID,
    service: ProfilesService = Depends(get_profiles_service),
    session: SessionContext = Depends(get_current_session),
) -> ProfileRead:
    """Return one profile."""
    return ProfileRead.model_validate(await service.get_profile(session, profile_id))


@router.post("", response_model=ProfileRead, status_code=status.HTTP_201_CREATED)
async def create_profile(
    payload: ProfileCreate,
    service: ProfilesService = Depends(get_profiles_service),
    session: SessionContext = Depends(get_current_session),
) -> ProfileRead:
    """Create trainer or trainee together with an account."""
    return ProfileRead.model_validate(await service.create_profile(session, payload))


@router.patch("/{profile_id}", response_model=ProfileRead)
async def update_profile(
    profile_id: UUID,
    payload: ProfileUpdate,
    service: ProfilesService = Depends(get_profiles_service),
    session: SessionContext = Depends(get_current_session),
) -> ProfileRead:
    """Update profile fields."""
    return ProfileRead.model_validate(await service.update_profile(session, profile_id, payload))


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(
    profile_id: UUID,
    service: ProfilesService = Depends(get_profiles_service),
    session: SessionContext = Depends(get_current_session),
) -> None:
    """Remove profile and its account."""
    await service.delete_profile(session, profile_id)
