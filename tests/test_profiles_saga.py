from __future__ import annotations

from datetime import date
from uuid import UUID, uuid4

import pytest

from academy.core.enums import LevelEnum, RoleEnum
from academy.core.record_store import BOOKINGS, PROFILES
from academy.modules.identity.schemas import AuthUser, TokenPair, UserMetadata
from academy.modules.profiles.schemas import ProfileCreate, ProfileUpdate
from academy.modules.profiles.service import ProfilesService
from academy.shared.exceptions import (
    BusinessRuleException,
    NotFoundException,
    PartialFailureException,
    UnauthorizedException,
)
from academy.shared.utils import utc_today


class FakeIdentityProvider:
    def __init__(self, store) -> None:
        self.store = store
        self.emails: dict[UUID, str] = {}
        self.deleted: list[UUID] = []
        self.fail_delete = False
        self.fail_email_update = False

    async def sign_up(self, email: str, password: str, metadata: UserMetadata) -> AuthUser:
        profile = await self.store.insert(
            PROFILES,
            {
                "full_name": metadata.full_name,
                "email": email,
                "phone": metadata.phone,
                "role": metadata.role,
                "level": metadata.level,
            },
        )
        self.emails[profile.id] = email
        return AuthUser(id=profile.id, email=email, user_metadata=metadata)

    async def sign_in(self, email: str, password: str) -> TokenPair:
        raise NotImplementedError

    async def admin_delete_user(self, user_id: UUID) -> None:
        if self.fail_delete:
            raise RuntimeError("identity provider unavailable")
        self.deleted.append(user_id)

    async def admin_update_user_email(self, user_id: UUID, new_email: str) -> None:
        if self.fail_email_update:
            raise RuntimeError("identity provider unavailable")
        self.emails[user_id] = new_email


@pytest.fixture
def identity(store) -> FakeIdentityProvider:
    return FakeIdentityProvider(store)


@pytest.mark.asyncio
async def test_admin_creates_profile_with_explicit_role(store, identity, admin_session) -> None:
    service = ProfilesService(store, identity)

    profile = await service.create_profile(
        admin_session,
        ProfileCreate(
            email="coach@gmail.com",
            password="secret-pass",
            full_name="Coach Carter",
            role=RoleEnum.TRAINER,
        ),
    )

    assert profile.role == RoleEnum.TRAINER
    assert identity.emails[profile.id] == "coach@gmail.com"


@pytest.mark.asyncio
async def test_delete_profile_removes_profile_then_account(store, identity, trainee, admin_session) -> None:
    service = ProfilesService(store, identity)

    await service.delete_profile(admin_session, trainee.id)

    assert identity.deleted == [trainee.id]
    assert trainee.id not in {profile.id for profile in store.records(PROFILES)}


@pytest.mark.asyncio
async def test_delete_profile_restores_profile_when_account_removal_fails(
    store,
    identity,
    trainee,
    admin_session,
) -> None:
    service = ProfilesService(store, identity)
    identity.fail_delete = True

    with pytest.raises(PartialFailureException) as exc:
        await service.delete_profile(admin_session, trainee.id)

    assert exc.value.completed_steps == ["delete_profile"]
    assert exc.value.failed_step == "delete_account"
    assert exc.value.compensated is True
    restored = (await store.select(PROFILES, {"id": trainee.id}))[0]
    assert restored.full_name == "Ali Hassan"
    assert restored.level == LevelEnum.LEVEL2


@pytest.mark.asyncio
async def test_delete_profile_reports_failed_compensation(store, identity, trainee, admin_session) -> None:
    service = ProfilesService(store, identity)
    identity.fail_delete = True
    store.failing.add(("insert", PROFILES))

    with pytest.raises(PartialFailureException) as exc:
        await service.delete_profile(admin_session, trainee.id)

    assert exc.value.compensated is False
    assert exc.value.details()["compensated"] is False


@pytest.mark.asyncio
async def test_admin_cannot_delete_own_profile(store, identity, admin, admin_session) -> None:
    with pytest.raises(BusinessRuleException):
        await ProfilesService(store, identity).delete_profile(admin_session, admin.id)


@pytest.mark.asyncio
async def test_email_change_moves_login_email(store, identity, trainee, admin_session) -> None:
    service = ProfilesService(store, identity)

    updated = await service.update_profile(admin_session, trainee.id, ProfileUpdate(email="ali@new.com"))

    assert updated.email == "ali@new.com"
    assert identity.emails[trainee.id] == "ali@new.com"


@pytest.mark.asyncio
async def test_email_change_is_rolled_back_when_account_update_fails(
    store,
    identity,
    trainee,
    admin_session,
) -> None:
    service = ProfilesService(store, identity)
    identity.fail_email_update = True

    with pytest.raises(PartialFailureException) as exc:
        await service.update_profile(
            admin_session,
            trainee.id,
            ProfileUpdate(email="ali@new.com", full_name="Ali Renamed"),
        )

    assert exc.value.failed_step == "update_account_email"
    assert exc.value.compensated is True
    assert trainee.email == "ali@gmail.com"
    assert trainee.full_name == "Ali Hassan"


@pytest.mark.asyncio
async def test_self_edit_limits(store, identity, trainee, trainer, trainee_session, trainer_session) -> None:
    service = ProfilesService(store, identity)

    updated = await service.update_profile(trainee_session, trainee.id, ProfileUpdate(phone="+20 100"))
    assert updated.phone == "+20 100"

    with pytest.raises(UnauthorizedException):
        await service.update_profile(trainee_session, trainee.id, ProfileUpdate(level=LevelEnum.DREAM_TEAM))
    with pytest.raises(UnauthorizedException):
        await service.update_profile(trainee_session, trainee.id, ProfileUpdate(email="x@gmail.com"))
    with pytest.raises(UnauthorizedException):
        await service.update_profile(trainee_session, trainer.id, ProfileUpdate(full_name="Hacked Name"))

    updated = await service.update_profile(trainer_session, trainer.id, ProfileUpdate(level=LevelEnum.ADULT))
    assert updated.level == LevelEnum.ADULT


@pytest.mark.asyncio
async def test_trainee_directory_is_limited_to_trainers(store, identity, trainer, trainee, trainee_session) -> None:
    service = ProfilesService(store, identity)

    listed = await service.list_profiles(trainee_session)

    assert [profile.id for profile in listed] == [trainer.id]
    with pytest.raises(UnauthorizedException):
        await service.list_profiles(trainee_session, role=RoleEnum.TRAINEE)
    assert (await service.get_profile(trainee_session, trainee.id)).id == trainee.id


@pytest.mark.asyncio
async def test_profile_search_matches_name_email_and_level(store, identity, trainee, admin_session) -> None:
    service = ProfilesService(store, identity)

    assert [item.id for item in await service.list_profiles(admin_session, search="level2")] == [trainee.id]
    assert [item.id for item in await service.list_profiles(admin_session, search="GMAIL")] == [trainee.id]
    assert len(await service.list_profiles(admin_session, search="a")) == 2


@pytest.mark.asyncio
async def test_get_unknown_profile_raises_not_found(store, identity, admin_session) -> None:
    with pytest.raises(NotFoundException):
        await ProfilesService(store, identity).get_profile(admin_session, uuid4())


@pytest.mark.asyncio
async def test_workload_and_overview_count_bookings(store, identity, trainer, trainee, admin_session) -> None:
    service = ProfilesService(store, identity)
    await store.insert(BOOKINGS, {"trainer_id": trainer.id, "student_id": trainee.id, "day": utc_today()})
    await store.insert(BOOKINGS, {"trainer_id": trainer.id, "student_id": trainee.id, "day": date(2020, 1, 6)})

    workload = await service.trainer_workload(admin_session)
    overview = await service.overview(admin_session)

    assert [(item.id, item.total_bookings, item.today_bookings) for item in workload] == [(trainer.id, 2, 1)]
    assert overview.total_bookings == 2
    assert overview.total_trainers == 1
    assert overview.total_trainees == 1
    assert overview.active_schedules == 0
