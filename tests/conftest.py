from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

import pytest

from academy.core.enums import LevelEnum, RoleEnum
from academy.core.record_store import PROFILES, embed_attribute
from academy.modules.identity.access import SessionContext
from academy.shared.exceptions import PersistenceException


class FakeRecordStore:
    """In-memory record store keeping insertion order per collection."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[UUID, SimpleNamespace]] = {}
        self.calls: list[tuple[str, str]] = []
        self.failing: set[tuple[str, str]] = set()

    def _check(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        if (operation, collection) in self.failing:
            raise PersistenceException(
                f"Could not {operation} {collection}",
                operation=operation,
                collection=collection,
            )

    def records(self, collection: str) -> list[SimpleNamespace]:
        return list(self.collections.get(collection, {}).values())

    async def select(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        embed: Mapping[str, str] | None = None,
    ) -> list[SimpleNamespace]:
        self._check("select", collection)
        matches = [
            record
            for record in self.records(collection)
            if all(getattr(record, field, None) == value for field, value in (filters or {}).items())
        ]
        for record in matches:
            for foreign_field, related in (embed or {}).items():
                target = self.collections.get(related, {}).get(getattr(record, foreign_field))
                setattr(record, embed_attribute(foreign_field), target)
        return matches

    async def insert(self, collection: str, values: Mapping[str, Any]) -> SimpleNamespace:
        self._check("insert", collection)
        now = datetime.now(UTC)
        record = SimpleNamespace(**{"created_at": now, "updated_at": now, **values})
        if getattr(record, "id", None) is None:
            record.id = uuid4()
        self.collections.setdefault(collection, {})[record.id] = record
        return record

    async def update(self, collection: str, record_id: UUID, patch: Mapping[str, Any]) -> SimpleNamespace | None:
        self._check("update", collection)
        record = self.collections.get(collection, {}).get(record_id)
        if record is None:
            return None
        for field, value in patch.items():
            setattr(record, field, value)
        record.updated_at = datetime.now(UTC)
        return record

    async def delete(self, collection: str, record_id: UUID) -> bool:
        self._check("delete", collection)
        return self.collections.get(collection, {}).pop(record_id, None) is not None

    def add_profile(
        self,
        full_name: str,
        role: RoleEnum,
        level: LevelEnum | None = None,
        email: str | None = None,
    ) -> SimpleNamespace:
        now = datetime.now(UTC)
        profile = SimpleNamespace(
            id=uuid4(),
            full_name=full_name,
            email=email or f"{full_name.split()[0].lower()}@example.com",
            phone=None,
            role=role,
            level=level,
            created_at=now,
            updated_at=now,
        )
        self.collections.setdefault(PROFILES, {})[profile.id] = profile
        return profile


def session_for(profile: SimpleNamespace) -> SessionContext:
    return SessionContext(
        user_id=profile.id,
        email=profile.email,
        role=profile.role,
        full_name=profile.full_name,
        level=profile.level,
    )


@pytest.fixture
def store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def admin(store: FakeRecordStore) -> SimpleNamespace:
    return store.add_profile("Grace Admin", RoleEnum.ADMIN, email="grace@gators.com")


@pytest.fixture
def trainer(store: FakeRecordStore) -> SimpleNamespace:
    return store.add_profile("Alia Corp", RoleEnum.TRAINER, email="alia@trainer.com")


@pytest.fixture
def trainee(store: FakeRecordStore) -> SimpleNamespace:
    return store.add_profile("Ali Hassan", RoleEnum.TRAINEE, level=LevelEnum.LEVEL2, email="ali@gmail.com")


@pytest.fixture
def admin_session(admin: SimpleNamespace) -> SessionContext:
    return session_for(admin)


@pytest.fixture
def trainer_session(trainer: SimpleNamespace) -> SessionContext:
    return session_for(trainer)


@pytest.fixture
def trainee_session(trainee: SimpleNamespace) -> SessionContext:
    return session_for(trainee)
