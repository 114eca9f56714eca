"""Generic record store over named collections.

Services talk to persistence through four operation shapes (select, insert,
update, delete) addressed by collection name, so booking rules never depend on
ORM query construction. Collections resolve to mapped ORM classes by table
name; embedded relations are addressed by their foreign key column and exposed
on the record under the column name without the ``_id`` suffix.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import inspect, select as sa_select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapper, selectinload

from academy.core.database import collection_models
from academy.shared.exceptions import PersistenceException

logger = logging.getLogger(__name__)

PROFILES = "profiles"
BOOKINGS = "bookings"
SCHEDULES = "schedules"


class RecordStore(Protocol):
    """Contract of the persistence collaborator."""

    async def select(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        embed: Mapping[str, str] | None = None,
    ) -> list[Any]:
        """Return records matching all equality filters."""

    async def insert(self, collection: str, values: Mapping[str, Any]) -> Any:
        """Insert record and return it with generated id."""

    async def update(self, collection: str, record_id: UUID, patch: Mapping[str, Any]) -> Any | None:
        """Apply partial update; None when record does not exist."""

    async def delete(self, collection: str, record_id: UUID) -> bool:
        """Delete record; False when record does not exist."""


def embed_attribute(foreign_field: str) -> str:
    """Attribute name under which an embedded relation is exposed."""
    return foreign_field.removesuffix("_id")


class SQLAlchemyRecordStore:
    """Record store backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _mapper(collection: str) -> Mapper:
        model = collection_models().get(collection)
        if model is None:
            raise ValueError(f"Unknown collection: {collection}")
        return inspect(model)

    def _model(self, collection: str) -> type:
        return self._mapper(collection).class_

    def _embed_options(self, collection: str, embed: Mapping[str, str]) -> list:
        mapper = self._mapper(collection)
        options = []
        for foreign_field, related_collection in embed.items():
            attribute = embed_attribute(foreign_field)
            relationship = mapper.relationships.get(attribute)
            if relationship is None or relationship.mapper.local_table.name != related_collection:
                raise ValueError(
                    f"{collection}.{foreign_field} does not reference {related_collection}",
                )
            options.append(selectinload(getattr(mapper.class_, attribute)))
        return options

    async def select(
        self,
        collection: str,
        filters: Mapping[str, Any] | None = None,
        embed: Mapping[str, str] | None = None,
    ) -> list[Any]:
        model = self._model(collection)
        stmt = sa_select(model)
        for field, value in (filters or {}).items():
            column = getattr(model, field)
            stmt = stmt.where(column.is_(None) if value is None else column == value)
        if embed:
            stmt = stmt.options(*self._embed_options(collection, embed))
        if hasattr(model, "created_at"):
            stmt = stmt.order_by(model.created_at.asc())

        try:
            return list((await self.session.scalars(stmt)).all())
        except SQLAlchemyError as exc:
            raise self._failure("select", collection, exc) from exc

    async def insert(self, collection: str, values: Mapping[str, Any]) -> Any:
        record = self._model(collection)(**values)
        try:
            self.session.add(record)
            await self.session.flush()
            await self.session.refresh(record)
        except SQLAlchemyError as exc:
            raise self._failure("insert", collection, exc) from exc
        return record

    async def update(self, collection: str, record_id: UUID, patch: Mapping[str, Any]) -> Any | None:
        try:
            record = await self.session.get(self._model(collection), record_id)
            if record is None:
                return None
            for field, value in patch.items():
                setattr(record, field, value)
            await self.session.flush()
            # Reloads eagerly loaded relations too, so embeds follow changed foreign keys.
            await self.session.refresh(record)
        except SQLAlchemyError as exc:
            raise self._failure("update", collection, exc) from exc
        return record

    async def delete(self, collection: str, record_id: UUID) -> bool:
        try:
            record = await self.session.get(self._model(collection), record_id)
            if record is None:
                return False
            await self.session.delete(record)
            await self.session.flush()
        except SQLAlchemyError as exc:
            raise self._failure("delete", collection, exc) from exc
        return True

    @staticmethod
    def _failure(operation: str, collection: str, exc: SQLAlchemyError) -> PersistenceException:
        logger.warning("Record store %s on %s failed: %s", operation, collection, exc)
        return PersistenceException(
            f"Could not {operation} {collection}: {exc.__class__.__name__}",
            operation=operation,
            collection=collection,
        )
