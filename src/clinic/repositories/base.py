"""Shared plumbing for repositories over soft-deletable tables.

Repositories flush but never commit. The service that opens
``db.session.atomic`` decides when a unit of work is committed.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import Base
from ..models.mixins import utc_now

ModelT = TypeVar("ModelT", bound=Base)


class SoftDeleteRepository(Generic[ModelT]):
    """CRUD helpers common to every clinic table."""

    model: type[ModelT]

    def __init__(self, session: AsyncSession) -> None:
        """Initialize with database session."""
        self.session = session

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get_by_id(self, entity_id: str) -> ModelT | None:
        """Get a row by id, including soft-deleted rows."""
        query = select(self.model).where(self.model.id == entity_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_live_by_id(self, entity_id: str) -> ModelT | None:
        query = select(self.model).where(
            self.model.id == entity_id,
            self.model.deleted_at.is_(None),
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def add(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def update_fields(self, entity: ModelT, **fields: Any) -> ModelT:
        """Assign the given fields and bump ``updated_at``."""
        for name, value in fields.items():
            setattr(entity, name, value)
        entity.updated_at = utc_now()
        await self.session.flush()
        return entity

    async def soft_delete(self, entity: ModelT, when: datetime | None = None) -> ModelT:
        entity.mark_deleted(when)
        await self.session.flush()
        return entity

    async def restore(self, entity: ModelT) -> ModelT:
        entity.mark_restored()
        await self.session.flush()
        return entity
