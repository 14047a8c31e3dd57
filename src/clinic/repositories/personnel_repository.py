"""Doctor and Staff repositories.

Both profiles wrap a User and are listed together with it so responses can
show name and email without lazy loads.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any, TypeVar

import structlog
from sqlalchemy import func, select

from ..models.doctor import Doctor
from ..models.staff import Staff
from ..models.user import User
from .base import SoftDeleteRepository

log = structlog.get_logger(__name__)

ProfileT = TypeVar("ProfileT", Doctor, Staff)


class PersonnelRepository(SoftDeleteRepository[ProfileT]):
    """Queries shared by every user-backed tenant profile."""

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get_with_user(self, profile_id: str) -> tuple[ProfileT, User] | None:
        """Get a profile (deleted or not) together with its user."""
        query = (
            select(self.model, User)
            .join(User, User.id == self.model.user_id)
            .where(self.model.id == profile_id)
        )
        result = await self.session.execute(query)
        row = result.first()
        return (row[0], row[1]) if row else None

    async def get_live_in_tenant(self, profile_id: str, tenant_id: str) -> ProfileT | None:
        query = select(self.model).where(
            self.model.id == profile_id,
            self.model.tenant_id == tenant_id,
            self.model.deleted_at.is_(None),
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_live(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[tuple[ProfileT, User]]:
        query = (
            select(self.model, User)
            .join(User, User.id == self.model.user_id)
            .where(
                self.model.tenant_id == tenant_id,
                self.model.deleted_at.is_(None),
            )
            .order_by(self.model.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    async def employee_code_taken(
        self,
        tenant_id: str,
        employee_code: str,
        exclude_id: str | None = None,
    ) -> bool:
        """Whether a live profile in the tenant already uses the code."""
        query = select(func.count(self.model.id)).where(
            self.model.tenant_id == tenant_id,
            self.model.employee_code == employee_code,
            self.model.deleted_at.is_(None),
        )
        if exclude_id is not None:
            query = query.where(self.model.id != exclude_id)
        result = await self.session.execute(query)
        return result.scalar_one() > 0

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    async def create(self, user_id: str, tenant_id: str, employee_code: str, **fields: Any) -> ProfileT:
        profile = self.model(
            user_id=user_id,
            tenant_id=tenant_id,
            employee_code=employee_code,
            is_active=True,
            **fields,
        )
        await self.add(profile)
        log.info(
            "personnel_profile_created",
            table=self.model.__tablename__,
            profile_id=profile.id,
            tenant_id=tenant_id,
        )
        return profile


class DoctorRepository(PersonnelRepository[Doctor]):
    model = Doctor


class StaffRepository(PersonnelRepository[Staff]):
    model = Staff
