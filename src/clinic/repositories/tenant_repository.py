"""Tenant and membership repositories."""
from __future__ import annotations

from collections.abc import Sequence

import structlog
from sqlalchemy import func, select

from ..models.tenant import Tenant, UserTenant
from .base import SoftDeleteRepository

log = structlog.get_logger(__name__)


class TenantRepository(SoftDeleteRepository[Tenant]):
    """Repository for Tenant rows."""

    model = Tenant

    async def code_exists(self, code: str) -> bool:
        """Check a code against every tenant, deleted ones included."""
        query = select(func.count(Tenant.id)).where(Tenant.code == code.upper())
        result = await self.session.execute(query)
        return result.scalar_one() > 0

    async def create(
        self,
        name: str,
        code: str,
        address: str | None = None,
        phone: str | None = None,
    ) -> Tenant:
        tenant = Tenant(name=name, code=code.upper(), address=address, phone=phone)
        await self.add(tenant)
        log.info("tenant_created", tenant_id=tenant.id, code=tenant.code)
        return tenant


class MembershipRepository(SoftDeleteRepository[UserTenant]):
    """Repository for UserTenant rows, the source of tenant roles."""

    model = UserTenant

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get(self, user_id: str, tenant_id: str) -> UserTenant | None:
        """Get the membership for a (user, tenant) pair, deleted or not."""
        query = select(UserTenant).where(
            UserTenant.user_id == user_id,
            UserTenant.tenant_id == tenant_id,
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_active_for_user(self, user_id: str) -> Sequence[tuple[UserTenant, Tenant]]:
        """Memberships where both the membership and its tenant are live."""
        query = (
            select(UserTenant, Tenant)
            .join(Tenant, Tenant.id == UserTenant.tenant_id)
            .where(
                UserTenant.user_id == user_id,
                UserTenant.deleted_at.is_(None),
                Tenant.deleted_at.is_(None),
            )
            .order_by(UserTenant.created_at.asc())
        )
        result = await self.session.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    async def create(self, user_id: str, tenant_id: str, role: str) -> UserTenant:
        membership = UserTenant(user_id=user_id, tenant_id=tenant_id, role=role)
        await self.add(membership)
        log.info(
            "membership_created",
            user_id=user_id,
            tenant_id=tenant_id,
            role=role,
        )
        return membership
