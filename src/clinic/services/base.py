"""Shared behaviour of the tenant-scoped entity services.

Every service answers with a ``ServiceResult`` and follows the same checks:

1. creation and listing ask the membership authority first;
2. single-row operations fetch the row, treat missing, soft-deleted and
   other-tenant rows alike as 404, and only then ask the authority (403);
3. writes run inside ``atomic`` so a failed step leaves nothing behind.
"""
from __future__ import annotations

from collections.abc import Collection
from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, get_settings
from ..core.rbac import Caller, MembershipAuthority
from ..core.responses import ServiceResult
from ..models.enums import Role

log = structlog.get_logger(__name__)


class TenantScopedService:
    """Base class wiring the session, settings and membership authority."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        authority: MembershipAuthority | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.authority = authority or MembershipAuthority(session)
        self.settings = settings or get_settings()

    async def _allowed(self, caller: Caller, roles: Collection[Role]) -> bool:
        return await self.authority.authorize(caller.user_id, caller.tenant_id, roles)

    @staticmethod
    def _hidden(row: Any, row_tenant_id: str | None, caller: Caller) -> bool:
        """Missing, soft-deleted and other-tenant rows all look the same."""
        return row is None or row.deleted_at is not None or row_tenant_id != caller.tenant_id

    # =========================================================================
    # Storage failures
    # =========================================================================

    @staticmethod
    def _conflict(exc: IntegrityError, event: str, message: str, **context: Any) -> ServiceResult:
        log.warning(event, error=str(exc.orig) if exc.orig is not None else str(exc), **context)
        return ServiceResult.conflict(message)

    @staticmethod
    def _internal(exc: SQLAlchemyError, event: str, message: str, **context: Any) -> ServiceResult:
        log.exception(event, **context)
        return ServiceResult.internal(message, exc)
