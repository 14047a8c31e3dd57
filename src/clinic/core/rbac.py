"""Tenant-scoped RBAC.

Two pieces:

* ``get_current_caller`` turns the bearer token into a ``Caller``. The
  token's role is informational only.
* ``MembershipAuthority`` answers "may this user act in this tenant with
  one of these roles?" by re-reading the ``UserTenant`` row every time.

Usage:
    @router.get("/patients")
    async def list_patients(caller: CurrentCaller, db: DbSession):
        ...
"""
from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from typing import Annotated

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.enums import Role
from ..repositories.tenant_repository import MembershipRepository
from .config import Settings, get_settings
from .exceptions import InvalidTokenError, TenantScopeMissingError, UnauthorizedError
from .security import _decode_jwt

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Role sets per entity and action
# ---------------------------------------------------------------------------
ALL_ROLES = frozenset(Role)
ADMIN_ONLY = frozenset({Role.ADMIN})

PATIENT_READ = ALL_ROLES
PATIENT_WRITE = frozenset({Role.ADMIN, Role.DOCTOR, Role.STAFF})

DOCTOR_READ = ALL_ROLES
STAFF_READ = frozenset({Role.ADMIN, Role.STAFF, Role.NURSE})
PERSONNEL_WRITE = ADMIN_ONLY

VISIT_READ = ALL_ROLES
VISIT_WRITE = ALL_ROLES

CLINICAL_READ = ALL_ROLES
CLINICAL_WRITE = frozenset({Role.ADMIN, Role.DOCTOR})

BILLING_READ = frozenset({Role.ADMIN, Role.DOCTOR, Role.STAFF})
BILLING_SETTLE = frozenset({Role.ADMIN, Role.STAFF})

INVENTORY_ACCESS = ADMIN_ONLY


@dataclass(frozen=True)
class Caller:
    """Identity carried by a verified access token."""

    user_id: str
    tenant_id: str
    role: str
    email: str | None = None


class MembershipAuthority:
    """Decides tenant-scoped permissions from UserTenant rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.memberships = MembershipRepository(session)

    async def role_of(self, user_id: str, tenant_id: str) -> Role | None:
        """Role of the user in the tenant, or None without a live membership."""
        membership = await self.memberships.get(user_id, tenant_id)
        if membership is None or membership.deleted_at is not None:
            return None
        try:
            return Role(membership.role)
        except ValueError:
            logger.warning(
                "membership_role_unknown",
                user_id=user_id,
                tenant_id=tenant_id,
                role=membership.role,
            )
            return None

    async def authorize(
        self,
        user_id: str,
        tenant_id: str,
        allowed_roles: Collection[Role | str],
    ) -> bool:
        role = await self.role_of(user_id, tenant_id)
        if role is None:
            return False
        allowed = {Role(r) if not isinstance(r, Role) else r for r in allowed_roles}
        granted = role in allowed
        if not granted:
            logger.info(
                "authorization_denied",
                user_id=user_id,
                tenant_id=tenant_id,
                role=role.value,
            )
        return granted


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        raise UnauthorizedError(message="Missing or invalid Authorization header")

    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise UnauthorizedError(message="Missing access token")
    return token


async def get_current_caller(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> Caller:
    """Decode the bearer token into a ``Caller``.

    Raises:
        UnauthorizedError: Missing, invalid or expired token.
        TenantScopeMissingError: Token carries no tenant id.
    """
    payload = _decode_jwt(_bearer_token(request), settings=settings)

    user_id = payload.get("id") or payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise InvalidTokenError("Invalid token subject")

    tenant_id = payload.get("tenant_id")
    if not isinstance(tenant_id, str) or not tenant_id:
        raise TenantScopeMissingError()

    return Caller(
        user_id=user_id,
        tenant_id=tenant_id,
        role=str(payload.get("role") or ""),
        email=payload.get("email"),
    )


# ---------------------------------------------------------------------------
# Convenient type aliases for endpoint signatures
# ---------------------------------------------------------------------------
CurrentCaller = Annotated[Caller, Depends(get_current_caller)]
