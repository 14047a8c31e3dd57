"""
Doctor and Staff lifecycle.

A doctor or staff member is three rows that always change together:
the User, the tenant profile (Doctor/Staff) and the UserTenant membership.
Create, remove and restore touch all three inside one transaction.
"""
from __future__ import annotations

import re
from typing import Any, ClassVar

import structlog
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.rbac import PERSONNEL_WRITE, Caller
from ..core.responses import ServiceResult
from ..core.security import hash_password
from ..db.session import atomic
from ..models.enums import Role
from ..models.mixins import utc_now
from ..models.user import User
from ..repositories.personnel_repository import PersonnelRepository
from ..repositories.tenant_repository import MembershipRepository, TenantRepository
from ..repositories.user_repository import UserRepository
from ..schemas.personnel import PersonnelCreate, PersonnelUpdate
from .base import TenantScopedService

log = structlog.get_logger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PersonnelService(TenantScopedService):
    """Shared lifecycle of user-backed tenant profiles.

    Subclasses pin the profile repository, the membership role, the read
    role set and the response schema.
    """

    label: ClassVar[str]
    role: ClassVar[Role]
    read_roles: ClassVar[frozenset[Role]]
    repository_class: ClassVar[type[PersonnelRepository]]
    response_schema: ClassVar[type[BaseModel]]
    # Profile columns a payload may set besides employee_code
    profile_fields: ClassVar[tuple[str, ...]] = ("phone",)

    def __init__(self, session: AsyncSession, **kwargs) -> None:
        super().__init__(session, **kwargs)
        self.profiles = self.repository_class(session)
        self.users = UserRepository(session)
        self.tenants = TenantRepository(session)
        self.memberships = MembershipRepository(session)

    def _present(self, profile: Any, user: User) -> BaseModel:
        fields = {
            name: getattr(profile, name)
            for name in self.response_schema.model_fields
            if hasattr(profile, name)
        }
        fields.update(email=user.email, name=user.name)
        return self.response_schema.model_validate(fields)

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create(self, payload: PersonnelCreate, caller: Caller) -> ServiceResult:
        label = self.label
        if not await self._allowed(caller, PERSONNEL_WRITE):
            return ServiceResult.forbidden(f"Only admins can create {label.lower()}s in this tenant")

        email = payload.email.strip().lower()
        if not EMAIL_RE.match(email):
            return ServiceResult.bad_request("Invalid email format")

        tenant = await self.tenants.get_live_by_id(caller.tenant_id)
        if tenant is None:
            return ServiceResult.not_found("Tenant not found or deleted")
        if await self.users.email_taken(email):
            return ServiceResult.conflict("Email already in use")
        if await self.profiles.employee_code_taken(caller.tenant_id, payload.employee_code):
            return ServiceResult.conflict("Employee code already in use in this tenant")

        extra = {name: getattr(payload, name) for name in self.profile_fields}
        password_hash = hash_password(payload.password, settings=self.settings)
        try:
            async with atomic(self.session):
                user = await self.users.create(email, password_hash, payload.name, self.role.value)
                profile = await self.profiles.create(
                    user.id,
                    caller.tenant_id,
                    payload.employee_code,
                    **extra,
                )
                await self.memberships.create(user.id, caller.tenant_id, self.role.value)
        except IntegrityError as exc:
            return self._conflict(
                exc,
                f"{label.lower()}_create_conflict",
                "Email or employee code already in use",
                tenant_id=caller.tenant_id,
            )
        except SQLAlchemyError as exc:
            return self._internal(
                exc,
                f"{label.lower()}_create_failed",
                f"Failed to create {label.lower()}",
                tenant_id=caller.tenant_id,
            )

        log.info(f"{label.lower()}_created", profile_id=profile.id, tenant_id=caller.tenant_id)
        return ServiceResult.created(f"{label} created successfully", self._present(profile, user))

    # =========================================================================
    # READ
    # =========================================================================

    async def find_all(self, caller: Caller, skip: int = 0, limit: int = 100) -> ServiceResult:
        if not await self._allowed(caller, self.read_roles):
            return ServiceResult.forbidden(f"You do not have permission to view {self.label.lower()}s")
        try:
            rows = await self.profiles.list_live(caller.tenant_id, skip=skip, limit=limit)
        except SQLAlchemyError as exc:
            return self._internal(exc, f"{self.label.lower()}_list_failed", f"Failed to fetch {self.label.lower()}s")
        return ServiceResult.ok(
            f"{self.label}s fetched successfully",
            [self._present(profile, user) for profile, user in rows],
        )

    async def find_one(self, profile_id: str, caller: Caller) -> ServiceResult:
        found = await self.profiles.get_with_user(profile_id)
        profile, user = found if found else (None, None)
        if self._hidden(profile, profile.tenant_id if profile else None, caller):
            return ServiceResult.not_found(f"{self.label} not found or deleted")
        if not await self._allowed(caller, self.read_roles):
            return ServiceResult.forbidden(f"You do not have permission to view this {self.label.lower()}")
        return ServiceResult.ok(f"{self.label} fetched successfully", self._present(profile, user))

    # =========================================================================
    # UPDATE
    # =========================================================================

    async def update(self, profile_id: str, payload: PersonnelUpdate, caller: Caller) -> ServiceResult:
        label = self.label
        found = await self.profiles.get_with_user(profile_id)
        profile, user = found if found else (None, None)
        if self._hidden(profile, profile.tenant_id if profile else None, caller):
            return ServiceResult.not_found(f"{label} not found or already deleted")
        if not await self._allowed(caller, PERSONNEL_WRITE):
            return ServiceResult.forbidden(f"Only admins can update {label.lower()}s in this tenant")

        changes = payload.model_dump(exclude_unset=True)
        user_changes: dict[str, Any] = {}
        profile_changes: dict[str, Any] = {}

        if changes.get("email") is not None:
            email = changes["email"].strip().lower()
            if not EMAIL_RE.match(email):
                return ServiceResult.bad_request("Invalid email format")
            if await self.users.email_taken(email, exclude_user_id=user.id):
                return ServiceResult.conflict("Email already in use")
            user_changes["email"] = email
        if changes.get("name") is not None:
            user_changes["name"] = changes["name"]

        if changes.get("employee_code") is not None:
            code = changes["employee_code"].strip()
            if await self.profiles.employee_code_taken(profile.tenant_id, code, exclude_id=profile.id):
                return ServiceResult.conflict("Employee code already in use in this tenant")
            profile_changes["employee_code"] = code
        if changes.get("is_active") is not None:
            profile_changes["is_active"] = changes["is_active"]
        for name in self.profile_fields:
            if name in changes:
                profile_changes[name] = changes[name]

        try:
            async with atomic(self.session):
                if user_changes:
                    await self.users.update_fields(user, **user_changes)
                if profile_changes:
                    await self.profiles.update_fields(profile, **profile_changes)
        except IntegrityError as exc:
            return self._conflict(
                exc,
                f"{label.lower()}_update_conflict",
                "Email or employee code already in use",
                profile_id=profile_id,
            )
        except SQLAlchemyError as exc:
            return self._internal(
                exc,
                f"{label.lower()}_update_failed",
                f"Failed to update {label.lower()}",
                profile_id=profile_id,
            )

        log.info(f"{label.lower()}_updated", profile_id=profile_id, fields=sorted(changes))
        return ServiceResult.ok(f"{label} updated successfully", self._present(profile, user))

    # =========================================================================
    # REMOVE / RESTORE
    # =========================================================================

    async def remove(self, profile_id: str, caller: Caller) -> ServiceResult:
        label = self.label
        found = await self.profiles.get_with_user(profile_id)
        profile, user = found if found else (None, None)
        if self._hidden(profile, profile.tenant_id if profile else None, caller):
            return ServiceResult.not_found(f"{label} not found or already deleted")
        if not await self._allowed(caller, PERSONNEL_WRITE):
            return ServiceResult.forbidden(f"Only admins can delete {label.lower()}s in this tenant")

        now = utc_now()
        try:
            async with atomic(self.session):
                await self.profiles.update_fields(profile, is_active=False, deleted_at=now)
                await self.users.soft_delete(user, when=now)
                membership = await self.memberships.get(user.id, profile.tenant_id)
                if membership is not None and membership.deleted_at is None:
                    await self.memberships.soft_delete(membership, when=now)
        except SQLAlchemyError as exc:
            return self._internal(
                exc,
                f"{label.lower()}_remove_failed",
                f"Failed to delete {label.lower()}",
                profile_id=profile_id,
            )

        log.info(f"{label.lower()}_removed", profile_id=profile_id, tenant_id=profile.tenant_id)
        return ServiceResult.ok(f"{label} deleted successfully", self._present(profile, user))

    async def restore(self, profile_id: str, caller: Caller) -> ServiceResult:
        label = self.label
        found = await self.profiles.get_with_user(profile_id)
        profile, user = found if found else (None, None)
        if profile is None or profile.tenant_id != caller.tenant_id:
            return ServiceResult.not_found(f"{label} not found")
        if not await self._allowed(caller, PERSONNEL_WRITE):
            return ServiceResult.forbidden(f"Only admins can restore {label.lower()}s in this tenant")
        if profile.deleted_at is None:
            return ServiceResult.not_found(f"{label} not found or not deleted")
        if await self.profiles.employee_code_taken(profile.tenant_id, profile.employee_code):
            return ServiceResult.conflict("Employee code already in use in this tenant")

        try:
            async with atomic(self.session):
                await self.profiles.update_fields(profile, is_active=True, deleted_at=None)
                await self.users.restore(user)
                membership = await self.memberships.get(user.id, profile.tenant_id)
                if membership is not None:
                    await self.memberships.restore(membership)
                else:
                    await self.memberships.create(user.id, profile.tenant_id, self.role.value)
        except IntegrityError as exc:
            return self._conflict(
                exc,
                f"{label.lower()}_restore_conflict",
                "Employee code already in use in this tenant",
                profile_id=profile_id,
            )
        except SQLAlchemyError as exc:
            return self._internal(
                exc,
                f"{label.lower()}_restore_failed",
                f"Failed to restore {label.lower()}",
                profile_id=profile_id,
            )

        log.info(f"{label.lower()}_restored", profile_id=profile_id, tenant_id=profile.tenant_id)
        return ServiceResult.ok(f"{label} restored successfully", self._present(profile, user))
