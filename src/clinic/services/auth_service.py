"""
Identity and tenant onboarding.

Login flow:
    credentials -> authenticate -> login
        one clinic          -> token scoped to it
        several, no code    -> list of clinics to choose from, no token
        several, with code  -> token scoped to the matching clinic

Signup creates the admin user, the clinic and the admin membership in one
transaction. Tenant codes are drawn at random and retried on collision,
both before insert and when the unique index rejects the commit.
"""
from __future__ import annotations

import secrets
import string
from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, get_settings
from ..core.rbac import Caller
from ..core.responses import ServiceResult
from ..core.security import create_access_token, hash_password, verify_password
from ..db.session import atomic
from ..models.enums import Role
from ..models.tenant import Tenant, UserTenant
from ..models.user import User
from ..repositories.tenant_repository import MembershipRepository, TenantRepository
from ..repositories.user_repository import UserRepository
from ..schemas.auth import (
    LoginRequest,
    LoginResponse,
    MembershipSummary,
    MeResponse,
    SignupRequest,
    SignupResponse,
    TenantChoice,
    TenantSelectionResponse,
    TenantSummary,
    UserSummary,
)

log = structlog.get_logger(__name__)


class TenantCodeGenerator:
    """Draws random uppercase tenant codes."""

    alphabet = string.ascii_uppercase

    def __init__(self, length: int = 6) -> None:
        self.length = length

    def draw(self) -> str:
        return "".join(secrets.choice(self.alphabet) for _ in range(self.length))


@dataclass
class AuthenticatedUser:
    """A verified user and the clinics they can currently act in."""

    user: User
    memberships: Sequence[tuple[UserTenant, Tenant]] = field(default_factory=list)


class AuthService:
    """Authentication, login and signup."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        settings: Settings | None = None,
        code_generator: TenantCodeGenerator | None = None,
    ) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.code_generator = code_generator or TenantCodeGenerator(self.settings.TENANT_CODE_LENGTH)
        self.users = UserRepository(session)
        self.tenants = TenantRepository(session)
        self.memberships = MembershipRepository(session)

    # =========================================================================
    # LOGIN
    # =========================================================================

    async def authenticate(self, email: str, password: str) -> ServiceResult:
        """Verify credentials and load the user's active memberships."""
        user = await self.users.get_live_by_email(email)
        if user is None or not verify_password(password, user.password_hash, settings=self.settings):
            log.info("authentication_failed")
            return ServiceResult.unauthorized("Invalid credentials")

        memberships = await self.memberships.list_active_for_user(user.id)
        if not memberships:
            log.info("authentication_without_tenant", user_id=user.id)
            return ServiceResult.forbidden("User is not assigned to any tenant")

        return ServiceResult.ok("Authenticated", AuthenticatedUser(user=user, memberships=memberships))

    async def login(
        self,
        user: User,
        memberships: Sequence[tuple[UserTenant, Tenant]],
        tenant_code: str | None = None,
    ) -> ServiceResult:
        """Resolve which clinic to log into and issue a token for it."""
        if tenant_code and tenant_code.strip():
            wanted = tenant_code.strip().upper()
            chosen = next(
                ((m, t) for m, t in memberships if t.code.upper() == wanted),
                None,
            )
            if chosen is None:
                return ServiceResult.bad_request("Invalid tenant code")
        elif len(memberships) == 1:
            chosen = memberships[0]
        elif len(memberships) > 1:
            log.info("login_requires_tenant_selection", user_id=user.id, tenants=len(memberships))
            return ServiceResult.ok(
                "Multiple tenants found. Please select a tenant",
                TenantSelectionResponse(
                    tenants=[
                        TenantChoice(id=t.id, name=t.name, code=t.code, role=m.role)
                        for m, t in memberships
                    ]
                ),
            )
        else:
            return ServiceResult.forbidden("User is not assigned to any tenant")

        membership, tenant = chosen
        issued = create_access_token(
            user_id=user.id,
            email=user.email,
            role=membership.role,
            tenant_id=tenant.id,
            settings=self.settings,
        )
        log.info("login_succeeded", user_id=user.id, tenant_id=tenant.id)
        return ServiceResult.ok(
            "Login successful",
            LoginResponse(
                access_token=issued.access_token,
                token_type=issued.token_type,
                expires_in=issued.expires_in,
                user=UserSummary(id=user.id, email=user.email, name=user.name, role=membership.role),
                tenant=TenantSummary.model_validate(tenant),
            ),
        )

    async def sign_in(self, payload: LoginRequest) -> ServiceResult:
        """authenticate followed by login."""
        authenticated = await self.authenticate(payload.email, payload.password)
        if not authenticated.success:
            return authenticated
        identity: AuthenticatedUser = authenticated.data
        return await self.login(identity.user, identity.memberships, payload.tenant_code)

    # =========================================================================
    # SIGNUP
    # =========================================================================

    async def _allocate_tenant_code(self) -> str | None:
        """Draw codes until one is not used by any tenant."""
        for _ in range(self.settings.TENANT_CODE_MAX_ATTEMPTS):
            code = self.code_generator.draw().upper()
            if not await self.tenants.code_exists(code):
                return code
        return None

    async def signup(self, payload: SignupRequest) -> ServiceResult:
        """Create admin user, clinic and admin membership atomically."""
        email = str(payload.email).lower()
        try:
            if await self.users.email_taken(email):
                return ServiceResult.conflict("User already exists. Please login")
        except SQLAlchemyError as exc:
            log.exception("signup_lookup_failed")
            return ServiceResult.internal("Signup failed", exc)

        password_hash = hash_password(payload.password, settings=self.settings)

        for attempt in range(1, self.settings.TENANT_CODE_MAX_ATTEMPTS + 1):
            try:
                async with atomic(self.session):
                    code = await self._allocate_tenant_code()
                    if code is None:
                        log.error("tenant_code_space_exhausted", attempt=attempt)
                        return ServiceResult.internal("Could not allocate a tenant code")
                    user = await self.users.create(email, password_hash, payload.name, Role.ADMIN.value)
                    tenant = await self.tenants.create(
                        payload.tenant_name,
                        code,
                        address=payload.address,
                        phone=payload.phone,
                    )
                    await self.memberships.create(user.id, tenant.id, Role.ADMIN.value)
            except IntegrityError as exc:
                try:
                    email_conflict = await self.users.email_taken(email)
                except SQLAlchemyError as lookup_exc:
                    log.exception("signup_lookup_failed", attempt=attempt)
                    return ServiceResult.internal("Signup failed", lookup_exc)
                if email_conflict:
                    log.info("signup_email_conflict")
                    return ServiceResult.conflict("User already exists. Please login")
                log.warning("tenant_code_collision", attempt=attempt, error=str(exc.orig))
                continue
            except SQLAlchemyError as exc:
                log.exception("signup_failed", attempt=attempt)
                return ServiceResult.internal("Signup failed", exc)

            log.info("signup_completed", user_id=user.id, tenant_id=tenant.id)
            return ServiceResult.created(
                "Signup successful",
                SignupResponse(
                    user=UserSummary.model_validate(user),
                    tenant=TenantSummary.model_validate(tenant),
                ),
            )

        log.error("tenant_code_retries_exhausted")
        return ServiceResult.internal("Could not allocate a tenant code")

    # =========================================================================
    # PROFILE
    # =========================================================================

    async def me(self, caller: Caller) -> ServiceResult:
        user = await self.users.get_live_by_id(caller.user_id)
        if user is None:
            return ServiceResult.not_found("User not found or deleted")

        memberships = await self.memberships.list_active_for_user(user.id)
        current_role = next((m.role for m, t in memberships if t.id == caller.tenant_id), user.role)
        return ServiceResult.ok(
            "Profile fetched successfully",
            MeResponse(
                user=UserSummary(id=user.id, email=user.email, name=user.name, role=current_role),
                memberships=[
                    MembershipSummary(
                        id=t.id,
                        name=t.name,
                        code=t.code,
                        role=m.role,
                        current=t.id == caller.tenant_id,
                    )
                    for m, t in memberships
                ],
            ),
        )
