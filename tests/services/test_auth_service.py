"""Tests for signup, login and profile."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from src.clinic.core.config import get_settings
from src.clinic.core.rbac import Caller
from src.clinic.core.security import _decode_jwt, hash_password
from src.clinic.models.tenant import Tenant, UserTenant
from src.clinic.models.user import User
from src.clinic.repositories.tenant_repository import MembershipRepository, TenantRepository
from src.clinic.repositories.user_repository import UserRepository
from src.clinic.schemas.auth import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    TenantSelectionResponse,
)
from src.clinic.services.auth_service import AuthService, TenantCodeGenerator

PASSWORD = "secret123"


class ScriptedCodes(TenantCodeGenerator):
    """Hands out a fixed sequence of codes."""

    def __init__(self, *codes: str) -> None:
        super().__init__()
        self.codes = list(codes)

    def draw(self) -> str:
        return self.codes.pop(0)


def _signup(email: str = "owner@sunrise.com") -> SignupRequest:
    return SignupRequest(
        email=email,
        password=PASSWORD,
        name="Dr. Owner",
        tenant_name="Sunrise Clinic",
        address="1 Main Road",
        phone="+911234567890",
    )


async def _count(session, model) -> int:
    result = await session.execute(select(func.count(model.id)))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# signup
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_signup_creates_admin_tenant_and_membership(db_session):
    result = await AuthService(db_session).signup(_signup())

    assert result.success is True
    assert result.status_code == 201
    assert result.message == "Signup successful"
    assert result.data.user.role == "ADMIN"
    assert len(result.data.tenant.code) == 6
    assert result.data.tenant.code.isupper()

    membership = await MembershipRepository(db_session).get(result.data.user.id, result.data.tenant.id)
    assert membership is not None
    assert membership.role == "ADMIN"


@pytest.mark.asyncio
async def test_signup_stores_lowercase_email_and_hashed_password(db_session):
    await AuthService(db_session).signup(_signup("Owner@Sunrise.com"))

    user = await UserRepository(db_session).get_by_email("owner@sunrise.com")
    assert user is not None
    assert user.password_hash != PASSWORD


@pytest.mark.asyncio
async def test_signup_duplicate_email_conflicts(db_session):
    service = AuthService(db_session)
    await service.signup(_signup())

    result = await service.signup(_signup())

    assert result.status_code == 409
    assert result.message == "User already exists. Please login"
    assert await _count(db_session, Tenant) == 1


@pytest.mark.asyncio
async def test_signup_skips_codes_already_taken(db_session, clinic):
    service = AuthService(db_session, code_generator=ScriptedCodes("ABC", "QWERTY"))

    result = await service.signup(_signup())

    assert result.success is True
    assert result.data.tenant.code == "QWERTY"


@pytest.mark.asyncio
async def test_signup_retries_when_insert_hits_code_collision(db_session, clinic, monkeypatch):
    async def never_taken(self, code):
        return False

    monkeypatch.setattr(TenantRepository, "code_exists", never_taken)
    service = AuthService(db_session, code_generator=ScriptedCodes("ABC", "NEWONE"))

    result = await service.signup(_signup())

    assert result.success is True
    assert result.data.tenant.code == "NEWONE"
    assert await _count(db_session, Tenant) == 2


@pytest.mark.asyncio
async def test_signup_rolls_back_when_membership_fails(db_session, monkeypatch):
    async def broken_create(self, user_id, tenant_id, role):
        raise SQLAlchemyError("membership insert failed")

    monkeypatch.setattr(MembershipRepository, "create", broken_create)

    result = await AuthService(db_session).signup(_signup())

    assert result.status_code == 500
    assert result.message == "Signup failed"
    assert await UserRepository(db_session).get_by_email("owner@sunrise.com") is None
    assert await _count(db_session, Tenant) == 0
    assert await _count(db_session, UserTenant) == 0


@pytest.mark.asyncio
async def test_signup_reports_lookup_failure_after_insert_conflict(db_session, monkeypatch):
    lookups = []

    async def conflicting_create(self, user_id, tenant_id, role):
        raise IntegrityError("INSERT INTO user_tenants", {}, Exception("duplicate key"))

    async def flaky_email_taken(self, email, exclude_user_id=None):
        lookups.append(email)
        if len(lookups) > 1:
            raise OperationalError("SELECT users", {}, Exception("connection lost"))
        return False

    monkeypatch.setattr(MembershipRepository, "create", conflicting_create)
    monkeypatch.setattr(UserRepository, "email_taken", flaky_email_taken)

    result = await AuthService(db_session).signup(_signup())

    assert result.status_code == 500
    assert result.message == "Signup failed"
    assert len(lookups) == 2


# ---------------------------------------------------------------------------
# login
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_login_single_tenant_issues_scoped_token(db_session, clinic):
    result = await AuthService(db_session).sign_in(LoginRequest(email="doctor@abc.com", password=PASSWORD))

    assert result.status_code == 200
    assert result.message == "Login successful"
    assert isinstance(result.data, LoginResponse)
    assert result.data.user.role == "DOCTOR"
    assert result.data.tenant.code == "ABC"

    claims = _decode_jwt(result.data.access_token, settings=get_settings())
    assert claims["tenant_id"] == clinic.tenant.id
    assert claims["id"] == clinic.doctor_user.id


@pytest.mark.asyncio
async def test_login_wrong_password_is_unauthorized(db_session, clinic):
    result = await AuthService(db_session).sign_in(LoginRequest(email="doctor@abc.com", password="nope"))
    assert result.status_code == 401
    assert result.message == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_unknown_email_is_unauthorized(db_session, clinic):
    result = await AuthService(db_session).sign_in(LoginRequest(email="ghost@abc.com", password=PASSWORD))
    assert result.status_code == 401


@pytest.mark.asyncio
async def test_login_without_membership_is_forbidden(db_session):
    db_session.add(User(email="loner@abc.com", password_hash=hash_password(PASSWORD), name="Loner", role="STAFF"))
    await db_session.commit()

    result = await AuthService(db_session).sign_in(LoginRequest(email="loner@abc.com", password=PASSWORD))

    assert result.status_code == 403
    assert result.message == "User is not assigned to any tenant"


@pytest_asyncio.fixture
async def multi_tenant_admin(db_session, clinic, other_clinic):
    """clinic's admin also works as a doctor in other_clinic."""
    await MembershipRepository(db_session).create(clinic.admin.id, other_clinic.tenant.id, "DOCTOR")
    await db_session.commit()
    return clinic, other_clinic


@pytest.mark.asyncio
async def test_login_multi_tenant_without_code_lists_tenants(db_session, multi_tenant_admin):
    result = await AuthService(db_session).sign_in(LoginRequest(email="admin@abc.com", password=PASSWORD))

    assert result.status_code == 200
    assert result.message == "Multiple tenants found. Please select a tenant"
    assert isinstance(result.data, TenantSelectionResponse)
    assert result.data.is_multi_tenant is True
    assert {(t.code, t.role) for t in result.data.tenants} == {("ABC", "ADMIN"), ("XYZ", "DOCTOR")}


@pytest.mark.asyncio
async def test_login_multi_tenant_with_code_uses_that_role(db_session, multi_tenant_admin):
    _, other = multi_tenant_admin

    result = await AuthService(db_session).sign_in(
        LoginRequest(email="admin@abc.com", password=PASSWORD, tenant_code="xyz")
    )

    assert result.message == "Login successful"
    assert result.data.tenant.id == other.tenant.id
    assert result.data.user.role == "DOCTOR"


@pytest.mark.asyncio
async def test_login_with_unknown_code_is_bad_request(db_session, clinic):
    result = await AuthService(db_session).sign_in(
        LoginRequest(email="admin@abc.com", password=PASSWORD, tenant_code="NOPE")
    )
    assert result.status_code == 400
    assert result.message == "Invalid tenant code"


# ---------------------------------------------------------------------------
# me
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_me_marks_current_membership(db_session, multi_tenant_admin):
    clinic, _ = multi_tenant_admin

    result = await AuthService(db_session).me(clinic.admin_caller)

    assert result.success is True
    assert result.data.user.role == "ADMIN"
    current = [m.code for m in result.data.memberships if m.current]
    assert current == ["ABC"]
    assert len(result.data.memberships) == 2


@pytest.mark.asyncio
async def test_me_for_deleted_user_is_not_found(db_session):
    caller = Caller(user_id="missing", tenant_id="tenant", role="ADMIN")
    result = await AuthService(db_session).me(caller)
    assert result.status_code == 404
