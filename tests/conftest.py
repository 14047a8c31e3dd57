"""Pytest fixtures and configuration."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.clinic import models  # noqa: F401  registers every table on Base.metadata
from src.clinic.core.rbac import Caller
from src.clinic.core.security import create_access_token, hash_password
from src.clinic.db.session import Base, get_db
from src.clinic.main import app
from src.clinic.models.doctor import Doctor
from src.clinic.models.enums import Role
from src.clinic.models.staff import Staff
from src.clinic.models.tenant import Tenant, UserTenant
from src.clinic.models.user import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

# Test database URL (in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "secret123"


def _session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with _session_factory(test_engine)() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(test_engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client with overridden dependencies."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with _session_factory(test_engine)() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seeded clinic
# ---------------------------------------------------------------------------


@dataclass
class SeededClinic:
    """One clinic with a member of every role."""

    tenant: Tenant
    admin: User
    doctor_user: User
    staff_user: User
    nurse: User
    doctor: Doctor
    staff: Staff

    def caller(self, user: User) -> Caller:
        membership_role = {
            self.admin.id: Role.ADMIN,
            self.doctor_user.id: Role.DOCTOR,
            self.staff_user.id: Role.STAFF,
            self.nurse.id: Role.NURSE,
        }[user.id]
        return Caller(
            user_id=user.id,
            tenant_id=self.tenant.id,
            role=membership_role.value,
            email=user.email,
        )

    @property
    def admin_caller(self) -> Caller:
        return self.caller(self.admin)

    @property
    def doctor_caller(self) -> Caller:
        return self.caller(self.doctor_user)

    @property
    def staff_caller(self) -> Caller:
        return self.caller(self.staff_user)

    @property
    def nurse_caller(self) -> Caller:
        return self.caller(self.nurse)


async def seed_clinic(session: AsyncSession, code: str = "ABC", domain: str = "abc.com") -> SeededClinic:
    """Insert a clinic, four members and the doctor/staff profiles, then commit."""
    password_hash = hash_password(TEST_PASSWORD)
    tenant = Tenant(name=f"Clinic {code}", code=code)
    session.add(tenant)
    await session.flush()

    users = {}
    for role in Role:
        user = User(
            email=f"{role.value.lower()}@{domain}",
            password_hash=password_hash,
            name=f"{role.value.title()} {code}",
            role=role.value,
        )
        session.add(user)
        await session.flush()
        session.add(UserTenant(user_id=user.id, tenant_id=tenant.id, role=role.value))
        users[role] = user

    doctor = Doctor(
        user_id=users[Role.DOCTOR].id,
        tenant_id=tenant.id,
        employee_code="DOC-1",
        specialty="General Surgery",
    )
    staff = Staff(user_id=users[Role.STAFF].id, tenant_id=tenant.id, employee_code="STF-1")
    session.add_all([doctor, staff])
    await session.commit()

    return SeededClinic(
        tenant=tenant,
        admin=users[Role.ADMIN],
        doctor_user=users[Role.DOCTOR],
        staff_user=users[Role.STAFF],
        nurse=users[Role.NURSE],
        doctor=doctor,
        staff=staff,
    )


@pytest_asyncio.fixture(scope="function")
async def clinic(db_session: AsyncSession) -> SeededClinic:
    """Clinic ``ABC`` with admin, doctor, staff and nurse members."""
    return await seed_clinic(db_session)


@pytest_asyncio.fixture(scope="function")
async def other_clinic(db_session: AsyncSession) -> SeededClinic:
    """A second, unrelated clinic ``XYZ``."""
    return await seed_clinic(db_session, code="XYZ", domain="xyz.com")


@pytest.fixture
def token_for() -> Callable[[Caller], str]:
    """Build a bearer token for a caller."""

    def _token(caller: Caller) -> str:
        issued = create_access_token(
            user_id=caller.user_id,
            email=caller.email or "",
            role=caller.role,
            tenant_id=caller.tenant_id,
        )
        return issued.access_token

    return _token


@pytest.fixture
def auth_headers(token_for: Callable[[Caller], str]) -> Callable[[Caller], dict[str, str]]:
    """Authorization headers for a caller."""

    def _headers(caller: Caller) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_for(caller)}"}

    return _headers
