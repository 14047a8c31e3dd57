"""User Repository - Data access layer for login identities."""
from __future__ import annotations

import structlog
from sqlalchemy import func, select

from ..models.enums import Role
from ..models.user import User
from .base import SoftDeleteRepository

log = structlog.get_logger(__name__)


class UserRepository(SoftDeleteRepository[User]):
    """Repository for User rows."""

    model = User

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email, including soft-deleted users."""
        query = select(User).where(User.email == email.strip().lower())
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_live_by_email(self, email: str) -> User | None:
        """Get a non-deleted user by email."""
        query = select(User).where(
            User.email == email.strip().lower(),
            User.deleted_at.is_(None),
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def email_taken(self, email: str, exclude_user_id: str | None = None) -> bool:
        """Return True when any user (deleted or not) already owns the email."""
        query = select(func.count(User.id)).where(User.email == email.strip().lower())
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        result = await self.session.execute(query)
        return result.scalar_one() > 0

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    async def create(
        self,
        email: str,
        password_hash: str,
        name: str,
        role: str = Role.STAFF.value,
    ) -> User:
        """Create a new user. The caller owns the transaction."""
        user = User(
            email=email.strip().lower(),
            password_hash=password_hash,
            name=name,
            role=role,
        )
        await self.add(user)
        log.info("user_created", user_id=user.id, role=role)
        return user
