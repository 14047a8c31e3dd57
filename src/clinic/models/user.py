"""
User Model.

A user is a login identity. What a user may do is decided per tenant by
``UserTenant.role``; ``User.role`` only records the role the account was
created with and is used for display.
"""
from __future__ import annotations

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.session import Base
from .enums import Role
from .mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class User(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    Login identity shared across tenants.

    Attributes:
        email: Globally unique, stored lower-case
        password_hash: passlib digest, never the plaintext
        name: Display name
        role: Role at creation time (display only)
        deleted_at: Soft-deleted users cannot authenticate
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="Lower-cased login email",
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=Role.STAFF.value,
        comment="Display role; authorization uses user_tenants.role",
    )

    __table_args__ = (
        Index("ix_users_email_deleted", "email", "deleted_at"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
