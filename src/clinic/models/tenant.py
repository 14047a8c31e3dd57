"""
Tenant Domain Models.

Architecture:
    - Tenant: one clinic, identified to users by a short uppercase code
    - UserTenant: membership of a user in a tenant with a role

UserTenant is the only source of authorization decisions.
"""
from __future__ import annotations

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..db.session import Base
from .mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Tenant(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A clinic. ``code`` is what users type at login to pick it."""

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(
        String(12),
        unique=True,
        nullable=False,
        index=True,
        comment="Uppercase tenant code (e.g. QX7PLM)",
    )
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, code='{self.code}')>"


class UserTenant(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """Membership of a user in a tenant."""

    __tablename__ = "user_tenants"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="ADMIN, DOCTOR, STAFF or NURSE within this tenant",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "tenant_id", name="uq_user_tenants_user_tenant"),
        Index("ix_user_tenants_tenant_role", "tenant_id", "role"),
    )

    def __repr__(self) -> str:
        return f"<UserTenant(user_id={self.user_id}, tenant_id={self.tenant_id}, role='{self.role}')>"
