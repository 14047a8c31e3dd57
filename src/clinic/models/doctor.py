"""
Doctor Domain Model.

A Doctor is a tenant-scoped profile wrapping exactly one User. The same
user is also a DOCTOR member of the profile's tenant through UserTenant.
"""
from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.session import Base
from .mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Doctor(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    Doctor profile inside one tenant.

    Attributes:
        user_id: One-to-one link to the login identity
        tenant_id: Tenant the doctor practises in
        employee_code: Unique per tenant among non-deleted doctors
        specialty: Free-text specialisation
        is_active: Cleared on removal, set again on restore
    """

    __tablename__ = "doctors"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_code: Mapped[str] = mapped_column(String(50), nullable=False)
    specialty: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index(
            "uq_doctors_tenant_employee_code_live",
            "tenant_id",
            "employee_code",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Doctor(id={self.id}, tenant_id={self.tenant_id}, employee_code='{self.employee_code}')>"
