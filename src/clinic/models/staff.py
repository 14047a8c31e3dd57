"""Staff profile model (front desk, nurses and other non-doctor personnel)."""
from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.session import Base
from .mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Staff(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """Tenant-scoped profile wrapping one User, mirrored by a STAFF membership."""

    __tablename__ = "staffs"

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
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index(
            "uq_staffs_tenant_employee_code_live",
            "tenant_id",
            "employee_code",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Staff(id={self.id}, tenant_id={self.tenant_id}, employee_code='{self.employee_code}')>"
