"""
Billing Model.

Billing rows are created as side effects of registration, visits and
operations, and settled later through the billing endpoints.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.session import Base
from .enums import PaymentStatus
from .mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Billing(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A charge against a patient."""

    __tablename__ = "billings"

    patient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="REGISTRATION, CONSULTATION, OPERATION or OTHER",
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.UNPAID.value,
    )
    payment_mode: Mapped[str | None] = mapped_column(String(20), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_billings_patient_type_created", "patient_id", "type", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Billing(id={self.id}, type='{self.type}', amount={self.amount}, status='{self.status}')>"
