"""Visit model. A visit's tenant is the tenant of its patient."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.session import Base
from .mixins import IdMixin, SoftDeleteMixin, TimestampMixin, utc_now


class Visit(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    One patient encounter.

    ``fee_valid_until`` is the end of the window in which later visits do
    not trigger a new registration charge.
    """

    __tablename__ = "visits"

    patient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
    )
    doctor_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("doctors.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    staff_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="User who recorded the visit",
    )
    visit_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    consultation_fee: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    fee_valid_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_visits_patient_date", "patient_id", "visit_date"),
    )

    def __repr__(self) -> str:
        return f"<Visit(id={self.id}, patient_id={self.patient_id})>"
