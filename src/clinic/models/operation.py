"""Operation (surgical procedure) model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.session import Base
from .mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Operation(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A procedure performed on a patient by a surgeon of the same tenant."""

    __tablename__ = "operations"

    patient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    surgeon_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("doctors.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    fee: Mapped[float] = mapped_column(Float, nullable=False, comment="Always > 0")
    outcome: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Operation(id={self.id}, name='{self.name}')>"
