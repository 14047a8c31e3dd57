"""Prescription model."""
from __future__ import annotations

from typing import Any

# JSON maps to JSON/JSONB on PostgreSQL and TEXT-backed JSON on SQLite
from sqlalchemy import JSON, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.session import Base
from .mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Prescription(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    Medications issued during a visit.

    ``medications`` is an ordered list of
    ``{"drug_name", "dosage", "duration", "instructions"}`` objects.
    """

    __tablename__ = "prescriptions"

    visit_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("visits.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    medications: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)

    def __repr__(self) -> str:
        return f"<Prescription(id={self.id}, visit_id={self.visit_id})>"
