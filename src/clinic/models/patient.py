"""
Patient Domain Model.

Patients belong to one tenant and are numbered ``PT-<TENANTCODE>-<seq>``
where ``seq`` counts every patient the tenant ever registered, including
soft-deleted ones.
"""
from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..db.session import Base
from .enums import PatientStatus
from .mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Patient(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """
    Registered patient.

    Attributes:
        patient_number: Human-facing number, unique per tenant
        registration_fee: Amount charged at registration (>= 0)
        no_of_visits: Incremented by every recorded visit
        doctor_id: Optional primary doctor in the same tenant
        status: ACTIVE, REFERRED or DISCHARGED
    """

    __tablename__ = "patients"

    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    patient_number: Mapped[str] = mapped_column(String(40), nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    registration_fee: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    no_of_visits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    doctor_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("doctors.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Referral tracking
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PatientStatus.ACTIVE.value,
    )
    referred_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    referred_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "patient_number", name="uq_patients_tenant_number"),
    )

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, patient_number='{self.patient_number}')>"
