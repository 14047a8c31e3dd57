"""Patient Repository - Data access layer for patients."""
from __future__ import annotations

from collections.abc import Sequence

import structlog
from sqlalchemy import func, or_, select

from ..models.mixins import utc_now
from ..models.patient import Patient
from .base import SoftDeleteRepository

log = structlog.get_logger(__name__)


class PatientRepository(SoftDeleteRepository[Patient]):
    """Repository for Patient rows."""

    model = Patient

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get_live_in_tenant(self, patient_id: str, tenant_id: str) -> Patient | None:
        query = select(Patient).where(
            Patient.id == patient_id,
            Patient.tenant_id == tenant_id,
            Patient.deleted_at.is_(None),
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def count_for_tenant(self, tenant_id: str) -> int:
        """Count every patient ever registered in the tenant, deleted included."""
        query = select(func.count(Patient.id)).where(Patient.tenant_id == tenant_id)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def list_live(
        self,
        tenant_id: str,
        search: str | None = None,
        status: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[Patient]:
        """List live patients, optionally matching name, number or phone."""
        query = select(Patient).where(
            Patient.tenant_id == tenant_id,
            Patient.deleted_at.is_(None),
        )
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Patient.full_name.ilike(pattern),
                    Patient.patient_number.ilike(pattern),
                    Patient.phone.ilike(pattern),
                )
            )
        if status:
            query = query.where(Patient.status == status)

        query = query.order_by(Patient.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return result.scalars().all()

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def create(self, tenant_id: str, patient_number: str, **fields) -> Patient:
        patient = Patient(tenant_id=tenant_id, patient_number=patient_number, **fields)
        await self.add(patient)
        log.info("patient_created", patient_id=patient.id, tenant_id=tenant_id)
        return patient

    async def increment_visits(self, patient: Patient) -> Patient:
        patient.no_of_visits = (patient.no_of_visits or 0) + 1
        patient.updated_at = utc_now()
        await self.session.flush()
        return patient
