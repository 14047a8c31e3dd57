"""Visit Repository.

Visits carry no tenant column; tenant scoping always joins through the
patient.
"""
from __future__ import annotations

from collections.abc import Sequence

import structlog
from sqlalchemy import select

from ..models.patient import Patient
from ..models.visit import Visit
from .base import SoftDeleteRepository

log = structlog.get_logger(__name__)


class VisitRepository(SoftDeleteRepository[Visit]):
    """Repository for Visit rows."""

    model = Visit

    async def get_with_tenant(self, visit_id: str) -> tuple[Visit, str] | None:
        """Get a visit (deleted or not) with the tenant id of its patient."""
        query = (
            select(Visit, Patient.tenant_id)
            .join(Patient, Patient.id == Visit.patient_id)
            .where(Visit.id == visit_id)
        )
        result = await self.session.execute(query)
        row = result.first()
        return (row[0], row[1]) if row else None

    async def get_live_in_tenant(self, visit_id: str, tenant_id: str) -> Visit | None:
        query = (
            select(Visit)
            .join(Patient, Patient.id == Visit.patient_id)
            .where(
                Visit.id == visit_id,
                Visit.deleted_at.is_(None),
                Patient.tenant_id == tenant_id,
            )
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def latest_live_for_patient(self, patient_id: str) -> Visit | None:
        """Most recent non-deleted visit by visit date."""
        query = (
            select(Visit)
            .where(
                Visit.patient_id == patient_id,
                Visit.deleted_at.is_(None),
            )
            .order_by(Visit.visit_date.desc(), Visit.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_live(
        self,
        tenant_id: str,
        patient_id: str | None = None,
        doctor_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[Visit]:
        query = (
            select(Visit)
            .join(Patient, Patient.id == Visit.patient_id)
            .where(
                Patient.tenant_id == tenant_id,
                Visit.deleted_at.is_(None),
            )
        )
        if patient_id:
            query = query.where(Visit.patient_id == patient_id)
        if doctor_id:
            query = query.where(Visit.doctor_id == doctor_id)

        query = query.order_by(Visit.visit_date.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def create(self, patient_id: str, **fields) -> Visit:
        visit = Visit(patient_id=patient_id, **fields)
        await self.add(visit)
        log.info("visit_created", visit_id=visit.id, patient_id=patient_id)
        return visit
