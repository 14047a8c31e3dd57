"""Prescription Repository (tenant scoped through visit -> patient)."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog
from sqlalchemy import select

from ..models.patient import Patient
from ..models.prescription import Prescription
from ..models.visit import Visit
from .base import SoftDeleteRepository

log = structlog.get_logger(__name__)


class PrescriptionRepository(SoftDeleteRepository[Prescription]):
    model = Prescription

    async def get_with_tenant(self, prescription_id: str) -> tuple[Prescription, str] | None:
        query = (
            select(Prescription, Patient.tenant_id)
            .join(Visit, Visit.id == Prescription.visit_id)
            .join(Patient, Patient.id == Visit.patient_id)
            .where(Prescription.id == prescription_id)
        )
        result = await self.session.execute(query)
        row = result.first()
        return (row[0], row[1]) if row else None

    async def list_live(
        self,
        tenant_id: str,
        visit_id: str | None = None,
        patient_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[Prescription]:
        query = (
            select(Prescription)
            .join(Visit, Visit.id == Prescription.visit_id)
            .join(Patient, Patient.id == Visit.patient_id)
            .where(
                Patient.tenant_id == tenant_id,
                Prescription.deleted_at.is_(None),
            )
        )
        if visit_id:
            query = query.where(Prescription.visit_id == visit_id)
        if patient_id:
            query = query.where(Visit.patient_id == patient_id)

        query = query.order_by(Prescription.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def create(self, visit_id: str, medications: list[dict[str, Any]]) -> Prescription:
        prescription = Prescription(visit_id=visit_id, medications=medications)
        await self.add(prescription)
        log.info("prescription_created", prescription_id=prescription.id, visit_id=visit_id)
        return prescription
