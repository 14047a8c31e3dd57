"""Operation Repository."""
from __future__ import annotations

from collections.abc import Sequence

import structlog
from sqlalchemy import select

from ..models.operation import Operation
from ..models.patient import Patient
from .base import SoftDeleteRepository

log = structlog.get_logger(__name__)


class OperationRepository(SoftDeleteRepository[Operation]):
    model = Operation

    async def get_with_tenant(self, operation_id: str) -> tuple[Operation, str] | None:
        query = (
            select(Operation, Patient.tenant_id)
            .join(Patient, Patient.id == Operation.patient_id)
            .where(Operation.id == operation_id)
        )
        result = await self.session.execute(query)
        row = result.first()
        return (row[0], row[1]) if row else None

    async def list_live(
        self,
        tenant_id: str,
        patient_id: str | None = None,
        surgeon_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[Operation]:
        query = (
            select(Operation)
            .join(Patient, Patient.id == Operation.patient_id)
            .where(
                Patient.tenant_id == tenant_id,
                Operation.deleted_at.is_(None),
            )
        )
        if patient_id:
            query = query.where(Operation.patient_id == patient_id)
        if surgeon_id:
            query = query.where(Operation.surgeon_id == surgeon_id)

        query = query.order_by(Operation.date.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def create(self, patient_id: str, **fields) -> Operation:
        operation = Operation(patient_id=patient_id, **fields)
        await self.add(operation)
        log.info("operation_created", operation_id=operation.id, patient_id=patient_id)
        return operation
