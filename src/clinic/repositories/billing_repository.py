"""Billing Repository."""
from __future__ import annotations

from collections.abc import Sequence

import structlog
from sqlalchemy import select

from ..models.billing import Billing
from ..models.enums import PaymentStatus
from ..models.patient import Patient
from .base import SoftDeleteRepository

log = structlog.get_logger(__name__)


class BillingRepository(SoftDeleteRepository[Billing]):
    model = Billing

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get_with_tenant(self, billing_id: str) -> tuple[Billing, str] | None:
        query = (
            select(Billing, Patient.tenant_id)
            .join(Patient, Patient.id == Billing.patient_id)
            .where(Billing.id == billing_id)
        )
        result = await self.session.execute(query)
        row = result.first()
        return (row[0], row[1]) if row else None

    async def latest_live_of_type(self, patient_id: str, billing_type: str) -> Billing | None:
        """Most recently created non-deleted bill of a type for a patient."""
        query = (
            select(Billing)
            .where(
                Billing.patient_id == patient_id,
                Billing.type == billing_type,
                Billing.deleted_at.is_(None),
            )
            .order_by(Billing.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_live(
        self,
        tenant_id: str,
        patient_id: str | None = None,
        status: str | None = None,
        billing_type: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[Billing]:
        query = (
            select(Billing)
            .join(Patient, Patient.id == Billing.patient_id)
            .where(
                Patient.tenant_id == tenant_id,
                Billing.deleted_at.is_(None),
            )
        )
        if patient_id:
            query = query.where(Billing.patient_id == patient_id)
        if status:
            query = query.where(Billing.status == status)
        if billing_type:
            query = query.where(Billing.type == billing_type)

        query = query.order_by(Billing.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return result.scalars().all()

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    async def create(self, patient_id: str, billing_type: str, amount: float) -> Billing:
        billing = Billing(
            patient_id=patient_id,
            type=billing_type,
            amount=amount,
            status=PaymentStatus.UNPAID.value,
        )
        await self.add(billing)
        log.info(
            "billing_created",
            billing_id=billing.id,
            patient_id=patient_id,
            type=billing_type,
        )
        return billing
