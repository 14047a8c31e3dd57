"""
Billing services.

``BillingCoordinator`` creates and adjusts bills as a side effect of other
operations. It only flushes, so the bills commit or roll back together with
the operation that caused them.

``BillingService`` is the tenant-scoped read/settle API over those bills.
"""
from __future__ import annotations

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.rbac import BILLING_READ, BILLING_SETTLE, Caller
from ..core.responses import ServiceResult
from ..db.session import atomic
from ..models.billing import Billing
from ..models.enums import BillingType, PaymentStatus
from ..models.mixins import utc_now
from ..repositories.billing_repository import BillingRepository
from ..schemas.billing import BillingResponse, BillingSettle
from .base import TenantScopedService

log = structlog.get_logger(__name__)


class BillingCoordinator:
    """Billing side effects of registration, visits and operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.billings = BillingRepository(session)

    async def charge_registration(self, patient_id: str, amount: float) -> Billing:
        return await self.billings.create(patient_id, BillingType.REGISTRATION.value, amount)

    async def charge_operation(self, patient_id: str, fee: float) -> Billing:
        return await self.billings.create(patient_id, BillingType.OPERATION.value, fee)

    async def sync_operation_fee(self, patient_id: str, fee: float) -> Billing | None:
        """Point the patient's latest live operation bill at the new fee."""
        billing = await self.billings.latest_live_of_type(patient_id, BillingType.OPERATION.value)
        if billing is None:
            log.warning("operation_billing_missing", patient_id=patient_id)
            return None
        await self.billings.update_fields(billing, amount=fee)
        log.info("operation_billing_updated", billing_id=billing.id)
        return billing

    async def void_operation(self, patient_id: str) -> Billing | None:
        billing = await self.billings.latest_live_of_type(patient_id, BillingType.OPERATION.value)
        if billing is None:
            log.warning("operation_billing_missing", patient_id=patient_id)
            return None
        await self.billings.soft_delete(billing)
        log.info("operation_billing_voided", billing_id=billing.id)
        return billing


class BillingService(TenantScopedService):
    """List, read and settle bills of the caller's tenant."""

    def __init__(self, session: AsyncSession, **kwargs) -> None:
        super().__init__(session, **kwargs)
        self.billings = BillingRepository(session)

    async def find_all(
        self,
        caller: Caller,
        patient_id: str | None = None,
        status: PaymentStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> ServiceResult:
        if not await self._allowed(caller, BILLING_READ):
            return ServiceResult.forbidden("You do not have permission to view bills")
        try:
            rows = await self.billings.list_live(
                caller.tenant_id,
                patient_id=patient_id,
                status=status.value if status else None,
                skip=skip,
                limit=limit,
            )
        except SQLAlchemyError as exc:
            return self._internal(exc, "billing_list_failed", "Failed to fetch bills")
        return ServiceResult.ok(
            "Bills fetched successfully",
            [BillingResponse.model_validate(row) for row in rows],
        )

    async def find_one(self, billing_id: str, caller: Caller) -> ServiceResult:
        found = await self.billings.get_with_tenant(billing_id)
        billing, tenant_id = found if found else (None, None)
        if self._hidden(billing, tenant_id, caller):
            return ServiceResult.not_found("Bill not found or deleted")
        if not await self._allowed(caller, BILLING_READ):
            return ServiceResult.forbidden("You do not have permission to view this bill")
        return ServiceResult.ok("Bill fetched successfully", BillingResponse.model_validate(billing))

    async def settle(self, billing_id: str, payload: BillingSettle, caller: Caller) -> ServiceResult:
        """Record a payment state change on a bill."""
        found = await self.billings.get_with_tenant(billing_id)
        billing, tenant_id = found if found else (None, None)
        if self._hidden(billing, tenant_id, caller):
            return ServiceResult.not_found("Bill not found or already deleted")
        if not await self._allowed(caller, BILLING_SETTLE):
            return ServiceResult.forbidden("You do not have permission to settle bills")

        if payload.status == PaymentStatus.UNPAID:
            changes = {"status": payload.status.value, "payment_mode": None, "paid_at": None}
        else:
            if payload.payment_mode is None:
                return ServiceResult.bad_request("Payment mode is required to record a payment")
            changes = {
                "status": payload.status.value,
                "payment_mode": payload.payment_mode.value,
                "paid_at": utc_now() if payload.status == PaymentStatus.PAID else None,
            }

        try:
            async with atomic(self.session):
                await self.billings.update_fields(billing, **changes)
        except SQLAlchemyError as exc:
            return self._internal(exc, "billing_settle_failed", "Failed to settle bill", billing_id=billing_id)

        log.info("billing_settled", billing_id=billing_id, status=changes["status"])
        return ServiceResult.ok("Bill settled successfully", BillingResponse.model_validate(billing))
