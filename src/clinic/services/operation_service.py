"""
Operations and their billing.

An operation always has one OPERATION bill: created with it, kept in step
when its fee changes, and voided when it is removed. The bill is matched as
the patient's most recent live OPERATION bill.
"""
from __future__ import annotations

import math

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.rbac import ADMIN_ONLY, CLINICAL_READ, CLINICAL_WRITE, Caller
from ..core.responses import ServiceResult
from ..db.session import atomic
from ..repositories.operation_repository import OperationRepository
from ..repositories.patient_repository import PatientRepository
from ..repositories.personnel_repository import DoctorRepository
from ..repositories.visit_repository import VisitRepository
from ..schemas.clinical import OperationCreate, OperationResponse, OperationUpdate
from .base import TenantScopedService
from .billing_service import BillingCoordinator

log = structlog.get_logger(__name__)

FEE_MUST_BE_POSITIVE = "Operation fee must be positive"


def scheduled_note(existing: str | None, operation_name: str) -> str:
    line = f"Operation scheduled: {operation_name}"
    return f"{existing}\n{line}" if existing else line


class OperationService(TenantScopedService):
    def __init__(self, session: AsyncSession, **kwargs) -> None:
        super().__init__(session, **kwargs)
        self.operations = OperationRepository(session)
        self.patients = PatientRepository(session)
        self.doctors = DoctorRepository(session)
        self.visits = VisitRepository(session)
        self.billing = BillingCoordinator(session)

    async def create(self, payload: OperationCreate, caller: Caller) -> ServiceResult:
        if not await self._allowed(caller, CLINICAL_WRITE):
            return ServiceResult.forbidden("You do not have permission to schedule operations")

        patient = await self.patients.get_live_in_tenant(payload.patient_id, caller.tenant_id)
        if patient is None:
            return ServiceResult.not_found("Patient not found or deleted")
        surgeon = await self.doctors.get_live_in_tenant(payload.surgeon_id, caller.tenant_id)
        if surgeon is None:
            return ServiceResult.not_found("Surgeon not found or deleted")
        if not math.isfinite(payload.fee) or payload.fee <= 0:
            return ServiceResult.bad_request(FEE_MUST_BE_POSITIVE)

        try:
            async with atomic(self.session):
                operation = await self.operations.create(
                    patient.id,
                    surgeon_id=surgeon.id,
                    name=payload.name,
                    date=payload.date,
                    fee=payload.fee,
                    outcome=payload.outcome,
                )
                await self.billing.charge_operation(patient.id, payload.fee)
                last_visit = await self.visits.latest_live_for_patient(patient.id)
                if last_visit is not None:
                    await self.visits.update_fields(
                        last_visit,
                        notes=scheduled_note(last_visit.notes, payload.name),
                    )
        except SQLAlchemyError as exc:
            return self._internal(exc, "operation_create_failed", "Failed to schedule operation",
                                  patient_id=payload.patient_id)

        log.info("operation_scheduled", operation_id=operation.id, patient_id=patient.id)
        return ServiceResult.created("Operation scheduled successfully", OperationResponse.model_validate(operation))

    async def find_all(
        self,
        caller: Caller,
        patient_id: str | None = None,
        surgeon_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> ServiceResult:
        if not await self._allowed(caller, CLINICAL_READ):
            return ServiceResult.forbidden("You do not have permission to view operations")
        try:
            rows = await self.operations.list_live(
                caller.tenant_id,
                patient_id=patient_id,
                surgeon_id=surgeon_id,
                skip=skip,
                limit=limit,
            )
        except SQLAlchemyError as exc:
            return self._internal(exc, "operation_list_failed", "Failed to fetch operations")
        return ServiceResult.ok(
            "Operations fetched successfully",
            [OperationResponse.model_validate(row) for row in rows],
        )

    async def find_one(self, operation_id: str, caller: Caller) -> ServiceResult:
        found = await self.operations.get_with_tenant(operation_id)
        operation, tenant_id = found if found else (None, None)
        if self._hidden(operation, tenant_id, caller):
            return ServiceResult.not_found("Operation not found or deleted")
        if not await self._allowed(caller, CLINICAL_READ):
            return ServiceResult.forbidden("You do not have permission to view this operation")
        return ServiceResult.ok("Operation fetched successfully", OperationResponse.model_validate(operation))

    async def update(self, operation_id: str, payload: OperationUpdate, caller: Caller) -> ServiceResult:
        found = await self.operations.get_with_tenant(operation_id)
        operation, tenant_id = found if found else (None, None)
        if self._hidden(operation, tenant_id, caller):
            return ServiceResult.not_found("Operation not found or already deleted")
        if not await self._allowed(caller, CLINICAL_WRITE):
            return ServiceResult.forbidden("You do not have permission to update this operation")

        changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None or k == "outcome"}
        if "fee" in changes and (not math.isfinite(changes["fee"]) or changes["fee"] <= 0):
            return ServiceResult.bad_request(FEE_MUST_BE_POSITIVE)
        if "surgeon_id" in changes and not await self.doctors.get_live_in_tenant(
            changes["surgeon_id"], caller.tenant_id
        ):
            return ServiceResult.not_found("Surgeon not found or deleted")

        fee_changed = "fee" in changes and changes["fee"] != operation.fee
        try:
            async with atomic(self.session):
                await self.operations.update_fields(operation, **changes)
                if fee_changed:
                    await self.billing.sync_operation_fee(operation.patient_id, changes["fee"])
        except SQLAlchemyError as exc:
            return self._internal(exc, "operation_update_failed", "Failed to update operation",
                                  operation_id=operation_id)

        log.info("operation_updated", operation_id=operation_id, fee_changed=fee_changed)
        return ServiceResult.ok("Operation updated successfully", OperationResponse.model_validate(operation))

    async def remove(self, operation_id: str, caller: Caller) -> ServiceResult:
        found = await self.operations.get_with_tenant(operation_id)
        operation, tenant_id = found if found else (None, None)
        if self._hidden(operation, tenant_id, caller):
            return ServiceResult.not_found("Operation not found or already deleted")
        if not await self._allowed(caller, ADMIN_ONLY):
            return ServiceResult.forbidden("Only admins can delete operations")

        try:
            async with atomic(self.session):
                await self.operations.soft_delete(operation)
                await self.billing.void_operation(operation.patient_id)
        except SQLAlchemyError as exc:
            return self._internal(exc, "operation_remove_failed", "Failed to delete operation",
                                  operation_id=operation_id)

        log.info("operation_removed", operation_id=operation_id)
        return ServiceResult.ok("Operation deleted successfully", OperationResponse.model_validate(operation))
