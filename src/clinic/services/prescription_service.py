"""Prescriptions issued during visits."""
from __future__ import annotations

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.rbac import ADMIN_ONLY, CLINICAL_READ, CLINICAL_WRITE, Caller
from ..core.responses import ServiceResult
from ..db.session import atomic
from ..repositories.prescription_repository import PrescriptionRepository
from ..repositories.visit_repository import VisitRepository
from ..schemas.clinical import PrescriptionCreate, PrescriptionResponse, PrescriptionUpdate
from .base import TenantScopedService

log = structlog.get_logger(__name__)


class PrescriptionService(TenantScopedService):
    def __init__(self, session: AsyncSession, **kwargs) -> None:
        super().__init__(session, **kwargs)
        self.prescriptions = PrescriptionRepository(session)
        self.visits = VisitRepository(session)

    async def create(self, payload: PrescriptionCreate, caller: Caller) -> ServiceResult:
        if not await self._allowed(caller, CLINICAL_WRITE):
            return ServiceResult.forbidden("You do not have permission to write prescriptions")

        visit = await self.visits.get_live_in_tenant(payload.visit_id, caller.tenant_id)
        if visit is None:
            return ServiceResult.not_found("Visit not found or deleted")
        if not payload.medications:
            return ServiceResult.bad_request("At least one medication is required")

        try:
            async with atomic(self.session):
                prescription = await self.prescriptions.create(
                    visit.id,
                    [m.model_dump() for m in payload.medications],
                )
        except SQLAlchemyError as exc:
            return self._internal(exc, "prescription_create_failed", "Failed to create prescription",
                                  visit_id=payload.visit_id)

        return ServiceResult.created(
            "Prescription created successfully",
            PrescriptionResponse.model_validate(prescription),
        )

    async def find_all(
        self,
        caller: Caller,
        visit_id: str | None = None,
        patient_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> ServiceResult:
        if not await self._allowed(caller, CLINICAL_READ):
            return ServiceResult.forbidden("You do not have permission to view prescriptions")
        try:
            rows = await self.prescriptions.list_live(
                caller.tenant_id,
                visit_id=visit_id,
                patient_id=patient_id,
                skip=skip,
                limit=limit,
            )
        except SQLAlchemyError as exc:
            return self._internal(exc, "prescription_list_failed", "Failed to fetch prescriptions")
        return ServiceResult.ok(
            "Prescriptions fetched successfully",
            [PrescriptionResponse.model_validate(row) for row in rows],
        )

    async def find_one(self, prescription_id: str, caller: Caller) -> ServiceResult:
        found = await self.prescriptions.get_with_tenant(prescription_id)
        prescription, tenant_id = found if found else (None, None)
        if self._hidden(prescription, tenant_id, caller):
            return ServiceResult.not_found("Prescription not found or deleted")
        if not await self._allowed(caller, CLINICAL_READ):
            return ServiceResult.forbidden("You do not have permission to view this prescription")
        return ServiceResult.ok(
            "Prescription fetched successfully",
            PrescriptionResponse.model_validate(prescription),
        )

    async def update(self, prescription_id: str, payload: PrescriptionUpdate, caller: Caller) -> ServiceResult:
        found = await self.prescriptions.get_with_tenant(prescription_id)
        prescription, tenant_id = found if found else (None, None)
        if self._hidden(prescription, tenant_id, caller):
            return ServiceResult.not_found("Prescription not found or already deleted")
        if not await self._allowed(caller, CLINICAL_WRITE):
            return ServiceResult.forbidden("You do not have permission to update this prescription")

        changes: dict = {}
        if payload.visit_id is not None:
            visit = await self.visits.get_live_in_tenant(payload.visit_id, caller.tenant_id)
            if visit is None:
                return ServiceResult.not_found("Visit not found or deleted")
            changes["visit_id"] = visit.id
        if payload.medications is not None:
            if not payload.medications:
                return ServiceResult.bad_request("Medications array cannot be empty")
            changes["medications"] = [m.model_dump() for m in payload.medications]

        try:
            async with atomic(self.session):
                await self.prescriptions.update_fields(prescription, **changes)
        except SQLAlchemyError as exc:
            return self._internal(exc, "prescription_update_failed", "Failed to update prescription",
                                  prescription_id=prescription_id)

        log.info("prescription_updated", prescription_id=prescription_id, fields=sorted(changes))
        return ServiceResult.ok(
            "Prescription updated successfully",
            PrescriptionResponse.model_validate(prescription),
        )

    async def remove(self, prescription_id: str, caller: Caller) -> ServiceResult:
        found = await self.prescriptions.get_with_tenant(prescription_id)
        prescription, tenant_id = found if found else (None, None)
        if self._hidden(prescription, tenant_id, caller):
            return ServiceResult.not_found("Prescription not found or already deleted")
        if not await self._allowed(caller, ADMIN_ONLY):
            return ServiceResult.forbidden("Only admins can delete prescriptions")

        try:
            async with atomic(self.session):
                await self.prescriptions.soft_delete(prescription)
        except SQLAlchemyError as exc:
            return self._internal(exc, "prescription_remove_failed", "Failed to delete prescription",
                                  prescription_id=prescription_id)

        log.info("prescription_removed", prescription_id=prescription_id)
        return ServiceResult.ok(
            "Prescription deleted successfully",
            PrescriptionResponse.model_validate(prescription),
        )
