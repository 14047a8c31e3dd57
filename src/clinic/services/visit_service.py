"""
Visit recording.

A new visit re-charges the registration fee only when the patient's latest
live visit happened more than ``FEE_WAIVER_DAYS`` ago (or there is none).
Otherwise the visit inherits the previous ``fee_valid_until``.
"""
from __future__ import annotations

from datetime import datetime, timedelta

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.rbac import ADMIN_ONLY, VISIT_READ, VISIT_WRITE, Caller
from ..core.responses import ServiceResult
from ..db.session import atomic
from ..models.mixins import as_utc, utc_now
from ..models.visit import Visit
from ..repositories.patient_repository import PatientRepository
from ..repositories.personnel_repository import DoctorRepository
from ..repositories.visit_repository import VisitRepository
from ..schemas.visit import VisitCreate, VisitCreated, VisitResponse, VisitUpdate
from .base import TenantScopedService
from .billing_service import BillingCoordinator

log = structlog.get_logger(__name__)

DEFAULT_VISIT_NOTES = "New visit"


def fee_window(last_visit: Visit | None, now: datetime, days: int) -> tuple[bool, datetime]:
    """Return ``(needs_new_fee, fee_valid_until)`` for a visit recorded at ``now``."""
    window = timedelta(days=days)
    if last_visit is None or as_utc(last_visit.visit_date) < now - window:
        return True, now + window
    inherited = as_utc(last_visit.fee_valid_until)
    return False, inherited or as_utc(last_visit.visit_date) + window


class VisitService(TenantScopedService):
    def __init__(self, session: AsyncSession, **kwargs) -> None:
        super().__init__(session, **kwargs)
        self.visits = VisitRepository(session)
        self.patients = PatientRepository(session)
        self.doctors = DoctorRepository(session)
        self.billing = BillingCoordinator(session)

    async def create(self, payload: VisitCreate, caller: Caller) -> ServiceResult:
        if not await self._allowed(caller, VISIT_WRITE):
            return ServiceResult.forbidden("You do not have permission to record visits")

        patient = await self.patients.get_live_in_tenant(payload.patient_id, caller.tenant_id)
        if patient is None:
            return ServiceResult.not_found("Patient not found or deleted")
        doctor = await self.doctors.get_live_in_tenant(payload.doctor_id, caller.tenant_id)
        if doctor is None:
            return ServiceResult.not_found("Doctor not found or deleted")
        if payload.consultation_fee < 0:
            return ServiceResult.bad_request("Consultation fee cannot be negative")

        try:
            async with atomic(self.session):
                last_visit = await self.visits.latest_live_for_patient(patient.id)
                now = utc_now()
                needs_new_fee, fee_valid_until = fee_window(last_visit, now, self.settings.FEE_WAIVER_DAYS)
                if needs_new_fee:
                    await self.billing.charge_registration(patient.id, patient.registration_fee)

                visit = await self.visits.create(
                    patient.id,
                    doctor_id=doctor.id,
                    staff_id=caller.user_id,
                    visit_date=now,
                    notes=payload.notes or DEFAULT_VISIT_NOTES,
                    consultation_fee=payload.consultation_fee,
                    fee_valid_until=fee_valid_until,
                )
                await self.patients.increment_visits(patient)
        except SQLAlchemyError as exc:
            return self._internal(exc, "visit_create_failed", "Failed to record visit",
                                  patient_id=payload.patient_id)

        log.info(
            "visit_recorded",
            visit_id=visit.id,
            patient_id=patient.id,
            registration_charged=needs_new_fee,
        )
        data = VisitCreated.model_validate(visit).model_copy(update={"registration_charged": needs_new_fee})
        return ServiceResult.created("Visit recorded successfully", data)

    async def find_all(
        self,
        caller: Caller,
        patient_id: str | None = None,
        doctor_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> ServiceResult:
        if not await self._allowed(caller, VISIT_READ):
            return ServiceResult.forbidden("You do not have permission to view visits")
        try:
            rows = await self.visits.list_live(
                caller.tenant_id,
                patient_id=patient_id,
                doctor_id=doctor_id,
                skip=skip,
                limit=limit,
            )
        except SQLAlchemyError as exc:
            return self._internal(exc, "visit_list_failed", "Failed to fetch visits")
        return ServiceResult.ok("Visits fetched successfully", [VisitResponse.model_validate(v) for v in rows])

    async def find_one(self, visit_id: str, caller: Caller) -> ServiceResult:
        found = await self.visits.get_with_tenant(visit_id)
        visit, tenant_id = found if found else (None, None)
        if self._hidden(visit, tenant_id, caller):
            return ServiceResult.not_found("Visit not found or deleted")
        if not await self._allowed(caller, VISIT_READ):
            return ServiceResult.forbidden("You do not have permission to view this visit")
        return ServiceResult.ok("Visit fetched successfully", VisitResponse.model_validate(visit))

    async def update(self, visit_id: str, payload: VisitUpdate, caller: Caller) -> ServiceResult:
        found = await self.visits.get_with_tenant(visit_id)
        visit, tenant_id = found if found else (None, None)
        if self._hidden(visit, tenant_id, caller):
            return ServiceResult.not_found("Visit not found or already deleted")
        if not await self._allowed(caller, VISIT_WRITE):
            return ServiceResult.forbidden("You do not have permission to update this visit")

        changes = payload.model_dump(exclude_unset=True)
        if "consultation_fee" in changes:
            if changes["consultation_fee"] is None:
                del changes["consultation_fee"]
            elif changes["consultation_fee"] < 0:
                return ServiceResult.bad_request("Consultation fee cannot be negative")
        if changes.get("doctor_id") and not await self.doctors.get_live_in_tenant(
            changes["doctor_id"], caller.tenant_id
        ):
            return ServiceResult.not_found("Doctor not found or deleted")

        try:
            async with atomic(self.session):
                await self.visits.update_fields(visit, **changes)
        except SQLAlchemyError as exc:
            return self._internal(exc, "visit_update_failed", "Failed to update visit", visit_id=visit_id)

        log.info("visit_updated", visit_id=visit_id, fields=sorted(changes))
        return ServiceResult.ok("Visit updated successfully", VisitResponse.model_validate(visit))

    async def remove(self, visit_id: str, caller: Caller) -> ServiceResult:
        """Soft delete a visit. ``no_of_visits`` keeps counting it."""
        found = await self.visits.get_with_tenant(visit_id)
        visit, tenant_id = found if found else (None, None)
        if self._hidden(visit, tenant_id, caller):
            return ServiceResult.not_found("Visit not found or already deleted")
        if not await self._allowed(caller, ADMIN_ONLY):
            return ServiceResult.forbidden("Only admins can delete visits")

        try:
            async with atomic(self.session):
                await self.visits.soft_delete(visit)
        except SQLAlchemyError as exc:
            return self._internal(exc, "visit_remove_failed", "Failed to delete visit", visit_id=visit_id)

        log.info("visit_removed", visit_id=visit_id)
        return ServiceResult.ok("Visit deleted successfully", VisitResponse.model_validate(visit))
