"""
Patient registration and lifecycle.

Registering a patient is one transaction that:
    - numbers the patient ``PT-<TENANTCODE>-<seq>``
    - charges the registration fee
    - records the initial visit, which opens the fee waiver window
"""
from __future__ import annotations

from datetime import timedelta

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.rbac import ADMIN_ONLY, PATIENT_READ, PATIENT_WRITE, Caller
from ..core.responses import ServiceResult
from ..db.session import atomic
from ..models.enums import PatientStatus
from ..models.mixins import utc_now
from ..repositories.patient_repository import PatientRepository
from ..repositories.personnel_repository import DoctorRepository
from ..repositories.tenant_repository import TenantRepository
from ..repositories.visit_repository import VisitRepository
from ..schemas.patient import PatientCreate, PatientResponse, PatientUpdate
from .base import TenantScopedService
from .billing_service import BillingCoordinator

log = structlog.get_logger(__name__)

INITIAL_VISIT_NOTES = "Initial registration"


def format_patient_number(tenant_code: str, sequence: int, padding: int = 3) -> str:
    """``format_patient_number("ABC", 3)`` -> ``"PT-ABC-003"``."""
    return f"PT-{tenant_code.upper()}-{sequence:0{padding}d}"


class PatientService(TenantScopedService):
    def __init__(self, session: AsyncSession, **kwargs) -> None:
        super().__init__(session, **kwargs)
        self.patients = PatientRepository(session)
        self.tenants = TenantRepository(session)
        self.doctors = DoctorRepository(session)
        self.visits = VisitRepository(session)
        self.billing = BillingCoordinator(session)

    async def create(self, payload: PatientCreate, caller: Caller) -> ServiceResult:
        """Register a patient with billing and initial visit."""
        if not await self._allowed(caller, PATIENT_WRITE):
            return ServiceResult.forbidden("You do not have permission to register patients")

        for attempt in range(1, self.settings.PATIENT_NUMBER_MAX_ATTEMPTS + 1):
            try:
                async with atomic(self.session):
                    tenant = await self.tenants.get_live_by_id(caller.tenant_id)
                    if tenant is None:
                        return ServiceResult.not_found("Tenant not found or deleted")
                    if payload.doctor_id and not await self.doctors.get_live_in_tenant(
                        payload.doctor_id, caller.tenant_id
                    ):
                        return ServiceResult.not_found("Doctor not found or deleted")

                    sequence = await self.patients.count_for_tenant(tenant.id) + 1
                    patient = await self.patients.create(
                        tenant.id,
                        format_patient_number(tenant.code, sequence, self.settings.PATIENT_NUMBER_PADDING),
                        full_name=payload.full_name,
                        date_of_birth=payload.date_of_birth,
                        gender=payload.gender.value,
                        address=payload.address,
                        phone=payload.phone,
                        registration_fee=payload.registration_fee,
                        doctor_id=payload.doctor_id,
                        status=PatientStatus.ACTIVE.value,
                        no_of_visits=1,
                    )
                    await self.billing.charge_registration(patient.id, payload.registration_fee)

                    now = utc_now()
                    await self.visits.create(
                        patient.id,
                        doctor_id=payload.doctor_id,
                        staff_id=caller.user_id,
                        visit_date=now,
                        notes=INITIAL_VISIT_NOTES,
                        consultation_fee=0.0,
                        fee_valid_until=now + timedelta(days=self.settings.FEE_WAIVER_DAYS),
                    )
            except IntegrityError as exc:
                log.warning(
                    "patient_number_collision",
                    tenant_id=caller.tenant_id,
                    attempt=attempt,
                    error=str(exc.orig),
                )
                continue
            except SQLAlchemyError as exc:
                return self._internal(exc, "patient_create_failed", "Failed to register patient",
                                      tenant_id=caller.tenant_id)

            log.info("patient_registered", patient_id=patient.id, tenant_id=caller.tenant_id)
            return ServiceResult.created("Patient registered successfully", PatientResponse.model_validate(patient))

        return ServiceResult.conflict("Could not allocate a patient number, please retry")

    async def find_all(
        self,
        caller: Caller,
        search: str | None = None,
        status: PatientStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> ServiceResult:
        if not await self._allowed(caller, PATIENT_READ):
            return ServiceResult.forbidden("You do not have permission to view patients")
        try:
            rows = await self.patients.list_live(
                caller.tenant_id,
                search=search,
                status=status.value if status else None,
                skip=skip,
                limit=limit,
            )
        except SQLAlchemyError as exc:
            return self._internal(exc, "patient_list_failed", "Failed to fetch patients")
        return ServiceResult.ok(
            "Patients fetched successfully",
            [PatientResponse.model_validate(row) for row in rows],
        )

    async def find_one(self, patient_id: str, caller: Caller) -> ServiceResult:
        patient = await self.patients.get_by_id(patient_id)
        if self._hidden(patient, patient.tenant_id if patient else None, caller):
            return ServiceResult.not_found("Patient not found or deleted")
        if not await self._allowed(caller, PATIENT_READ):
            return ServiceResult.forbidden("You do not have permission to view this patient")
        return ServiceResult.ok("Patient fetched successfully", PatientResponse.model_validate(patient))

    async def update(self, patient_id: str, payload: PatientUpdate, caller: Caller) -> ServiceResult:
        patient = await self.patients.get_by_id(patient_id)
        if self._hidden(patient, patient.tenant_id if patient else None, caller):
            return ServiceResult.not_found("Patient not found or already deleted")
        if not await self._allowed(caller, PATIENT_WRITE):
            return ServiceResult.forbidden("You do not have permission to update this patient")

        changes = payload.model_dump(exclude_unset=True)
        # Required columns cannot be cleared
        for key in ("full_name", "gender", "status"):
            if key in changes and changes[key] is None:
                del changes[key]
        if changes.get("doctor_id") and not await self.doctors.get_live_in_tenant(
            changes["doctor_id"], caller.tenant_id
        ):
            return ServiceResult.not_found("Doctor not found or deleted")
        for key in ("gender", "status"):
            if changes.get(key) is not None:
                changes[key] = changes[key].value

        try:
            async with atomic(self.session):
                await self.patients.update_fields(patient, **changes)
        except SQLAlchemyError as exc:
            return self._internal(exc, "patient_update_failed", "Failed to update patient", patient_id=patient_id)

        log.info("patient_updated", patient_id=patient_id, fields=sorted(changes))
        return ServiceResult.ok("Patient updated successfully", PatientResponse.model_validate(patient))

    async def remove(self, patient_id: str, caller: Caller) -> ServiceResult:
        patient = await self.patients.get_by_id(patient_id)
        if self._hidden(patient, patient.tenant_id if patient else None, caller):
            return ServiceResult.not_found("Patient not found or already deleted")
        if not await self._allowed(caller, ADMIN_ONLY):
            return ServiceResult.forbidden("Only admins can delete patients")

        try:
            async with atomic(self.session):
                await self.patients.soft_delete(patient)
        except SQLAlchemyError as exc:
            return self._internal(exc, "patient_remove_failed", "Failed to delete patient", patient_id=patient_id)

        log.info("patient_removed", patient_id=patient_id)
        return ServiceResult.ok("Patient deleted successfully", PatientResponse.model_validate(patient))
