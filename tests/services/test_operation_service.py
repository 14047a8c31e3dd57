"""Tests for operations and the bill that follows them."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from src.clinic.models.enums import Gender
from src.clinic.models.mixins import utc_now
from src.clinic.repositories.billing_repository import BillingRepository
from src.clinic.repositories.operation_repository import OperationRepository
from src.clinic.repositories.visit_repository import VisitRepository
from src.clinic.schemas.clinical import OperationCreate, OperationUpdate
from src.clinic.schemas.patient import PatientCreate
from src.clinic.services.operation_service import OperationService
from src.clinic.services.patient_service import PatientService


async def _register(session, clinic) -> str:
    result = await PatientService(session).create(
        PatientCreate(full_name="Ravi Kumar", gender=Gender.MALE, registration_fee=100.0),
        clinic.staff_caller,
    )
    return result.data.id


def _operation(patient_id: str, surgeon_id: str, fee: float = 25000.0) -> OperationCreate:
    return OperationCreate(
        patient_id=patient_id,
        surgeon_id=surgeon_id,
        name="Appendectomy",
        date=utc_now() + timedelta(days=2),
        fee=fee,
    )


async def _operation_bills(session, clinic, patient_id: str):
    return await BillingRepository(session).list_live(
        clinic.tenant.id, patient_id=patient_id, billing_type="OPERATION"
    )


@pytest.mark.asyncio
async def test_schedule_creates_bill_and_notes_latest_visit(db_session, clinic):
    patient_id = await _register(db_session, clinic)

    result = await OperationService(db_session).create(
        _operation(patient_id, clinic.doctor.id), clinic.doctor_caller
    )

    assert result.status_code == 201
    bills = await _operation_bills(db_session, clinic, patient_id)
    assert [(b.amount, b.status) for b in bills] == [(25000.0, "UNPAID")]
    visit = await VisitRepository(db_session).latest_live_for_patient(patient_id)
    assert visit.notes == "Initial registration\nOperation scheduled: Appendectomy"


@pytest.mark.asyncio
@pytest.mark.parametrize("fee", [0, -10])
async def test_schedule_rejects_non_positive_fee(db_session, clinic, fee):
    patient_id = await _register(db_session, clinic)

    result = await OperationService(db_session).create(
        _operation(patient_id, clinic.doctor.id, fee=fee), clinic.doctor_caller
    )

    assert result.status_code == 400
    assert result.message == "Operation fee must be positive"
    assert await _operation_bills(db_session, clinic, patient_id) == []


@pytest.mark.asyncio
async def test_schedule_with_foreign_surgeon_is_not_found(db_session, clinic, other_clinic):
    patient_id = await _register(db_session, clinic)

    result = await OperationService(db_session).create(
        _operation(patient_id, other_clinic.doctor.id), clinic.admin_caller
    )

    assert result.status_code == 404
    assert result.message == "Surgeon not found or deleted"


@pytest.mark.asyncio
async def test_staff_cannot_schedule(db_session, clinic):
    patient_id = await _register(db_session, clinic)
    result = await OperationService(db_session).create(
        _operation(patient_id, clinic.doctor.id), clinic.staff_caller
    )
    assert result.status_code == 403


@pytest.mark.asyncio
async def test_fee_change_updates_bill(db_session, clinic):
    patient_id = await _register(db_session, clinic)
    service = OperationService(db_session)
    created = await service.create(_operation(patient_id, clinic.doctor.id), clinic.doctor_caller)

    result = await service.update(created.data.id, OperationUpdate(fee=30000.0), clinic.doctor_caller)
    rejected = await service.update(created.data.id, OperationUpdate(fee=0), clinic.doctor_caller)

    assert result.data.fee == 30000.0
    assert rejected.status_code == 400
    bills = await _operation_bills(db_session, clinic, patient_id)
    assert [b.amount for b in bills] == [30000.0]


@pytest.mark.asyncio
async def test_update_outcome_keeps_bill(db_session, clinic):
    patient_id = await _register(db_session, clinic)
    service = OperationService(db_session)
    created = await service.create(_operation(patient_id, clinic.doctor.id), clinic.doctor_caller)

    result = await service.update(created.data.id, OperationUpdate(outcome="Successful"), clinic.doctor_caller)

    assert result.data.outcome == "Successful"
    bills = await _operation_bills(db_session, clinic, patient_id)
    assert [b.amount for b in bills] == [25000.0]


@pytest.mark.asyncio
async def test_remove_voids_bill(db_session, clinic):
    patient_id = await _register(db_session, clinic)
    service = OperationService(db_session)
    created = await service.create(_operation(patient_id, clinic.doctor.id), clinic.doctor_caller)

    denied = await service.remove(created.data.id, clinic.doctor_caller)
    removed = await service.remove(created.data.id, clinic.admin_caller)

    assert denied.status_code == 403
    assert removed.status_code == 200
    assert await _operation_bills(db_session, clinic, patient_id) == []
    assert (await service.find_one(created.data.id, clinic.admin_caller)).status_code == 404


@pytest.mark.parametrize("fee", [float("nan"), float("inf"), float("-inf")])
def test_operation_fee_must_be_finite(fee):
    with pytest.raises(ValidationError):
        _operation("p-1", "d-1", fee=fee)
    with pytest.raises(ValidationError):
        OperationUpdate(fee=fee)


@pytest.mark.asyncio
@pytest.mark.parametrize("fee", [float("nan"), float("inf")])
async def test_service_rejects_non_finite_fee(db_session, clinic, fee):
    patient_id = await _register(db_session, clinic)
    service = OperationService(db_session)
    created = await service.create(_operation(patient_id, clinic.doctor.id), clinic.doctor_caller)

    # model_construct skips field validation
    unchecked = OperationCreate.model_construct(
        patient_id=patient_id,
        surgeon_id=clinic.doctor.id,
        name="Appendectomy",
        date=utc_now(),
        fee=fee,
    )
    rejected_create = await service.create(unchecked, clinic.doctor_caller)
    rejected_update = await service.update(
        created.data.id, OperationUpdate.model_construct(fee=fee), clinic.doctor_caller
    )

    assert rejected_create.status_code == 400
    assert rejected_update.status_code == 400
    bills = await _operation_bills(db_session, clinic, patient_id)
    assert [b.amount for b in bills] == [25000.0]


@pytest.mark.asyncio
async def test_storage_failure_returns_internal_error(db_session, clinic, monkeypatch):
    patient_id = await _register(db_session, clinic)

    async def failing_create(self, patient_id, **fields):
        raise OperationalError("INSERT INTO operations", {}, Exception("database is locked"))

    monkeypatch.setattr(OperationRepository, "create", failing_create)

    result = await OperationService(db_session).create(
        _operation(patient_id, clinic.doctor.id), clinic.doctor_caller
    )

    assert result.status_code == 500
    assert result.message == "Failed to schedule operation"
    assert await _operation_bills(db_session, clinic, patient_id) == []
