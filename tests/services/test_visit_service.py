"""Tests for visits and the registration fee waiver window."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from src.clinic.models.enums import Gender
from src.clinic.models.mixins import as_utc, utc_now
from src.clinic.repositories.billing_repository import BillingRepository
from src.clinic.repositories.patient_repository import PatientRepository
from src.clinic.repositories.visit_repository import VisitRepository
from src.clinic.schemas.patient import PatientCreate
from src.clinic.schemas.visit import VisitCreate, VisitUpdate
from src.clinic.services.patient_service import PatientService
from src.clinic.services.visit_service import VisitService


async def _register(session, clinic) -> str:
    result = await PatientService(session).create(
        PatientCreate(full_name="Asha Verma", gender=Gender.FEMALE, registration_fee=300.0),
        clinic.staff_caller,
    )
    return result.data.id


async def _backdate_last_visit(session, patient_id: str, days: int) -> None:
    visits = VisitRepository(session)
    last = await visits.latest_live_for_patient(patient_id)
    visit_date = utc_now() - timedelta(days=days)
    await visits.update_fields(last, visit_date=visit_date, fee_valid_until=visit_date + timedelta(days=14))
    await session.commit()


async def _registration_bills(session, clinic, patient_id: str) -> int:
    bills = await BillingRepository(session).list_live(
        clinic.tenant.id, patient_id=patient_id, billing_type="REGISTRATION"
    )
    return len(bills)


@pytest.mark.asyncio
async def test_visit_within_window_is_not_charged(db_session, clinic):
    patient_id = await _register(db_session, clinic)
    await _backdate_last_visit(db_session, patient_id, days=13)
    previous = await VisitRepository(db_session).latest_live_for_patient(patient_id)
    inherited = as_utc(previous.fee_valid_until)

    result = await VisitService(db_session).create(
        VisitCreate(patient_id=patient_id, doctor_id=clinic.doctor.id, consultation_fee=200.0),
        clinic.nurse_caller,
    )

    assert result.status_code == 201
    assert result.data.registration_charged is False
    assert as_utc(result.data.fee_valid_until) == inherited
    assert result.data.notes == "New visit"
    assert await _registration_bills(db_session, clinic, patient_id) == 1


@pytest.mark.asyncio
async def test_visit_after_window_is_charged_again(db_session, clinic):
    patient_id = await _register(db_session, clinic)
    await _backdate_last_visit(db_session, patient_id, days=15)

    result = await VisitService(db_session).create(
        VisitCreate(patient_id=patient_id, doctor_id=clinic.doctor.id, notes="Follow-up"),
        clinic.staff_caller,
    )

    assert result.data.registration_charged is True
    assert as_utc(result.data.fee_valid_until) > utc_now() + timedelta(days=13)
    assert result.data.notes == "Follow-up"
    assert await _registration_bills(db_session, clinic, patient_id) == 2


@pytest.mark.asyncio
async def test_visit_increments_patient_visit_count(db_session, clinic):
    patient_id = await _register(db_session, clinic)

    await VisitService(db_session).create(
        VisitCreate(patient_id=patient_id, doctor_id=clinic.doctor.id), clinic.staff_caller
    )

    patient = await PatientRepository(db_session).get_by_id(patient_id)
    assert patient.no_of_visits == 2


@pytest.mark.asyncio
async def test_visit_rejects_negative_fee(db_session, clinic):
    patient_id = await _register(db_session, clinic)

    result = await VisitService(db_session).create(
        VisitCreate(patient_id=patient_id, doctor_id=clinic.doctor.id, consultation_fee=-1),
        clinic.staff_caller,
    )

    assert result.status_code == 400
    assert result.message == "Consultation fee cannot be negative"


@pytest.mark.asyncio
async def test_visit_for_unknown_patient_or_doctor_is_not_found(db_session, clinic, other_clinic):
    patient_id = await _register(db_session, clinic)
    service = VisitService(db_session)

    no_patient = await service.create(
        VisitCreate(patient_id="missing", doctor_id=clinic.doctor.id), clinic.staff_caller
    )
    foreign_doctor = await service.create(
        VisitCreate(patient_id=patient_id, doctor_id=other_clinic.doctor.id), clinic.staff_caller
    )

    assert no_patient.message == "Patient not found or deleted"
    assert foreign_doctor.message == "Doctor not found or deleted"


@pytest.mark.asyncio
async def test_remove_keeps_visit_count(db_session, clinic):
    patient_id = await _register(db_session, clinic)
    service = VisitService(db_session)
    created = await service.create(
        VisitCreate(patient_id=patient_id, doctor_id=clinic.doctor.id), clinic.staff_caller
    )

    denied = await service.remove(created.data.id, clinic.doctor_caller)
    removed = await service.remove(created.data.id, clinic.admin_caller)

    assert denied.status_code == 403
    assert removed.status_code == 200
    patient = await PatientRepository(db_session).get_by_id(patient_id)
    assert patient.no_of_visits == 2
    listed = await service.find_all(clinic.admin_caller, patient_id=patient_id)
    assert len(listed.data) == 1


@pytest.mark.asyncio
async def test_update_visit_notes(db_session, clinic):
    patient_id = await _register(db_session, clinic)
    service = VisitService(db_session)
    created = await service.create(
        VisitCreate(patient_id=patient_id, doctor_id=clinic.doctor.id), clinic.staff_caller
    )

    result = await service.update(created.data.id, VisitUpdate(notes="BP normal"), clinic.doctor_caller)
    negative = await service.update(created.data.id, VisitUpdate(consultation_fee=-5), clinic.doctor_caller)

    assert result.data.notes == "BP normal"
    assert negative.status_code == 400


@pytest.mark.asyncio
async def test_storage_failure_returns_internal_error(db_session, clinic, monkeypatch):
    patient_id = await _register(db_session, clinic)

    async def failing_create(self, patient_id, **fields):
        raise OperationalError("INSERT INTO visits", {}, Exception("database is locked"))

    monkeypatch.setattr(VisitRepository, "create", failing_create)

    result = await VisitService(db_session).create(
        VisitCreate(patient_id=patient_id, doctor_id=clinic.doctor.id), clinic.staff_caller
    )

    assert result.status_code == 500
    assert result.success is False
    assert result.message == "Failed to record visit"


@pytest.mark.parametrize("fee", [float("nan"), float("inf"), float("-inf")])
def test_consultation_fee_must_be_finite(fee):
    with pytest.raises(ValidationError):
        VisitCreate(patient_id="p-1", doctor_id="d-1", consultation_fee=fee)
    with pytest.raises(ValidationError):
        VisitUpdate(consultation_fee=fee)
