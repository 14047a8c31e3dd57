"""End-to-end tests for the tenant-scoped clinic endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from src.clinic.core.rbac import Caller

if TYPE_CHECKING:
    from httpx import AsyncClient

PATIENT = {
    "full_name": "Asha Verma",
    "gender": "FEMALE",
    "phone": "9876543210",
    "registration_fee": 500,
}


@pytest.mark.asyncio
async def test_register_and_fetch_patient(client: AsyncClient, clinic, auth_headers) -> None:
    headers = auth_headers(clinic.staff_caller)

    created = await client.post("/api/v1/patients", json=PATIENT, headers=headers)
    assert created.status_code == 201
    patient = created.json()["data"]
    assert patient["patient_number"] == "PT-ABC-001"
    assert patient["no_of_visits"] == 1

    fetched = await client.get(f"/api/v1/patients/{patient['id']}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["data"]["full_name"] == "Asha Verma"

    bills = await client.get("/api/v1/billing", params={"patient_id": patient["id"]}, headers=headers)
    assert [(b["type"], b["amount"]) for b in bills.json()["data"]] == [("REGISTRATION", 500.0)]

    visits = await client.get("/api/v1/visits", params={"patient_id": patient["id"]}, headers=headers)
    assert [v["notes"] for v in visits.json()["data"]] == ["Initial registration"]


@pytest.mark.asyncio
async def test_other_clinic_sees_not_found(client: AsyncClient, clinic, other_clinic, auth_headers) -> None:
    created = await client.post("/api/v1/patients", json=PATIENT, headers=auth_headers(clinic.staff_caller))
    patient_id = created.json()["data"]["id"]

    response = await client.get(f"/api/v1/patients/{patient_id}", headers=auth_headers(other_clinic.admin_caller))

    assert response.status_code == 404
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_token_for_foreign_tenant_is_forbidden(client: AsyncClient, clinic, other_clinic, auth_headers) -> None:
    # Valid signature, but the user has no membership in the token's tenant
    caller = Caller(
        user_id=clinic.staff_user.id,
        tenant_id=other_clinic.tenant.id,
        role="ADMIN",
        email=clinic.staff_user.email,
    )

    response = await client.get("/api/v1/patients", headers=auth_headers(caller))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_visit_and_operation_flow(client: AsyncClient, clinic, auth_headers) -> None:
    staff = auth_headers(clinic.staff_caller)
    doctor = auth_headers(clinic.doctor_caller)
    patient_id = (await client.post("/api/v1/patients", json=PATIENT, headers=staff)).json()["data"]["id"]

    visit = await client.post(
        "/api/v1/visits",
        json={"patient_id": patient_id, "doctor_id": clinic.doctor.id, "consultation_fee": 200},
        headers=staff,
    )
    assert visit.status_code == 201
    assert visit.json()["data"]["registration_charged"] is False

    operation = await client.post(
        "/api/v1/operations",
        json={
            "patient_id": patient_id,
            "surgeon_id": clinic.doctor.id,
            "name": "Cataract surgery",
            "date": "2030-01-15T09:00:00Z",
            "fee": 15000,
        },
        headers=doctor,
    )
    assert operation.status_code == 201

    prescription = await client.post(
        "/api/v1/prescriptions",
        json={
            "visit_id": visit.json()["data"]["id"],
            "medications": [{"drug_name": "Moxifloxacin", "dosage": "1 drop 4x daily"}],
        },
        headers=doctor,
    )
    assert prescription.status_code == 201

    bills = (await client.get("/api/v1/billing", params={"patient_id": patient_id}, headers=staff)).json()["data"]
    assert sorted(b["type"] for b in bills) == ["OPERATION", "REGISTRATION"]

    operation_bill = next(b for b in bills if b["type"] == "OPERATION")
    settled = await client.patch(
        f"/api/v1/billing/{operation_bill['id']}/settle",
        json={"status": "PAID", "payment_mode": "CARD"},
        headers=staff,
    )
    assert settled.status_code == 200
    assert settled.json()["data"]["paid_at"] is not None


@pytest.mark.asyncio
async def test_doctor_admin_endpoints(client: AsyncClient, clinic, auth_headers) -> None:
    admin = auth_headers(clinic.admin_caller)

    created = await client.post(
        "/api/v1/doctors",
        json={
            "email": "dr.new@abc.com",
            "password": "secret123",
            "name": "Dr. New",
            "employee_code": "DOC-9",
            "specialty": "ENT",
        },
        headers=admin,
    )
    assert created.status_code == 201
    doctor_id = created.json()["data"]["id"]

    forbidden = await client.delete(f"/api/v1/doctors/{doctor_id}", headers=auth_headers(clinic.staff_caller))
    assert forbidden.status_code == 403

    deleted = await client.delete(f"/api/v1/doctors/{doctor_id}", headers=admin)
    assert deleted.status_code == 200

    restored = await client.patch(f"/api/v1/doctors/{doctor_id}/restore", headers=admin)
    assert restored.status_code == 200
    assert restored.json()["data"]["is_active"] is True


@pytest.mark.asyncio
async def test_inventory_is_admin_only_over_http(client: AsyncClient, clinic, auth_headers) -> None:
    denied = await client.get("/api/v1/inventory", headers=auth_headers(clinic.nurse_caller))
    created = await client.post(
        "/api/v1/inventory",
        json={"item_name": "Gauze", "quantity": 40, "unit": "roll"},
        headers=auth_headers(clinic.admin_caller),
    )

    assert denied.status_code == 403
    assert created.status_code == 201


@pytest.mark.asyncio
async def test_operation_fee_nan_is_a_validation_error(client: AsyncClient, clinic, auth_headers) -> None:
    headers = auth_headers(clinic.doctor_caller)
    patient_id = (
        await client.post("/api/v1/patients", json=PATIENT, headers=auth_headers(clinic.staff_caller))
    ).json()["data"]["id"]
    body = (
        f'{{"patient_id": "{patient_id}", "surgeon_id": "{clinic.doctor.id}", '
        '"name": "Cataract surgery", "date": "2030-01-15T09:00:00Z", "fee": NaN}'
    )

    response = await client.post(
        "/api/v1/operations",
        content=body,
        headers={**headers, "Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"
