"""Patient Endpoints."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.rbac import CurrentCaller
from ....core.responses import ServiceResult
from ....db.session import get_db
from ....models.enums import PatientStatus
from ....schemas.patient import PatientCreate, PatientResponse, PatientUpdate
from ....services.patient_service import PatientService

router = APIRouter(prefix="/patients", tags=["Patients"])


async def get_patient_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PatientService:
    return PatientService(db)


@router.post(
    "",
    response_model=ServiceResult[PatientResponse],
    status_code=201,
    summary="Register patient",
    description="Numbers the patient, charges registration and records the initial visit.",
)
async def create_patient(
    payload: PatientCreate,
    caller: CurrentCaller,
    service: PatientService = Depends(get_patient_service),
) -> JSONResponse:
    return (await service.create(payload, caller)).to_response()


@router.get(
    "",
    response_model=ServiceResult[list[PatientResponse]],
    summary="List patients",
)
async def list_patients(
    caller: CurrentCaller,
    search: Annotated[str | None, Query(description="Match name, patient number or phone")] = None,
    status: Annotated[PatientStatus | None, Query(description="Filter by status")] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=100)] = 100,
    service: PatientService = Depends(get_patient_service),
) -> JSONResponse:
    return (await service.find_all(caller, search=search, status=status, skip=skip, limit=limit)).to_response()


@router.get(
    "/{patient_id}",
    response_model=ServiceResult[PatientResponse],
    summary="Get patient",
)
async def get_patient(
    patient_id: Annotated[str, Path(description="Patient ID")],
    caller: CurrentCaller,
    service: PatientService = Depends(get_patient_service),
) -> JSONResponse:
    return (await service.find_one(patient_id, caller)).to_response()


@router.patch(
    "/{patient_id}",
    response_model=ServiceResult[PatientResponse],
    summary="Update patient",
)
async def update_patient(
    patient_id: Annotated[str, Path(description="Patient ID")],
    payload: PatientUpdate,
    caller: CurrentCaller,
    service: PatientService = Depends(get_patient_service),
) -> JSONResponse:
    return (await service.update(patient_id, payload, caller)).to_response()


@router.delete(
    "/{patient_id}",
    response_model=ServiceResult[PatientResponse],
    summary="Delete patient (admin)",
)
async def delete_patient(
    patient_id: Annotated[str, Path(description="Patient ID")],
    caller: CurrentCaller,
    service: PatientService = Depends(get_patient_service),
) -> JSONResponse:
    return (await service.remove(patient_id, caller)).to_response()
