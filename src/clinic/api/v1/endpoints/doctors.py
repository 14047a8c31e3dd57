"""
Doctor Endpoints.

Creating, updating, deleting and restoring doctors is restricted to clinic
admins; every member can list and read doctors.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.rbac import CurrentCaller
from ....core.responses import ServiceResult
from ....db.session import get_db
from ....schemas.personnel import DoctorCreate, DoctorResponse, DoctorUpdate
from ....services.doctor_service import DoctorService

router = APIRouter(prefix="/doctors", tags=["Doctors"])


async def get_doctor_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DoctorService:
    return DoctorService(db)


@router.post(
    "",
    response_model=ServiceResult[DoctorResponse],
    status_code=201,
    summary="Create doctor (admin)",
    description="Creates the doctor's login, profile and clinic membership together.",
)
async def create_doctor(
    payload: DoctorCreate,
    caller: CurrentCaller,
    service: DoctorService = Depends(get_doctor_service),
) -> JSONResponse:
    return (await service.create(payload, caller)).to_response()


@router.get(
    "",
    response_model=ServiceResult[list[DoctorResponse]],
    summary="List doctors",
)
async def list_doctors(
    caller: CurrentCaller,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=100)] = 100,
    service: DoctorService = Depends(get_doctor_service),
) -> JSONResponse:
    return (await service.find_all(caller, skip=skip, limit=limit)).to_response()


@router.get(
    "/{doctor_id}",
    response_model=ServiceResult[DoctorResponse],
    summary="Get doctor",
)
async def get_doctor(
    doctor_id: Annotated[str, Path(description="Doctor ID")],
    caller: CurrentCaller,
    service: DoctorService = Depends(get_doctor_service),
) -> JSONResponse:
    return (await service.find_one(doctor_id, caller)).to_response()


@router.patch(
    "/{doctor_id}",
    response_model=ServiceResult[DoctorResponse],
    summary="Update doctor (admin)",
)
async def update_doctor(
    doctor_id: Annotated[str, Path(description="Doctor ID")],
    payload: DoctorUpdate,
    caller: CurrentCaller,
    service: DoctorService = Depends(get_doctor_service),
) -> JSONResponse:
    return (await service.update(doctor_id, payload, caller)).to_response()


@router.delete(
    "/{doctor_id}",
    response_model=ServiceResult[DoctorResponse],
    summary="Delete doctor (admin)",
    description="Soft deletes the doctor together with their login and membership.",
)
async def delete_doctor(
    doctor_id: Annotated[str, Path(description="Doctor ID")],
    caller: CurrentCaller,
    service: DoctorService = Depends(get_doctor_service),
) -> JSONResponse:
    return (await service.remove(doctor_id, caller)).to_response()


@router.patch(
    "/{doctor_id}/restore",
    response_model=ServiceResult[DoctorResponse],
    summary="Restore doctor (admin)",
)
async def restore_doctor(
    doctor_id: Annotated[str, Path(description="Doctor ID")],
    caller: CurrentCaller,
    service: DoctorService = Depends(get_doctor_service),
) -> JSONResponse:
    return (await service.restore(doctor_id, caller)).to_response()
