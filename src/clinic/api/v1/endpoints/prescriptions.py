"""Prescription Endpoints."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.rbac import CurrentCaller
from ....core.responses import ServiceResult
from ....db.session import get_db
from ....schemas.clinical import PrescriptionCreate, PrescriptionResponse, PrescriptionUpdate
from ....services.prescription_service import PrescriptionService

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])


async def get_prescription_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PrescriptionService:
    return PrescriptionService(db)


@router.post("", response_model=ServiceResult[PrescriptionResponse], status_code=201, summary="Create prescription")
async def create_prescription(
    payload: PrescriptionCreate,
    caller: CurrentCaller,
    service: PrescriptionService = Depends(get_prescription_service),
) -> JSONResponse:
    return (await service.create(payload, caller)).to_response()


@router.get("", response_model=ServiceResult[list[PrescriptionResponse]], summary="List prescriptions")
async def list_prescriptions(
    caller: CurrentCaller,
    visit_id: Annotated[str | None, Query()] = None,
    patient_id: Annotated[str | None, Query()] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=100)] = 100,
    service: PrescriptionService = Depends(get_prescription_service),
) -> JSONResponse:
    result = await service.find_all(caller, visit_id=visit_id, patient_id=patient_id, skip=skip, limit=limit)
    return result.to_response()


@router.get("/{prescription_id}", response_model=ServiceResult[PrescriptionResponse], summary="Get prescription")
async def get_prescription(
    prescription_id: Annotated[str, Path(description="Prescription ID")],
    caller: CurrentCaller,
    service: PrescriptionService = Depends(get_prescription_service),
) -> JSONResponse:
    return (await service.find_one(prescription_id, caller)).to_response()


@router.patch("/{prescription_id}", response_model=ServiceResult[PrescriptionResponse], summary="Update prescription")
async def update_prescription(
    prescription_id: Annotated[str, Path(description="Prescription ID")],
    payload: PrescriptionUpdate,
    caller: CurrentCaller,
    service: PrescriptionService = Depends(get_prescription_service),
) -> JSONResponse:
    return (await service.update(prescription_id, payload, caller)).to_response()


@router.delete(
    "/{prescription_id}",
    response_model=ServiceResult[PrescriptionResponse],
    summary="Delete prescription (admin)",
)
async def delete_prescription(
    prescription_id: Annotated[str, Path(description="Prescription ID")],
    caller: CurrentCaller,
    service: PrescriptionService = Depends(get_prescription_service),
) -> JSONResponse:
    return (await service.remove(prescription_id, caller)).to_response()
