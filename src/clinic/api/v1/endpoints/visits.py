"""Visit Endpoints."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.rbac import CurrentCaller
from ....core.responses import ServiceResult
from ....db.session import get_db
from ....schemas.visit import VisitCreate, VisitCreated, VisitResponse, VisitUpdate
from ....services.visit_service import VisitService

router = APIRouter(prefix="/visits", tags=["Visits"])


async def get_visit_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> VisitService:
    return VisitService(db)


@router.post(
    "",
    response_model=ServiceResult[VisitCreated],
    status_code=201,
    summary="Record visit",
    description="Charges registration again only when the last visit is outside the fee waiver window.",
)
async def create_visit(
    payload: VisitCreate,
    caller: CurrentCaller,
    service: VisitService = Depends(get_visit_service),
) -> JSONResponse:
    return (await service.create(payload, caller)).to_response()


@router.get("", response_model=ServiceResult[list[VisitResponse]], summary="List visits")
async def list_visits(
    caller: CurrentCaller,
    patient_id: Annotated[str | None, Query()] = None,
    doctor_id: Annotated[str | None, Query()] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=100)] = 100,
    service: VisitService = Depends(get_visit_service),
) -> JSONResponse:
    result = await service.find_all(caller, patient_id=patient_id, doctor_id=doctor_id, skip=skip, limit=limit)
    return result.to_response()


@router.get("/{visit_id}", response_model=ServiceResult[VisitResponse], summary="Get visit")
async def get_visit(
    visit_id: Annotated[str, Path(description="Visit ID")],
    caller: CurrentCaller,
    service: VisitService = Depends(get_visit_service),
) -> JSONResponse:
    return (await service.find_one(visit_id, caller)).to_response()


@router.patch("/{visit_id}", response_model=ServiceResult[VisitResponse], summary="Update visit")
async def update_visit(
    visit_id: Annotated[str, Path(description="Visit ID")],
    payload: VisitUpdate,
    caller: CurrentCaller,
    service: VisitService = Depends(get_visit_service),
) -> JSONResponse:
    return (await service.update(visit_id, payload, caller)).to_response()


@router.delete("/{visit_id}", response_model=ServiceResult[VisitResponse], summary="Delete visit (admin)")
async def delete_visit(
    visit_id: Annotated[str, Path(description="Visit ID")],
    caller: CurrentCaller,
    service: VisitService = Depends(get_visit_service),
) -> JSONResponse:
    return (await service.remove(visit_id, caller)).to_response()
