"""Operation Endpoints."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.rbac import CurrentCaller
from ....core.responses import ServiceResult
from ....db.session import get_db
from ....schemas.clinical import OperationCreate, OperationResponse, OperationUpdate
from ....services.operation_service import OperationService

router = APIRouter(prefix="/operations", tags=["Operations"])


async def get_operation_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> OperationService:
    return OperationService(db)


@router.post(
    "",
    response_model=ServiceResult[OperationResponse],
    status_code=201,
    summary="Schedule operation",
    description="Creates the operation bill and notes the operation on the latest visit.",
)
async def create_operation(
    payload: OperationCreate,
    caller: CurrentCaller,
    service: OperationService = Depends(get_operation_service),
) -> JSONResponse:
    return (await service.create(payload, caller)).to_response()


@router.get("", response_model=ServiceResult[list[OperationResponse]], summary="List operations")
async def list_operations(
    caller: CurrentCaller,
    patient_id: Annotated[str | None, Query()] = None,
    surgeon_id: Annotated[str | None, Query()] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=100)] = 100,
    service: OperationService = Depends(get_operation_service),
) -> JSONResponse:
    result = await service.find_all(caller, patient_id=patient_id, surgeon_id=surgeon_id, skip=skip, limit=limit)
    return result.to_response()


@router.get("/{operation_id}", response_model=ServiceResult[OperationResponse], summary="Get operation")
async def get_operation(
    operation_id: Annotated[str, Path(description="Operation ID")],
    caller: CurrentCaller,
    service: OperationService = Depends(get_operation_service),
) -> JSONResponse:
    return (await service.find_one(operation_id, caller)).to_response()


@router.patch(
    "/{operation_id}",
    response_model=ServiceResult[OperationResponse],
    summary="Update operation",
    description="A fee change is applied to the operation bill as well.",
)
async def update_operation(
    operation_id: Annotated[str, Path(description="Operation ID")],
    payload: OperationUpdate,
    caller: CurrentCaller,
    service: OperationService = Depends(get_operation_service),
) -> JSONResponse:
    return (await service.update(operation_id, payload, caller)).to_response()


@router.delete("/{operation_id}", response_model=ServiceResult[OperationResponse], summary="Delete operation (admin)")
async def delete_operation(
    operation_id: Annotated[str, Path(description="Operation ID")],
    caller: CurrentCaller,
    service: OperationService = Depends(get_operation_service),
) -> JSONResponse:
    return (await service.remove(operation_id, caller)).to_response()
