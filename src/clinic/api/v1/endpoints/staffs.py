"""Staff Endpoints (writes are admin only)."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.rbac import CurrentCaller
from ....core.responses import ServiceResult
from ....db.session import get_db
from ....schemas.personnel import StaffCreate, StaffResponse, StaffUpdate
from ....services.staff_service import StaffService

router = APIRouter(prefix="/staffs", tags=["Staff"])


async def get_staff_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> StaffService:
    return StaffService(db)


@router.post("", response_model=ServiceResult[StaffResponse], status_code=201, summary="Create staff (admin)")
async def create_staff(
    payload: StaffCreate,
    caller: CurrentCaller,
    service: StaffService = Depends(get_staff_service),
) -> JSONResponse:
    return (await service.create(payload, caller)).to_response()


@router.get("", response_model=ServiceResult[list[StaffResponse]], summary="List staff")
async def list_staff(
    caller: CurrentCaller,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=100)] = 100,
    service: StaffService = Depends(get_staff_service),
) -> JSONResponse:
    return (await service.find_all(caller, skip=skip, limit=limit)).to_response()


@router.get("/{staff_id}", response_model=ServiceResult[StaffResponse], summary="Get staff member")
async def get_staff(
    staff_id: Annotated[str, Path(description="Staff ID")],
    caller: CurrentCaller,
    service: StaffService = Depends(get_staff_service),
) -> JSONResponse:
    return (await service.find_one(staff_id, caller)).to_response()


@router.patch("/{staff_id}", response_model=ServiceResult[StaffResponse], summary="Update staff member (admin)")
async def update_staff(
    staff_id: Annotated[str, Path(description="Staff ID")],
    payload: StaffUpdate,
    caller: CurrentCaller,
    service: StaffService = Depends(get_staff_service),
) -> JSONResponse:
    return (await service.update(staff_id, payload, caller)).to_response()


@router.delete("/{staff_id}", response_model=ServiceResult[StaffResponse], summary="Delete staff member (admin)")
async def delete_staff(
    staff_id: Annotated[str, Path(description="Staff ID")],
    caller: CurrentCaller,
    service: StaffService = Depends(get_staff_service),
) -> JSONResponse:
    return (await service.remove(staff_id, caller)).to_response()


@router.patch(
    "/{staff_id}/restore",
    response_model=ServiceResult[StaffResponse],
    summary="Restore staff member (admin)",
)
async def restore_staff(
    staff_id: Annotated[str, Path(description="Staff ID")],
    caller: CurrentCaller,
    service: StaffService = Depends(get_staff_service),
) -> JSONResponse:
    return (await service.restore(staff_id, caller)).to_response()
