"""Inventory Endpoints (clinic admins only)."""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.rbac import CurrentCaller
from ....core.responses import ServiceResult
from ....db.session import get_db
from ....schemas.billing import InventoryCreate, InventoryResponse, InventoryUpdate
from ....services.inventory_service import InventoryService

router = APIRouter(prefix="/inventory", tags=["Inventory"])


async def get_inventory_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> InventoryService:
    return InventoryService(db)


@router.post("", response_model=ServiceResult[InventoryResponse], status_code=201, summary="Add inventory item")
async def create_item(
    payload: InventoryCreate,
    caller: CurrentCaller,
    service: InventoryService = Depends(get_inventory_service),
) -> JSONResponse:
    return (await service.create(payload, caller)).to_response()


@router.get("", response_model=ServiceResult[list[InventoryResponse]], summary="List inventory")
async def list_items(
    caller: CurrentCaller,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=100)] = 100,
    service: InventoryService = Depends(get_inventory_service),
) -> JSONResponse:
    return (await service.find_all(caller, skip=skip, limit=limit)).to_response()


@router.get("/{item_id}", response_model=ServiceResult[InventoryResponse], summary="Get inventory item")
async def get_item(
    item_id: Annotated[str, Path(description="Inventory item ID")],
    caller: CurrentCaller,
    service: InventoryService = Depends(get_inventory_service),
) -> JSONResponse:
    return (await service.find_one(item_id, caller)).to_response()


@router.patch("/{item_id}", response_model=ServiceResult[InventoryResponse], summary="Update inventory item")
async def update_item(
    item_id: Annotated[str, Path(description="Inventory item ID")],
    payload: InventoryUpdate,
    caller: CurrentCaller,
    service: InventoryService = Depends(get_inventory_service),
) -> JSONResponse:
    return (await service.update(item_id, payload, caller)).to_response()


@router.delete("/{item_id}", response_model=ServiceResult[InventoryResponse], summary="Delete inventory item")
async def delete_item(
    item_id: Annotated[str, Path(description="Inventory item ID")],
    caller: CurrentCaller,
    service: InventoryService = Depends(get_inventory_service),
) -> JSONResponse:
    return (await service.remove(item_id, caller)).to_response()
