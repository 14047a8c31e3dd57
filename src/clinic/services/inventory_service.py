"""Clinic inventory (admin only)."""
from __future__ import annotations

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.rbac import INVENTORY_ACCESS, Caller
from ..core.responses import ServiceResult
from ..db.session import atomic
from ..repositories.inventory_repository import InventoryRepository
from ..schemas.billing import InventoryCreate, InventoryResponse, InventoryUpdate
from .base import TenantScopedService

log = structlog.get_logger(__name__)

DUPLICATE_ITEM = "Item already exists in inventory"


class InventoryService(TenantScopedService):
    def __init__(self, session: AsyncSession, **kwargs) -> None:
        super().__init__(session, **kwargs)
        self.items = InventoryRepository(session)

    async def create(self, payload: InventoryCreate, caller: Caller) -> ServiceResult:
        if not await self._allowed(caller, INVENTORY_ACCESS):
            return ServiceResult.forbidden("Only admins can manage inventory")
        if payload.quantity < 0:
            return ServiceResult.bad_request("Quantity cannot be negative")
        if await self.items.name_taken(caller.tenant_id, payload.item_name):
            return ServiceResult.conflict(DUPLICATE_ITEM)

        try:
            async with atomic(self.session):
                item = await self.items.create(caller.tenant_id, payload.item_name, payload.quantity, payload.unit)
        except IntegrityError as exc:
            return self._conflict(exc, "inventory_create_conflict", DUPLICATE_ITEM, tenant_id=caller.tenant_id)
        except SQLAlchemyError as exc:
            return self._internal(exc, "inventory_create_failed", "Failed to create inventory item")

        return ServiceResult.created("Inventory item created successfully", InventoryResponse.model_validate(item))

    async def find_all(self, caller: Caller, skip: int = 0, limit: int = 100) -> ServiceResult:
        if not await self._allowed(caller, INVENTORY_ACCESS):
            return ServiceResult.forbidden("Only admins can view inventory")
        try:
            rows = await self.items.list_live(caller.tenant_id, skip=skip, limit=limit)
        except SQLAlchemyError as exc:
            return self._internal(exc, "inventory_list_failed", "Failed to fetch inventory")
        return ServiceResult.ok("Inventory fetched successfully", [InventoryResponse.model_validate(i) for i in rows])

    async def find_one(self, item_id: str, caller: Caller) -> ServiceResult:
        item = await self.items.get_by_id(item_id)
        if self._hidden(item, item.tenant_id if item else None, caller):
            return ServiceResult.not_found("Inventory item not found or deleted")
        if not await self._allowed(caller, INVENTORY_ACCESS):
            return ServiceResult.forbidden("Only admins can view inventory")
        return ServiceResult.ok("Inventory item fetched successfully", InventoryResponse.model_validate(item))

    async def update(self, item_id: str, payload: InventoryUpdate, caller: Caller) -> ServiceResult:
        item = await self.items.get_by_id(item_id)
        if self._hidden(item, item.tenant_id if item else None, caller):
            return ServiceResult.not_found("Inventory item not found or already deleted")
        if not await self._allowed(caller, INVENTORY_ACCESS):
            return ServiceResult.forbidden("Only admins can manage inventory")

        changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None or k == "unit"}
        if "quantity" in changes and changes["quantity"] < 0:
            return ServiceResult.bad_request("Quantity cannot be negative")
        if "item_name" in changes:
            changes["item_name"] = changes["item_name"].strip()
            if await self.items.name_taken(caller.tenant_id, changes["item_name"], exclude_id=item.id):
                return ServiceResult.conflict(DUPLICATE_ITEM)

        try:
            async with atomic(self.session):
                await self.items.update_fields(item, **changes)
        except IntegrityError as exc:
            return self._conflict(exc, "inventory_update_conflict", DUPLICATE_ITEM, item_id=item_id)
        except SQLAlchemyError as exc:
            return self._internal(exc, "inventory_update_failed", "Failed to update inventory item", item_id=item_id)

        return ServiceResult.ok("Inventory item updated successfully", InventoryResponse.model_validate(item))

    async def remove(self, item_id: str, caller: Caller) -> ServiceResult:
        item = await self.items.get_by_id(item_id)
        if self._hidden(item, item.tenant_id if item else None, caller):
            return ServiceResult.not_found("Inventory item not found or already deleted")
        if not await self._allowed(caller, INVENTORY_ACCESS):
            return ServiceResult.forbidden("Only admins can manage inventory")

        try:
            async with atomic(self.session):
                await self.items.soft_delete(item)
        except SQLAlchemyError as exc:
            return self._internal(exc, "inventory_remove_failed", "Failed to delete inventory item", item_id=item_id)

        log.info("inventory_item_removed", item_id=item_id)
        return ServiceResult.ok("Inventory item deleted successfully", InventoryResponse.model_validate(item))
