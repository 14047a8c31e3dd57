"""Inventory Repository."""
from __future__ import annotations

from collections.abc import Sequence

import structlog
from sqlalchemy import func, select

from ..models.inventory import InventoryItem
from .base import SoftDeleteRepository

log = structlog.get_logger(__name__)


class InventoryRepository(SoftDeleteRepository[InventoryItem]):
    model = InventoryItem

    async def list_live(self, tenant_id: str, skip: int = 0, limit: int = 100) -> Sequence[InventoryItem]:
        query = (
            select(InventoryItem)
            .where(
                InventoryItem.tenant_id == tenant_id,
                InventoryItem.deleted_at.is_(None),
            )
            .order_by(InventoryItem.item_name.asc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def name_taken(self, tenant_id: str, item_name: str, exclude_id: str | None = None) -> bool:
        """Case-insensitive check among live items of the tenant."""
        query = select(func.count(InventoryItem.id)).where(
            InventoryItem.tenant_id == tenant_id,
            func.lower(InventoryItem.item_name) == item_name.strip().lower(),
            InventoryItem.deleted_at.is_(None),
        )
        if exclude_id is not None:
            query = query.where(InventoryItem.id != exclude_id)
        result = await self.session.execute(query)
        return result.scalar_one() > 0

    async def create(self, tenant_id: str, item_name: str, quantity: int, unit: str | None = None) -> InventoryItem:
        item = InventoryItem(
            tenant_id=tenant_id,
            item_name=item_name.strip(),
            quantity=quantity,
            unit=unit,
        )
        await self.add(item)
        log.info("inventory_item_created", item_id=item.id, tenant_id=tenant_id)
        return item
