"""Inventory item model."""
from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.session import Base
from .mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class InventoryItem(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """Stock of one consumable in one tenant."""

    __tablename__ = "inventory_items"

    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit: Mapped[str | None] = mapped_column(String(30), nullable=True)

    __table_args__ = (
        Index(
            "uq_inventory_items_tenant_name_live",
            "tenant_id",
            "item_name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    def __repr__(self) -> str:
        return f"<InventoryItem(id={self.id}, item_name='{self.item_name}', quantity={self.quantity})>"
