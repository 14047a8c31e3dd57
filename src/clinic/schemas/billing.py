"""Billing and Inventory Schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models.enums import PaymentMode, PaymentStatus


# =============================================================================
# BILLING
# =============================================================================

class BillingSettle(BaseModel):
    status: PaymentStatus
    payment_mode: PaymentMode | None = Field(
        None,
        description="Required unless the bill is being marked UNPAID",
    )


class BillingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    type: str
    amount: float
    status: str
    payment_mode: str | None = None
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


# =============================================================================
# INVENTORY
# =============================================================================

class InventoryCreate(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=255, examples=["Surgical gloves"])
    # Negative quantities are rejected by the service with a 400
    quantity: int = 0
    unit: str | None = Field(None, max_length=30, examples=["box"])


class InventoryUpdate(BaseModel):
    item_name: str | None = Field(None, min_length=1, max_length=255)
    quantity: int | None = None
    unit: str | None = Field(None, max_length=30)


class InventoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    item_name: str
    quantity: int
    unit: str | None = None
    created_at: datetime
    updated_at: datetime
