"""Visit Schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class VisitCreate(BaseModel):
    patient_id: str
    doctor_id: str
    notes: str | None = None
    # Sign is checked by the service so a negative fee is a 400, not a 422
    consultation_fee: float = Field(0.0, allow_inf_nan=False)


class VisitUpdate(BaseModel):
    doctor_id: str | None = None
    notes: str | None = None
    consultation_fee: float | None = Field(None, allow_inf_nan=False)


class VisitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    doctor_id: str | None = None
    staff_id: str | None = None
    visit_date: datetime
    notes: str | None = None
    consultation_fee: float
    fee_valid_until: datetime | None = None
    created_at: datetime
    updated_at: datetime


class VisitCreated(VisitResponse):
    """Visit plus whether it triggered a new registration charge."""

    registration_charged: bool = Field(False)
