"""Prescription and Operation Schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# PRESCRIPTIONS
# =============================================================================

class Medication(BaseModel):
    drug_name: str = Field(..., min_length=1, examples=["Amoxicillin"])
    dosage: str = Field(..., min_length=1, examples=["500mg twice daily"])
    duration: str | None = Field(None, examples=["5 days"])
    instructions: str | None = Field(None, examples=["After food"])


class PrescriptionCreate(BaseModel):
    visit_id: str
    medications: list[Medication]


class PrescriptionUpdate(BaseModel):
    visit_id: str | None = None
    medications: list[Medication] | None = None


class PrescriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    visit_id: str
    medications: list[Medication]
    created_at: datetime
    updated_at: datetime


# =============================================================================
# OPERATIONS
# =============================================================================

class OperationCreate(BaseModel):
    patient_id: str
    surgeon_id: str
    name: str = Field(..., min_length=1, max_length=255)
    date: datetime
    fee: float = Field(..., allow_inf_nan=False, description="Must be greater than zero")
    outcome: str | None = None


class OperationUpdate(BaseModel):
    surgeon_id: str | None = None
    name: str | None = Field(None, min_length=1, max_length=255)
    date: datetime | None = None
    fee: float | None = Field(None, allow_inf_nan=False)
    outcome: str | None = None


class OperationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    surgeon_id: str | None = None
    name: str
    date: datetime
    fee: float
    outcome: str | None = None
    created_at: datetime
    updated_at: datetime
