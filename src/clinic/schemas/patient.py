"""Patient Schemas."""
from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models.enums import Gender, PatientStatus


class PatientCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    date_of_birth: date | None = None
    gender: Gender
    address: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=20)
    registration_fee: float = Field(0.0, ge=0, allow_inf_nan=False, description="Charged once at registration")
    doctor_id: str | None = Field(None, description="Primary doctor in the same clinic")


class PatientUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=200)
    date_of_birth: date | None = None
    gender: Gender | None = None
    address: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=20)
    doctor_id: str | None = None
    status: PatientStatus | None = None
    referred_to: str | None = Field(None, max_length=255)
    referred_reason: str | None = None


class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    patient_number: str
    full_name: str
    date_of_birth: date | None = None
    gender: str
    address: str | None = None
    phone: str | None = None
    registration_fee: float
    no_of_visits: int
    doctor_id: str | None = None
    status: str
    referred_to: str | None = None
    referred_reason: str | None = None
    created_at: datetime
    updated_at: datetime
