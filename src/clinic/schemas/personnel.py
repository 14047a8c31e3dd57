"""
Doctor and Staff Schemas.

Doctors and staff are both user-backed profiles, so their request models
share the user fields (email, password, name) plus the profile fields.
Email format is checked by the service so it can answer with a 400.
"""
from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_PHONE_RE = re.compile(r"^\+?[0-9][0-9\s\-]{6,18}$")


def _validate_phone(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not _PHONE_RE.match(v):
        raise ValueError("Phone number must be 7-20 digits, optionally starting with +")
    return v


def _strip_code(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Employee code is required")
    return v


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class PersonnelCreate(BaseModel):
    email: str = Field(..., max_length=255, examples=["dr.rao@clinic.example"])
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1, max_length=200)
    employee_code: str = Field(..., min_length=1, max_length=50)
    phone: str | None = Field(None, examples=["+919876543210"])

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        return _validate_phone(v)

    @field_validator("employee_code")
    @classmethod
    def strip_code(cls, v: str) -> str:
        return _strip_code(v)


class PersonnelUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""

    email: str | None = Field(None, max_length=255)
    name: str | None = Field(None, min_length=1, max_length=200)
    employee_code: str | None = Field(None, min_length=1, max_length=50)
    phone: str | None = None
    is_active: bool | None = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        return _validate_phone(v)

    @field_validator("employee_code")
    @classmethod
    def strip_code(cls, v: str | None) -> str | None:
        return _strip_code(v)


class DoctorCreate(PersonnelCreate):
    specialty: str | None = Field(None, max_length=200, examples=["Orthopaedics"])


class DoctorUpdate(PersonnelUpdate):
    specialty: str | None = Field(None, max_length=200)


class StaffCreate(PersonnelCreate):
    pass


class StaffUpdate(PersonnelUpdate):
    pass


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class PersonnelResponse(BaseModel):
    """Profile merged with the name and email of its user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    tenant_id: str
    email: str
    name: str
    employee_code: str
    phone: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None


class DoctorResponse(PersonnelResponse):
    specialty: str | None = None


class StaffResponse(PersonnelResponse):
    pass
