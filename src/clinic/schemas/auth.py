"""Authentication Schemas.

Request/response models for:
- signup (new user + clinic)
- login (with optional tenant code for multi-clinic users)
- the current caller's profile
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class SignupRequest(BaseModel):
    """Create an admin user together with a new clinic."""

    email: EmailStr = Field(..., examples=["owner@clinic.example"])
    password: str = Field(..., min_length=6, description="At least 6 characters")
    name: str = Field(..., min_length=1, max_length=200, description="Admin display name")
    tenant_name: str = Field(..., min_length=1, max_length=255, description="Clinic name")
    address: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=20)

    @field_validator("name", "tenant_name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    tenant_code: str | None = Field(
        None,
        description="Clinic code; required when the user belongs to several clinics",
        examples=["QX7PLM"],
    )


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: str


class TenantSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str


class TenantChoice(TenantSummary):
    """A clinic the user may log into, with their role there."""

    role: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserSummary
    tenant: TenantSummary


class TenantSelectionResponse(BaseModel):
    """Returned instead of a token when a tenant code is needed."""

    is_multi_tenant: bool = True
    tenants: list[TenantChoice]


class SignupResponse(BaseModel):
    user: UserSummary
    tenant: TenantSummary


class MembershipSummary(TenantChoice):
    current: bool = Field(False, description="Whether the token is scoped to this clinic")


class MeResponse(BaseModel):
    user: UserSummary
    memberships: list[MembershipSummary]
