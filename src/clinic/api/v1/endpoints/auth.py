"""
Authentication Endpoints.

- POST /auth/signup  create an admin user together with a new clinic
- POST /auth/login   email/password login, optionally naming a clinic code
- GET  /auth/me      the caller and the clinics they belong to
"""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.rbac import CurrentCaller
from ....core.responses import ServiceResult
from ....db.session import get_db
from ....schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    SignupRequest,
    SignupResponse,
)
from ....services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


async def get_auth_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuthService:
    return AuthService(db)


@router.post(
    "/signup",
    response_model=ServiceResult[SignupResponse],
    status_code=201,
    summary="Sign up a clinic",
    description="Creates the admin user, the clinic and the admin membership. No token is issued.",
)
async def signup(
    payload: SignupRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    return (await service.signup(payload)).to_response()


@router.post(
    "/login",
    response_model=ServiceResult[LoginResponse],
    summary="Log in",
    description=(
        "Returns an access token scoped to one clinic. Users in several clinics "
        "receive the list of clinics (is_multi_tenant=true) and must resubmit "
        "with tenant_code."
    ),
)
async def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    return (await service.sign_in(payload)).to_response()


@router.get(
    "/me",
    response_model=ServiceResult[MeResponse],
    summary="Current user",
)
async def me(
    caller: CurrentCaller,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    return (await service.me(caller)).to_response()
