"""
Billing Endpoints.

Bills are created by registration, visits and operations; this router only
lists, reads and settles them.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ....core.rbac import CurrentCaller
from ....core.responses import ServiceResult
from ....db.session import get_db
from ....models.enums import PaymentStatus
from ....schemas.billing import BillingResponse, BillingSettle
from ....services.billing_service import BillingService

router = APIRouter(prefix="/billing", tags=["Billing"])


async def get_billing_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BillingService:
    return BillingService(db)


@router.get("", response_model=ServiceResult[list[BillingResponse]], summary="List bills")
async def list_bills(
    caller: CurrentCaller,
    patient_id: Annotated[str | None, Query()] = None,
    status: Annotated[PaymentStatus | None, Query()] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=100)] = 100,
    service: BillingService = Depends(get_billing_service),
) -> JSONResponse:
    result = await service.find_all(caller, patient_id=patient_id, status=status, skip=skip, limit=limit)
    return result.to_response()


@router.get("/{billing_id}", response_model=ServiceResult[BillingResponse], summary="Get bill")
async def get_bill(
    billing_id: Annotated[str, Path(description="Billing ID")],
    caller: CurrentCaller,
    service: BillingService = Depends(get_billing_service),
) -> JSONResponse:
    return (await service.find_one(billing_id, caller)).to_response()


@router.patch(
    "/{billing_id}/settle",
    response_model=ServiceResult[BillingResponse],
    summary="Settle bill",
    description="Sets payment status and mode; PAID stamps paid_at.",
)
async def settle_bill(
    billing_id: Annotated[str, Path(description="Billing ID")],
    payload: BillingSettle,
    caller: CurrentCaller,
    service: BillingService = Depends(get_billing_service),
) -> JSONResponse:
    return (await service.settle(billing_id, payload, caller)).to_response()
