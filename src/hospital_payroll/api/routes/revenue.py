"""Revenue-share API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from hospital_payroll.api.dependencies import RevenueShares
from hospital_payroll.api.schemas import (
    AllocationResponse,
    ErrorResponse,
    InvoiceShareResponse,
    SharePaymentRequest,
)

router = APIRouter(prefix="/revenue-shares", tags=["revenue-shares"])


@router.post(
    "/invoice-lines/{invoice_line_id}/allocate",
    response_model=AllocationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def allocate_shares(
    service: RevenueShares,
    invoice_line_id: Annotated[UUID, Path()],
) -> AllocationResponse:
    """Allocate an invoice line among its service's stakeholders."""
    result = await service.allocate_shares(invoice_line_id)
    return AllocationResponse.model_validate(result)


@router.get(
    "/invoice-lines/{invoice_line_id}/shares",
    response_model=list[InvoiceShareResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_shares(
    service: RevenueShares,
    invoice_line_id: Annotated[UUID, Path()],
) -> list[InvoiceShareResponse]:
    shares = await service.list_shares(invoice_line_id)
    return [InvoiceShareResponse.model_validate(s) for s in shares]


@router.post(
    "/shares/{share_id}/payments",
    response_model=InvoiceShareResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def record_share_payment(
    service: RevenueShares,
    share_id: Annotated[UUID, Path()],
    payload: SharePaymentRequest,
) -> InvoiceShareResponse:
    share = await service.record_share_payment(share_id, payload.amount, payload.paid_on)
    return InvoiceShareResponse.model_validate(share)
