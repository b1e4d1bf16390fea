"""Payroll period API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from hospital_payroll.api.dependencies import Exports, Payroll
from hospital_payroll.api.schemas import (
    BankTransferRowResponse,
    ErrorResponse,
    PayrollLineResponse,
    PayrollPeriodResponse,
    PayrollRunResponse,
    PayslipResponse,
    PeriodTotalsResponse,
    SocialSecurityRowResponse,
)

router = APIRouter(prefix="/payroll-periods", tags=["payroll"])


# ============================================================================
# Period lifecycle
# ============================================================================


@router.get(
    "/{period_id}",
    response_model=PayrollPeriodResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_period(
    service: Payroll,
    period_id: Annotated[UUID, Path()],
) -> PayrollPeriodResponse:
    period = await service.get_period(period_id)
    return PayrollPeriodResponse.model_validate(period)


@router.post(
    "/{period_id}/calculate",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def calculate_payroll(
    service: Payroll,
    period_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """(Re)calculate every active employee's payroll line for the period."""
    result = await service.calculate_payroll(period_id)
    return PayrollRunResponse.model_validate(result)


@router.post(
    "/{period_id}/approve",
    response_model=PayrollPeriodResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def approve_period(
    service: Payroll,
    period_id: Annotated[UUID, Path()],
) -> PayrollPeriodResponse:
    period = await service.approve_period(period_id)
    return PayrollPeriodResponse.model_validate(period)


@router.post(
    "/{period_id}/pay",
    response_model=PayrollPeriodResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def mark_period_paid(
    service: Payroll,
    period_id: Annotated[UUID, Path()],
) -> PayrollPeriodResponse:
    period = await service.mark_period_paid(period_id)
    return PayrollPeriodResponse.model_validate(period)


# ============================================================================
# Lines and totals
# ============================================================================


@router.get(
    "/{period_id}/lines",
    response_model=list[PayrollLineResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_lines(
    service: Payroll,
    period_id: Annotated[UUID, Path()],
) -> list[PayrollLineResponse]:
    lines = await service.list_lines(period_id)
    return [PayrollLineResponse.model_validate(line) for line in lines]


@router.get(
    "/{period_id}/employees/{employee_id}/totals",
    response_model=PeriodTotalsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_period_totals(
    service: Payroll,
    period_id: Annotated[UUID, Path()],
    employee_id: Annotated[str, Path()],
) -> PeriodTotalsResponse:
    totals = await service.get_period_totals(employee_id, period_id)
    return PeriodTotalsResponse.model_validate(totals)


# ============================================================================
# Exports
# ============================================================================


@router.get(
    "/{period_id}/bank-transfer",
    response_model=list[BankTransferRowResponse],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def bank_transfer(
    exports: Exports,
    period_id: Annotated[UUID, Path()],
) -> list[BankTransferRowResponse]:
    rows = await exports.bank_transfer_rows(period_id)
    return [BankTransferRowResponse.model_validate(r) for r in rows]


@router.get(
    "/{period_id}/payslips",
    response_model=list[PayslipResponse],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def payslips(
    exports: Exports,
    period_id: Annotated[UUID, Path()],
) -> list[PayslipResponse]:
    slips = await exports.payslips(period_id)
    return [PayslipResponse.model_validate(s) for s in slips]


@router.get(
    "/{period_id}/social-security",
    response_model=list[SocialSecurityRowResponse],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def social_security(
    exports: Exports,
    period_id: Annotated[UUID, Path()],
) -> list[SocialSecurityRowResponse]:
    rows = await exports.social_security_contributions(period_id)
    return [SocialSecurityRowResponse.model_validate(r) for r in rows]
