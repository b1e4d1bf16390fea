"""Pydantic schemas for API request/response models."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from hospital_payroll.calculators.types import (
    AttendanceExceptionType,
    AttendanceStatus,
    ClockEventKind,
    ClockEventSource,
    PayrollPeriodStatus,
    SharePaymentStatus,
    ShareType,
    WarningCode,
)


class WarningResponse(BaseModel):
    """Data-integrity warning."""

    model_config = ConfigDict(from_attributes=True)

    code: WarningCode
    message: str
    employee_id: str | None = None
    work_date: date | None = None


# ============================================================================
# Attendance schemas
# ============================================================================


class DailyAttendanceResponse(BaseModel):
    """Derived attendance of one employee on one date."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    work_date: date
    status: AttendanceStatus
    first_in: time | None = None
    last_out: time | None = None
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    late_minutes: int
    is_late: bool
    early_departure_minutes: int
    is_early_departure: bool
    leave_type: str | None = None
    needs_review: bool
    warnings: list[WarningResponse]


class ClockEventRequest(BaseModel):
    """Schema for recording a check-in or check-out."""

    employee_id: str
    kind: ClockEventKind
    at: datetime | None = None
    source: ClockEventSource = ClockEventSource.BIOMETRIC


class ClockEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event_id: UUID
    employee_id: str
    work_date: date
    event_time: time
    kind: ClockEventKind
    source: ClockEventSource
    sequence_no: int


class AttendanceExceptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    work_date: date
    exception_type: AttendanceExceptionType
    details: str


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollPeriodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period_id: UUID
    name: str
    start_date: date
    end_date: date
    status: PayrollPeriodStatus
    calculated_at: datetime | None = None
    approved_at: datetime | None = None
    paid_at: datetime | None = None


class PeriodTotalsResponse(BaseModel):
    """Attendance totals of one employee over a payroll period."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    period_start: date
    period_end: date
    total_days: int
    days_present: int
    days_absent: int
    days_on_leave: int
    regular_hours: Decimal
    overtime_hours: Decimal
    late_count: int
    early_departure_count: int


class PayrollLineResponse(BaseModel):
    """Schema for a computed payroll line."""

    model_config = ConfigDict(from_attributes=True)

    period_id: UUID
    employee_id: str
    basic_salary: Decimal
    housing_allowance: Decimal
    transport_allowance: Decimal
    meal_allowance: Decimal
    overtime_pay: Decimal
    night_shift_premium: Decimal
    gross: Decimal
    social_security_employee: Decimal
    social_security_employer: Decimal
    income_tax: Decimal
    loan_repayment: Decimal
    absence_deduction: Decimal
    total_deductions: Decimal
    net: Decimal
    days_present: int
    days_absent: int
    days_on_leave: int
    overtime_hours: Decimal
    policy_version: str
    calculation_hash: str
    warnings: list[WarningResponse]


class RunFailureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    code: str
    message: str


class PayrollRunResponse(BaseModel):
    """Schema for a payroll calculation run."""

    model_config = ConfigDict(from_attributes=True)

    period_id: UUID
    status: PayrollPeriodStatus
    lines: list[PayrollLineResponse]
    failures: list[RunFailureResponse]
    total_gross: Decimal
    total_net: Decimal


class BankTransferRowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    employee_name: str
    bank_name: str | None = None
    account_number: str | None = None
    amount: Decimal


class PayslipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period_name: str
    employee_id: str
    employee_name: str
    employee_number: str | None = None
    department: str | None = None
    line: PayrollLineResponse


class SocialSecurityRowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    employee_name: str
    basic_salary: Decimal
    employee_contribution: Decimal
    employer_contribution: Decimal
    total_contribution: Decimal


class EndOfServiceRowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    employee_name: str
    employee_number: str | None = None
    department: str | None = None
    hire_date: date
    years_of_service: Decimal
    basic_salary: Decimal
    provision_amount: Decimal


# ============================================================================
# Revenue share schemas
# ============================================================================


class InvoiceShareResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    share_id: UUID
    invoice_id: UUID
    invoice_line_id: UUID
    stakeholder_id: str
    share_type: ShareType
    share_percentage: Decimal | None = None
    share_amount: Decimal
    payment_status: SharePaymentStatus
    amount_paid: Decimal
    payment_date: date | None = None


class AllocationResponse(BaseModel):
    """Schema for the allocation of one invoice line."""

    model_config = ConfigDict(from_attributes=True)

    invoice_line_id: UUID
    line_total: Decimal
    shares: list[InvoiceShareResponse]
    total_allocated: Decimal
    residual: Decimal
    over_allocated: bool
    warnings: list[WarningResponse]


class SharePaymentRequest(BaseModel):
    amount: Decimal
    paid_on: date


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
