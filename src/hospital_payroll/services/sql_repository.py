"""SQLAlchemy implementation of the payroll repository.

The repository flushes but never commits: the unit of work belongs to the
caller (see the API session dependency).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hospital_payroll import models
from hospital_payroll.calculators.types import (
    ClockEvent,
    ClockEventKind,
    ClockEventSource,
    CompensationProfile,
    Employee,
    EmployeeLoan,
    EmploymentStatus,
    IntegrityWarning,
    InvoiceLine,
    InvoiceShare,
    LeaveInterval,
    LeaveStatus,
    LoanStatus,
    PayrollLine,
    PayrollPeriod,
    PayrollPeriodStatus,
    SharePaymentStatus,
    ShareTemplate,
    ShareType,
    ShiftType,
    Stakeholder,
    StakeholderRole,
    WarningCode,
)

logger = logging.getLogger(__name__)


class SqlRepository:
    """Repository backed by an AsyncSession."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # --- HR reference data ---

    async def get_employee(self, employee_id: str) -> Employee | None:
        row = await self.session.get(models.Employee, employee_id)
        return _employee(row) if row is not None else None

    async def list_employees(self, active_only: bool = True) -> list[Employee]:
        stmt = select(models.Employee).order_by(models.Employee.employee_id)
        if active_only:
            stmt = stmt.where(models.Employee.status == EmploymentStatus.ACTIVE.value)
        result = await self.session.execute(stmt)
        return [_employee(row) for row in result.scalars()]

    async def get_compensation_profile(self, employee_id: str) -> CompensationProfile | None:
        row = await self.session.get(models.CompensationProfile, employee_id)
        if row is None:
            return None
        return CompensationProfile(
            employee_id=row.employee_id,
            basic_salary=row.basic_salary,
            grade=row.grade,
            shift_type=ShiftType(row.shift_type),
            bank_name=row.bank_name,
            bank_account_number=row.bank_account_number,
        )

    async def get_active_loan(self, employee_id: str) -> EmployeeLoan | None:
        result = await self.session.execute(
            select(models.EmployeeLoan)
            .where(
                models.EmployeeLoan.employee_id == employee_id,
                models.EmployeeLoan.status == LoanStatus.ACTIVE.value,
            )
            .order_by(models.EmployeeLoan.created_at)
            .limit(1)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return EmployeeLoan(
            employee_id=row.employee_id,
            principal=row.principal,
            installment_amount=row.installment_amount,
            remaining_balance=row.remaining_balance,
            status=LoanStatus(row.status),
            loan_type=row.loan_type,
            loan_id=row.loan_id,
        )

    # --- Attendance ---

    async def list_clock_events(self, employee_id: str, start: date, end: date) -> list[ClockEvent]:
        result = await self.session.execute(
            select(models.ClockEvent)
            .where(
                models.ClockEvent.employee_id == employee_id,
                models.ClockEvent.work_date >= start,
                models.ClockEvent.work_date <= end,
            )
            .order_by(models.ClockEvent.work_date, models.ClockEvent.sequence_no)
        )
        return [_clock_event(row) for row in result.scalars()]

    async def latest_clock_event(self, employee_id: str, work_date: date) -> ClockEvent | None:
        result = await self.session.execute(
            select(models.ClockEvent)
            .where(
                models.ClockEvent.employee_id == employee_id,
                models.ClockEvent.work_date == work_date,
            )
            .order_by(models.ClockEvent.sequence_no.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _clock_event(row) if row is not None else None

    async def append_clock_event(self, event: ClockEvent) -> bool:
        """Insert the event under its (employee, date, sequence) key.

        A stale sequence number is refused up front; a concurrent writer
        that wins the race surfaces as a unique-constraint violation.
        """
        latest = await self.latest_clock_event(event.employee_id, event.work_date)
        expected = latest.sequence_no + 1 if latest else 1
        if event.sequence_no != expected:
            return False

        self.session.add(
            models.ClockEvent(
                event_id=event.event_id,
                employee_id=event.employee_id,
                work_date=event.work_date,
                event_time=event.event_time,
                kind=event.kind.value,
                source=event.source.value,
                sequence_no=event.sequence_no,
            )
        )
        try:
            await self.session.flush()
        except IntegrityError:
            logger.info(
                "Clock event sequence %d for %s on %s already taken",
                event.sequence_no,
                event.employee_id,
                event.work_date,
            )
            await self.session.rollback()
            return False
        return True

    async def list_leaves(self, employee_id: str, start: date, end: date) -> list[LeaveInterval]:
        result = await self.session.execute(
            select(models.LeaveRequest).where(
                models.LeaveRequest.employee_id == employee_id,
                models.LeaveRequest.start_date <= end,
                models.LeaveRequest.end_date >= start,
            )
        )
        return [
            LeaveInterval(
                employee_id=row.employee_id,
                start_date=row.start_date,
                end_date=row.end_date,
                leave_type=row.leave_type,
                status=LeaveStatus(row.status),
                leave_id=row.leave_id,
            )
            for row in result.scalars()
        ]

    # --- Payroll ---

    async def get_period(self, period_id: UUID) -> PayrollPeriod | None:
        row = await self.session.get(models.PayrollPeriod, period_id)
        if row is None:
            return None
        return PayrollPeriod(
            period_id=row.period_id,
            name=row.name,
            start_date=row.start_date,
            end_date=row.end_date,
            status=PayrollPeriodStatus(row.status),
            calculated_at=row.calculated_at,
            approved_at=row.approved_at,
            paid_at=row.paid_at,
        )

    async def save_period(self, period: PayrollPeriod, expected_status: PayrollPeriodStatus) -> bool:
        """Conditional update: applies only while the stored status is unchanged."""
        result = await self.session.execute(
            update(models.PayrollPeriod)
            .where(
                models.PayrollPeriod.period_id == period.period_id,
                models.PayrollPeriod.status == expected_status.value,
            )
            .values(
                status=period.status.value,
                calculated_at=period.calculated_at,
                approved_at=period.approved_at,
                paid_at=period.paid_at,
            )
        )
        return result.rowcount == 1

    async def list_payroll_lines(self, period_id: UUID) -> list[PayrollLine]:
        result = await self.session.execute(
            select(models.PayrollLine)
            .where(models.PayrollLine.period_id == period_id)
            .order_by(models.PayrollLine.employee_id)
        )
        return [_payroll_line(row) for row in result.scalars()]

    async def replace_payroll_line(self, line: PayrollLine) -> None:
        values = _payroll_line_values(line)
        result = await self.session.execute(
            select(models.PayrollLine).where(
                models.PayrollLine.period_id == line.period_id,
                models.PayrollLine.employee_id == line.employee_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            self.session.add(models.PayrollLine(**values))
        else:
            for key, value in values.items():
                setattr(row, key, value)
        await self.session.flush()

    async def delete_payroll_line(self, period_id: UUID, employee_id: str) -> None:
        await self.session.execute(
            delete(models.PayrollLine).where(
                models.PayrollLine.period_id == period_id,
                models.PayrollLine.employee_id == employee_id,
            )
        )

    # --- Revenue sharing ---

    async def get_invoice_line(self, invoice_line_id: UUID) -> InvoiceLine | None:
        row = await self.session.get(models.InvoiceLine, invoice_line_id)
        if row is None:
            return None
        return InvoiceLine(
            invoice_line_id=row.invoice_line_id,
            invoice_id=row.invoice_id,
            service_id=row.service_id,
            quantity=row.quantity,
            unit_price=row.unit_price,
            line_total=row.line_total,
        )

    async def list_share_templates(self, service_id: str) -> list[ShareTemplate]:
        result = await self.session.execute(
            select(models.ShareTemplate)
            .where(models.ShareTemplate.service_id == service_id)
            .order_by(models.ShareTemplate.display_order)
        )
        return [
            ShareTemplate(
                service_id=row.service_id,
                stakeholder_id=row.stakeholder_id,
                share_type=ShareType(row.share_type),
                share_value=row.share_value,
                display_order=row.display_order,
                template_id=row.template_id,
            )
            for row in result.scalars()
        ]

    async def list_stakeholders(self) -> dict[str, Stakeholder]:
        result = await self.session.execute(select(models.Stakeholder))
        return {
            row.stakeholder_id: Stakeholder(
                stakeholder_id=row.stakeholder_id,
                name=row.name,
                role=StakeholderRole(row.role),
                code=row.code,
                is_active=row.is_active,
            )
            for row in result.scalars()
        }

    async def list_shares_for_line(self, invoice_line_id: UUID) -> list[InvoiceShare]:
        result = await self.session.execute(
            select(models.InvoiceShare)
            .where(models.InvoiceShare.invoice_line_id == invoice_line_id)
            .order_by(models.InvoiceShare.created_at)
        )
        return [_invoice_share(row) for row in result.scalars()]

    async def add_shares(self, shares: Iterable[InvoiceShare]) -> bool:
        """Insert a line's shares; one share per (invoice line, template).

        A concurrent allocation of the same line surfaces as a
        unique-constraint violation and stores nothing.
        """
        shares = list(shares)
        for share in shares:
            self.session.add(
                models.InvoiceShare(
                    share_id=share.share_id,
                    invoice_id=share.invoice_id,
                    invoice_line_id=share.invoice_line_id,
                    stakeholder_id=share.stakeholder_id,
                    template_id=share.template_id,
                    share_type=share.share_type.value,
                    share_percentage=share.share_percentage,
                    share_amount=share.share_amount,
                    payment_status=share.payment_status.value,
                    amount_paid=share.amount_paid,
                    payment_date=share.payment_date,
                )
            )
        try:
            await self.session.flush()
        except IntegrityError:
            logger.info(
                "Invoice line %s already allocated by another request",
                shares[0].invoice_line_id if shares else None,
            )
            await self.session.rollback()
            return False
        return True

    async def get_share(self, share_id: UUID) -> InvoiceShare | None:
        row = await self.session.get(models.InvoiceShare, share_id)
        return _invoice_share(row) if row is not None else None

    async def save_share_payment(self, share: InvoiceShare, expected_amount_paid: Decimal) -> bool:
        """Conditional update of the payment columns only.

        Applies only while the stored amount paid is unchanged, so two
        payments read from the same state cannot both land.
        """
        result = await self.session.execute(
            update(models.InvoiceShare)
            .where(
                models.InvoiceShare.share_id == share.share_id,
                models.InvoiceShare.amount_paid == expected_amount_paid,
            )
            .values(
                payment_status=share.payment_status.value,
                amount_paid=share.amount_paid,
                payment_date=share.payment_date,
            )
        )
        return result.rowcount == 1


def _employee(row: models.Employee) -> Employee:
    return Employee(
        employee_id=row.employee_id,
        first_name=row.first_name,
        last_name=row.last_name,
        employee_number=row.employee_number,
        department=row.department,
        employment_status=EmploymentStatus(row.status),
        hire_date=row.hire_date,
    )


def _clock_event(row: models.ClockEvent) -> ClockEvent:
    return ClockEvent(
        employee_id=row.employee_id,
        work_date=row.work_date,
        event_time=row.event_time,
        kind=ClockEventKind(row.kind),
        source=ClockEventSource(row.source),
        sequence_no=row.sequence_no,
        event_id=row.event_id,
    )


def _payroll_line_values(line: PayrollLine) -> dict[str, Any]:
    return {
        "period_id": line.period_id,
        "employee_id": line.employee_id,
        "basic_salary": line.basic_salary,
        "housing_allowance": line.housing_allowance,
        "transport_allowance": line.transport_allowance,
        "meal_allowance": line.meal_allowance,
        "overtime_pay": line.overtime_pay,
        "night_shift_premium": line.night_shift_premium,
        "gross": line.gross,
        "social_security_employee": line.social_security_employee,
        "social_security_employer": line.social_security_employer,
        "income_tax": line.income_tax,
        "loan_repayment": line.loan_repayment,
        "absence_deduction": line.absence_deduction,
        "total_deductions": line.total_deductions,
        "net": line.net,
        "days_present": line.days_present,
        "days_absent": line.days_absent,
        "days_on_leave": line.days_on_leave,
        "overtime_hours": line.overtime_hours,
        "policy_version": line.policy_version,
        "calculation_hash": line.calculation_hash,
        "warnings_json": [
            {
                "code": w.code.value,
                "message": w.message,
                "employee_id": w.employee_id,
                "work_date": w.work_date.isoformat() if w.work_date else None,
            }
            for w in line.warnings
        ],
    }


def _payroll_line(row: models.PayrollLine) -> PayrollLine:
    return PayrollLine(
        period_id=row.period_id,
        employee_id=row.employee_id,
        basic_salary=row.basic_salary,
        housing_allowance=row.housing_allowance,
        transport_allowance=row.transport_allowance,
        meal_allowance=row.meal_allowance,
        overtime_pay=row.overtime_pay,
        night_shift_premium=row.night_shift_premium,
        gross=row.gross,
        social_security_employee=row.social_security_employee,
        social_security_employer=row.social_security_employer,
        income_tax=row.income_tax,
        loan_repayment=row.loan_repayment,
        absence_deduction=row.absence_deduction,
        total_deductions=row.total_deductions,
        net=row.net,
        days_present=row.days_present,
        days_absent=row.days_absent,
        days_on_leave=row.days_on_leave,
        overtime_hours=row.overtime_hours,
        policy_version=row.policy_version,
        calculation_hash=row.calculation_hash,
        warnings=tuple(
            IntegrityWarning(
                code=WarningCode(w["code"]),
                message=w["message"],
                employee_id=w.get("employee_id"),
                work_date=date.fromisoformat(w["work_date"]) if w.get("work_date") else None,
            )
            for w in row.warnings_json
        ),
    )


def _invoice_share(row: models.InvoiceShare) -> InvoiceShare:
    return InvoiceShare(
        invoice_id=row.invoice_id,
        invoice_line_id=row.invoice_line_id,
        stakeholder_id=row.stakeholder_id,
        share_type=ShareType(row.share_type),
        share_amount=row.share_amount,
        share_percentage=row.share_percentage,
        payment_status=SharePaymentStatus(row.payment_status),
        amount_paid=row.amount_paid,
        payment_date=row.payment_date,
        template_id=row.template_id,
        share_id=row.share_id,
    )
