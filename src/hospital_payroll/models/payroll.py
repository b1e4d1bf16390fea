"""Payroll period and payroll line models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hospital_payroll.models.base import Base, TimestampMixin


class PayrollPeriod(Base, TimestampMixin):
    """Payroll period. Status moves DRAFT -> CALCULATED -> APPROVED -> PAID."""

    __tablename__ = "payroll_period"

    period_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT")
    calculated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('DRAFT', 'CALCULATED', 'APPROVED', 'PAID')",
            name="payroll_period_status_check",
        ),
        CheckConstraint("end_date >= start_date", name="payroll_period_dates_check"),
    )

    # Relationships
    lines: Mapped[list[PayrollLine]] = relationship(back_populates="period")


class PayrollLine(Base, TimestampMixin):
    """Computed pay of one employee for one period.

    Replaced as a single row on recalculation; the (period, employee) key
    allows at most one line per employee.
    """

    __tablename__ = "payroll_line"

    line_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_period.period_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Earnings
    basic_salary: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    housing_allowance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    transport_allowance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    meal_allowance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    night_shift_premium: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    gross: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # Deductions
    social_security_employee: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    social_security_employer: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    income_tax: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    loan_repayment: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    absence_deduction: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    net: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # Attendance snapshot
    days_present: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    days_absent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    days_on_leave: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=0)

    policy_version: Mapped[str] = mapped_column(String, nullable=False)
    calculation_hash: Mapped[str] = mapped_column(String, nullable=False)
    warnings_json: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        UniqueConstraint("period_id", "employee_id", name="payroll_line_period_employee_unique"),
    )

    # Relationships
    period: Mapped[PayrollPeriod] = relationship(back_populates="lines")
