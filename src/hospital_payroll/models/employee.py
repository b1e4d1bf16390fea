"""Employee reference models: employee, compensation profile and loans.

These rows are owned by HR; the payroll core only reads them.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hospital_payroll.models.base import Base, TimestampMixin


class Employee(Base, TimestampMixin):
    """Employee record."""

    __tablename__ = "employee"

    employee_id: Mapped[str] = mapped_column(String, primary_key=True)
    employee_number: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    department: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="ACTIVE")
    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('ACTIVE', 'ON_LEAVE', 'SUSPENDED', 'TERMINATED')",
            name="employee_status_check",
        ),
    )

    # Relationships
    compensation_profile: Mapped[CompensationProfile | None] = relationship(
        back_populates="employee"
    )
    loans: Mapped[list[EmployeeLoan]] = relationship(back_populates="employee")


class CompensationProfile(Base, TimestampMixin):
    """Salary and bank details of an employee. basic_salary may be missing."""

    __tablename__ = "compensation_profile"

    employee_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        primary_key=True,
    )
    basic_salary: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    grade: Mapped[str | None] = mapped_column(String, nullable=True)
    shift_type: Mapped[str] = mapped_column(String, nullable=False, default="DAY")
    bank_name: Mapped[str | None] = mapped_column(String, nullable=True)
    bank_account_number: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("shift_type IN ('DAY', 'NIGHT')", name="compensation_shift_check"),
        CheckConstraint(
            "basic_salary IS NULL OR basic_salary >= 0",
            name="compensation_basic_nonneg",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="compensation_profile")


class EmployeeLoan(Base, TimestampMixin):
    """Employee loan repaid by payroll installments."""

    __tablename__ = "employee_loan"

    loan_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    loan_type: Mapped[str] = mapped_column(String, nullable=False, default="PERSONAL")
    principal: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    installment_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    remaining_balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="ACTIVE")

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING_APPROVAL', 'ACTIVE', 'PAID_OFF', 'CANCELLED')",
            name="employee_loan_status_check",
        ),
        CheckConstraint("installment_amount >= 0", name="employee_loan_installment_nonneg"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="loans")
