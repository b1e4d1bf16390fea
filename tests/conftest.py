"""Pytest fixtures for hospital payroll tests."""

from __future__ import annotations

from datetime import date, time, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from hospital_payroll.calculators.types import (
    ClockEvent,
    ClockEventKind,
    CompensationProfile,
    Employee,
    InvoiceLine,
    PayrollPeriod,
    ShareTemplate,
    ShareType,
    Stakeholder,
    StakeholderRole,
)
from hospital_payroll.policy import AttendancePolicy, CompensationPolicy
from hospital_payroll.services.repository import InMemoryRepository

# 22 consecutive calendar days, all worked in the standard fixture
PERIOD_START = date(2026, 3, 1)
PERIOD_END = date(2026, 3, 22)


def shift(
    employee_id: str,
    work_date: date,
    check_in: time | None = time(8, 30),
    check_out: time | None = time(16, 30),
) -> list[ClockEvent]:
    """Clock events of one worked day."""
    events = []
    if check_in is not None:
        events.append(ClockEvent(employee_id, work_date, check_in, ClockEventKind.CHECK_IN))
    if check_out is not None:
        events.append(ClockEvent(employee_id, work_date, check_out, ClockEventKind.CHECK_OUT))
    return events


def days(start: date, end: date) -> list[date]:
    return [start + timedelta(days=n) for n in range((end - start).days + 1)]


@pytest.fixture
def attendance_policy() -> AttendancePolicy:
    return AttendancePolicy()


@pytest.fixture
def compensation_policy() -> CompensationPolicy:
    return CompensationPolicy()


@pytest.fixture
def nurse() -> Employee:
    return Employee(
        employee_id="EMP-001",
        first_name="Layla",
        last_name="Hassan",
        employee_number="N-1001",
        department="Nursing",
    )


@pytest.fixture
def nurse_profile() -> CompensationProfile:
    return CompensationProfile(
        employee_id="EMP-001",
        basic_salary=Decimal("2000000"),
        grade="G5",
        bank_name="Rafidain Bank",
        bank_account_number="IQ12RAFI0000001",
    )


@pytest.fixture
def period() -> PayrollPeriod:
    return PayrollPeriod(
        period_id=uuid4(),
        name="March 2026 (1-22)",
        start_date=PERIOD_START,
        end_date=PERIOD_END,
    )


@pytest.fixture
def repo(nurse: Employee, nurse_profile: CompensationProfile, period: PayrollPeriod) -> InMemoryRepository:
    """Repository with one nurse who worked every day of the period.

    One day runs four hours past the shift end, giving the standard
    fixture: 22 days present, 0 absent, 4 overtime hours.
    """
    repository = InMemoryRepository()
    repository.add_employee(nurse, nurse_profile)
    repository.add_period(period)
    for d in days(PERIOD_START, PERIOD_END):
        out = time(20, 30) if d == date(2026, 3, 10) else time(16, 30)
        repository.add_clock_events(*shift(nurse.employee_id, d, check_out=out))
    return repository


# ===== Revenue sharing =====


@pytest.fixture
def stakeholders() -> dict[str, Stakeholder]:
    return {
        "HOSP": Stakeholder("HOSP", "Al-Noor Hospital", StakeholderRole.HOSPITAL, code="HOSP"),
        "DR-7": Stakeholder("DR-7", "Dr. Karim Saleh", StakeholderRole.DOCTOR, code="DR7"),
        "AN-2": Stakeholder("AN-2", "Dr. Rana Aziz", StakeholderRole.ANESTHESIOLOGIST, code="AN2"),
    }


@pytest.fixture
def surgery_templates() -> list[ShareTemplate]:
    return [
        ShareTemplate("SURG-APPX", "DR-7", ShareType.PERCENTAGE, Decimal("40"), display_order=1),
        ShareTemplate("SURG-APPX", "AN-2", ShareType.FIXED_AMOUNT, Decimal("150000"), display_order=2),
        ShareTemplate("SURG-APPX", "HOSP", ShareType.PERCENTAGE, Decimal("35"), display_order=3),
    ]


@pytest.fixture
def surgery_line() -> InvoiceLine:
    return InvoiceLine(
        invoice_line_id=uuid4(),
        invoice_id=uuid4(),
        service_id="SURG-APPX",
        quantity=1,
        unit_price=Decimal("1000000"),
        line_total=Decimal("1000000"),
    )
