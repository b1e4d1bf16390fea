"""Tests for the payroll calculator."""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from hospital_payroll.calculators.payroll_calculator import PayrollCalculator
from hospital_payroll.calculators.rounding import round_hours, round_money
from hospital_payroll.calculators.types import (
    AggregatedTotals,
    CompensationProfile,
    EmployeeLoan,
    LoanStatus,
    ShiftType,
    WarningCode,
)
from hospital_payroll.exceptions import DataIntegrityError
from hospital_payroll.policy import CompensationPolicy

EMP = "EMP-001"
PERIOD_ID = uuid4()


def totals(days_present=22, days_absent=0, overtime_hours="0") -> AggregatedTotals:
    return AggregatedTotals(
        employee_id=EMP,
        period_start=date(2026, 3, 1),
        period_end=date(2026, 3, 22),
        total_days=days_present + days_absent,
        days_present=days_present,
        days_absent=days_absent,
        overtime_hours=Decimal(overtime_hours),
    )


def profile(basic="2000000", shift_type=ShiftType.DAY) -> CompensationProfile:
    return CompensationProfile(
        employee_id=EMP,
        basic_salary=Decimal(basic) if basic is not None else None,
        shift_type=shift_type,
    )


@pytest.fixture
def calculator() -> PayrollCalculator:
    return PayrollCalculator()


class TestRounding:
    def test_round_money_half_up(self):
        assert round_money(Decimal("81545.46")) == Decimal("81545")
        assert round_money(Decimal("68181.5")) == Decimal("68182")
        assert round_money(Decimal("0.5")) == Decimal("1")

    def test_round_hours_half_up(self):
        assert round_hours(Decimal("8.335")) == Decimal("8.34")
        assert round_hours(Decimal("8.3333")) == Decimal("8.33")


class TestPayrollCalculator:
    """Test the pay formula."""

    def test_reference_fixture(self, calculator):
        """Basic 2,000,000, 22 present, 0 absent, 4 OT hours, day shift, no loan."""
        line = calculator.calculate(PERIOD_ID, profile(), totals(overtime_hours="4"))

        assert line.basic_salary == Decimal("2000000")
        assert line.housing_allowance == Decimal("400000")
        assert line.transport_allowance == Decimal("150000")
        assert line.meal_allowance == Decimal("100000")
        assert line.overtime_pay == Decimal("68182")
        assert line.night_shift_premium == Decimal("0")
        assert line.gross == Decimal("2718182")
        assert line.social_security_employee == Decimal("100000")
        assert line.social_security_employer == Decimal("240000")
        assert line.income_tax == Decimal("81545")
        assert line.loan_repayment == Decimal("0")
        assert line.absence_deduction == Decimal("0")
        assert line.total_deductions == Decimal("181545")
        assert line.net == Decimal("2536637")
        assert line.days_present == 22
        assert line.overtime_hours == Decimal("4")
        assert line.policy_version == CompensationPolicy().version
        assert line.warnings == ()

    def test_employer_contribution_not_deducted(self, calculator):
        line = calculator.calculate(PERIOD_ID, profile(), totals())

        assert line.total_deductions == (
            line.social_security_employee
            + line.income_tax
            + line.loan_repayment
            + line.absence_deduction
        )
        assert line.net == line.gross - line.total_deductions

    def test_night_shift_premium(self, calculator):
        line = calculator.calculate(PERIOD_ID, profile(shift_type=ShiftType.NIGHT), totals())

        assert line.night_shift_premium == Decimal("300000")
        assert line.gross == Decimal("2950000")
        assert line.income_tax == Decimal("88500")
        assert line.net == Decimal("2761500")

    def test_absence_deduction_is_linear_in_days(self, calculator):
        """Daily rate times days, rounded once: 2,000,000 / 30 * 2 = 133,333.33."""
        one = calculator.calculate(PERIOD_ID, profile(), totals(21, 1))
        two = calculator.calculate(PERIOD_ID, profile(), totals(20, 2))
        three = calculator.calculate(PERIOD_ID, profile(), totals(19, 3))

        assert one.absence_deduction == Decimal("66667")
        assert two.absence_deduction == Decimal("133333")
        assert three.absence_deduction == Decimal("200000")
        assert two.net == Decimal("2337167")

    def test_active_loan_installment_deducted(self, calculator):
        loan = EmployeeLoan(
            employee_id=EMP,
            principal=Decimal("3000000"),
            installment_amount=Decimal("250000"),
            remaining_balance=Decimal("1500000"),
        )

        line = calculator.calculate(PERIOD_ID, profile(), totals(), loan)

        assert line.loan_repayment == Decimal("250000")
        assert line.total_deductions == Decimal("100000") + Decimal("79500") + Decimal("250000")

    @pytest.mark.parametrize(
        "status", [LoanStatus.PENDING_APPROVAL, LoanStatus.PAID_OFF, LoanStatus.CANCELLED]
    )
    def test_inactive_loan_ignored(self, calculator, status):
        loan = EmployeeLoan(EMP, Decimal("1000"), Decimal("500"), Decimal("500"), status=status)

        assert calculator.calculate(PERIOD_ID, profile(), totals(), loan).loan_repayment == 0

    def test_loan_of_another_employee_rejected(self, calculator):
        loan = EmployeeLoan("EMP-999", Decimal("1000"), Decimal("500"), Decimal("500"))

        with pytest.raises(DataIntegrityError):
            calculator.calculate(PERIOD_ID, profile(), totals(), loan)

    def test_totals_of_another_employee_rejected(self, calculator):
        with pytest.raises(DataIntegrityError):
            calculator.calculate(PERIOD_ID, profile(), replace(totals(), employee_id="EMP-999"))

    def test_missing_basic_salary_falls_back_to_default(self, calculator):
        line = calculator.calculate(PERIOD_ID, profile(basic=None), totals())

        assert line.basic_salary == Decimal("1000000")
        assert line.gross == Decimal("1450000")
        assert line.net == Decimal("1356500")
        assert [w.code for w in line.warnings] == [WarningCode.MISSING_BASIC_SALARY]

    def test_zero_basic_salary_is_paid_as_zero(self, calculator):
        line = calculator.calculate(PERIOD_ID, profile(basic="0"), totals(overtime_hours="4"))

        assert line.basic_salary == Decimal("0")
        assert line.housing_allowance == Decimal("0")
        assert line.overtime_pay == Decimal("0")
        # Fixed allowances only: 150,000 transport + 100,000 meal, 3% tax
        assert line.gross == Decimal("250000")
        assert line.net == Decimal("242500")
        assert line.warnings == ()

    def test_negative_basic_salary_rejected(self, calculator):
        with pytest.raises(DataIntegrityError, match="negative"):
            calculator.calculate(PERIOD_ID, profile(basic="-1"), totals())

    def test_policy_rates_are_configurable(self):
        policy = CompensationPolicy(version="test-1", income_tax_rate=Decimal("0.10"))
        line = PayrollCalculator(policy).calculate(PERIOD_ID, profile(), totals())

        assert line.income_tax == Decimal("265000")
        assert line.policy_version == "test-1"


class TestCalculationHash:
    """Test deterministic line hashing."""

    def test_identical_inputs_identical_lines(self, calculator):
        first = calculator.calculate(PERIOD_ID, profile(), totals(overtime_hours="4"))
        second = calculator.calculate(PERIOD_ID, profile(), totals(overtime_hours="4"))

        assert first == second
        assert len(first.calculation_hash) == 32

    def test_hash_changes_with_inputs(self, calculator):
        base = calculator.calculate(PERIOD_ID, profile(), totals())
        more_ot = calculator.calculate(PERIOD_ID, profile(), totals(overtime_hours="1"))

        assert base.calculation_hash != more_ot.calculation_hash

    def test_hash_includes_engine_version(self):
        a = PayrollCalculator(engine_version="1.0.0").calculate(PERIOD_ID, profile(), totals())
        b = PayrollCalculator(engine_version="1.1.0").calculate(PERIOD_ID, profile(), totals())

        assert a.net == b.net
        assert a.calculation_hash != b.calculation_hash
