"""Payroll calculator - the single canonical pay formula."""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import replace
from decimal import Decimal
from uuid import UUID

from hospital_payroll.calculators.rounding import round_money
from hospital_payroll.calculators.types import (
    AggregatedTotals,
    CompensationProfile,
    EmployeeLoan,
    IntegrityWarning,
    PayrollLine,
    ShiftType,
    WarningCode,
)
from hospital_payroll.exceptions import DataIntegrityError
from hospital_payroll.policy import CompensationPolicy

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class PayrollCalculator:
    """Turns period totals and a compensation profile into a payroll line.

    Calculation pipeline (stable order, every monetary step rounded to a
    whole currency unit before the next step uses it):
    1) Housing allowance = basic * housing rate
    2) Transport and meal allowances (fixed)
    3) Overtime pay = (basic / monthly hours) * multiplier * overtime hours
    4) Night-shift premium = basic * night rate (NIGHT shift only)
    5) Gross
    6) Social security (employee, and employer which is tracked only)
    7) Income tax = gross * tax rate
    8) Loan repayment = active loan installment
    9) Absence deduction = (basic / days per month) * days absent
    10) Total deductions, then net = gross - total deductions
    """

    def __init__(self, policy: CompensationPolicy | None = None, engine_version: str = "1.0.0"):
        self.policy = policy or CompensationPolicy()
        self.engine_version = engine_version

    def calculate(
        self,
        period_id: UUID,
        profile: CompensationProfile,
        totals: AggregatedTotals,
        loan: EmployeeLoan | None = None,
    ) -> PayrollLine:
        """Calculate one employee's payroll line for a period."""
        if totals.employee_id != profile.employee_id:
            raise DataIntegrityError(
                f"Totals for {totals.employee_id} cannot be paired with profile "
                f"of {profile.employee_id}",
                employee_id=profile.employee_id,
            )

        p = self.policy
        warnings: list[IntegrityWarning] = []

        basic = self._resolve_basic_salary(profile, warnings)

        housing = round_money(basic * p.housing_allowance_rate)
        transport = round_money(p.transport_allowance)
        meal = round_money(p.meal_allowance)
        overtime_pay = round_money(
            (basic / p.standard_monthly_hours) * p.overtime_multiplier * totals.overtime_hours
        )
        night_premium = (
            round_money(basic * p.night_shift_premium_rate)
            if profile.shift_type == ShiftType.NIGHT
            else ZERO
        )
        gross = basic + housing + transport + meal + overtime_pay + night_premium

        ss_employee = round_money(basic * p.social_security_employee_rate)
        ss_employer = round_money(basic * p.social_security_employer_rate)
        income_tax = round_money(gross * p.income_tax_rate)
        loan_repayment = self._loan_installment(profile, loan)
        absence_deduction = round_money((basic / p.days_per_month) * totals.days_absent)

        total_deductions = ss_employee + income_tax + loan_repayment + absence_deduction
        # Net only after every deduction component is final
        net = gross - total_deductions

        line = PayrollLine(
            period_id=period_id,
            employee_id=profile.employee_id,
            basic_salary=basic,
            housing_allowance=housing,
            transport_allowance=transport,
            meal_allowance=meal,
            overtime_pay=overtime_pay,
            night_shift_premium=night_premium,
            gross=gross,
            social_security_employee=ss_employee,
            social_security_employer=ss_employer,
            income_tax=income_tax,
            loan_repayment=loan_repayment,
            absence_deduction=absence_deduction,
            total_deductions=total_deductions,
            net=net,
            days_present=totals.days_present,
            days_absent=totals.days_absent,
            days_on_leave=totals.days_on_leave,
            overtime_hours=totals.overtime_hours,
            policy_version=p.version,
            warnings=tuple(warnings),
        )
        return replace(line, calculation_hash=self.compute_line_hash(line))

    def compute_line_hash(self, line: PayrollLine) -> str:
        """Deterministic hash of a line's defining fields and the engine version.

        Identical inputs produce identical hashes, so repeated runs over
        unchanged data can be compared cheaply.
        """
        data = line.to_canonical_dict()
        data["engine_version"] = self.engine_version
        json_str = json.dumps(data, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    def _resolve_basic_salary(
        self, profile: CompensationProfile, warnings: list[IntegrityWarning]
    ) -> Decimal:
        if profile.basic_salary is not None:
            if profile.basic_salary < 0:
                raise DataIntegrityError(
                    f"Basic salary {profile.basic_salary} is negative",
                    employee_id=profile.employee_id,
                )
            return round_money(profile.basic_salary)

        fallback = round_money(self.policy.default_basic_salary)
        message = f"Basic salary missing; default {fallback} {self.policy.currency} applied"
        logger.warning("Employee %s: %s", profile.employee_id, message)
        warnings.append(
            IntegrityWarning(
                code=WarningCode.MISSING_BASIC_SALARY,
                message=message,
                employee_id=profile.employee_id,
            )
        )
        return fallback

    @staticmethod
    def _loan_installment(profile: CompensationProfile, loan: EmployeeLoan | None) -> Decimal:
        if loan is None or not loan.is_active:
            return ZERO
        if loan.employee_id != profile.employee_id:
            raise DataIntegrityError(
                f"Loan {loan.loan_id} belongs to {loan.employee_id}, not {profile.employee_id}",
                employee_id=profile.employee_id,
            )
        return round_money(loan.installment_amount)
