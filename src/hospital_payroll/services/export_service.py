"""Export service - payroll exports and end-of-service provisions.

Period exports (bank transfer rows, payslips, social security contributions)
only read finalized payroll: the period must be APPROVED or PAID.
Rendering (CSV, PDF) is left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from hospital_payroll.calculators.end_of_service import (
    compute_end_of_service_provision,
    round_years,
    years_of_service,
)
from hospital_payroll.calculators.rounding import round_money
from hospital_payroll.calculators.types import PayrollLine, PayrollPeriod
from hospital_payroll.exceptions import UnknownPeriodError
from hospital_payroll.policy import DEFAULT_POLICY, CompensationPolicy
from hospital_payroll.services.repository import PayrollRepository
from hospital_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollPeriodStateMachine,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BankTransferRow:
    employee_id: str
    employee_name: str
    bank_name: str | None
    account_number: str | None
    amount: Decimal


@dataclass(frozen=True)
class Payslip:
    period_name: str
    employee_id: str
    employee_name: str
    employee_number: str | None
    department: str | None
    line: PayrollLine


@dataclass(frozen=True)
class SocialSecurityRow:
    employee_id: str
    employee_name: str
    basic_salary: Decimal
    employee_contribution: Decimal
    employer_contribution: Decimal

    @property
    def total_contribution(self) -> Decimal:
        return self.employee_contribution + self.employer_contribution


@dataclass(frozen=True)
class EndOfServiceRow:
    employee_id: str
    employee_name: str
    employee_number: str | None
    department: str | None
    hire_date: date
    years_of_service: Decimal
    basic_salary: Decimal
    provision_amount: Decimal


class ExportService:
    """Builds export rows from finalized payroll, and end-of-service provisions."""

    def __init__(
        self,
        repository: PayrollRepository,
        policy: CompensationPolicy = DEFAULT_POLICY.compensation,
    ):
        self.repository = repository
        self.policy = policy

    async def bank_transfer_rows(self, period_id: UUID) -> list[BankTransferRow]:
        _, lines = await self._final_lines(period_id, "bank transfer")
        rows = []
        for line in lines:
            profile = await self.repository.get_compensation_profile(line.employee_id)
            rows.append(
                BankTransferRow(
                    employee_id=line.employee_id,
                    employee_name=await self._name(line.employee_id),
                    bank_name=profile.bank_name if profile else None,
                    account_number=profile.bank_account_number if profile else None,
                    amount=line.net,
                )
            )
        return rows

    async def payslips(self, period_id: UUID) -> list[Payslip]:
        period, lines = await self._final_lines(period_id, "payslips")
        slips = []
        for line in lines:
            employee = await self.repository.get_employee(line.employee_id)
            slips.append(
                Payslip(
                    period_name=period.name,
                    employee_id=line.employee_id,
                    employee_name=employee.full_name if employee else line.employee_id,
                    employee_number=employee.employee_number if employee else None,
                    department=employee.department if employee else None,
                    line=line,
                )
            )
        return slips

    async def social_security_contributions(self, period_id: UUID) -> list[SocialSecurityRow]:
        _, lines = await self._final_lines(period_id, "social security report")
        return [
            SocialSecurityRow(
                employee_id=line.employee_id,
                employee_name=await self._name(line.employee_id),
                basic_salary=line.basic_salary,
                employee_contribution=line.social_security_employee,
                employer_contribution=line.social_security_employer,
            )
            for line in lines
        ]

    async def end_of_service_provisions(
        self, as_of: date, department: str | None = None
    ) -> list[EndOfServiceRow]:
        """End-of-service provisions of active employees at as_of, largest first.

        Employees without a hire date are left out (and logged). A missing
        basic salary falls back to the policy default like a payroll run does.
        """
        rows = []
        for employee in await self.repository.list_employees(active_only=True):
            if department is not None and employee.department != department:
                continue
            if employee.hire_date is None:
                logger.warning(
                    "Employee %s has no hire date; end-of-service provision skipped",
                    employee.employee_id,
                )
                continue

            profile = await self.repository.get_compensation_profile(employee.employee_id)
            basic = profile.basic_salary if profile is not None else None
            if basic is None:
                basic = self.policy.default_basic_salary
                logger.warning(
                    "Employee %s: basic salary missing; default %s used for end-of-service",
                    employee.employee_id,
                    basic,
                )

            rows.append(
                EndOfServiceRow(
                    employee_id=employee.employee_id,
                    employee_name=employee.full_name,
                    employee_number=employee.employee_number,
                    department=employee.department,
                    hire_date=employee.hire_date,
                    years_of_service=round_years(years_of_service(employee.hire_date, as_of)),
                    basic_salary=round_money(basic),
                    provision_amount=compute_end_of_service_provision(
                        basic, employee.hire_date, as_of, self.policy
                    ),
                )
            )
        rows.sort(key=lambda r: (-r.provision_amount, r.employee_id))
        return rows

    async def _final_lines(
        self, period_id: UUID, export: str
    ) -> tuple[PayrollPeriod, list[PayrollLine]]:
        period = await self.repository.get_period(period_id)
        if period is None:
            raise UnknownPeriodError(period_id)
        if not PayrollPeriodStateMachine.are_results_final(period.status):
            raise InvalidTransitionError(
                period.status.value,
                "EXPORT",
                f"{export} is only available for APPROVED or PAID periods",
            )
        return period, await self.repository.list_payroll_lines(period_id)

    async def _name(self, employee_id: str) -> str:
        employee = await self.repository.get_employee(employee_id)
        return employee.full_name if employee else employee_id
