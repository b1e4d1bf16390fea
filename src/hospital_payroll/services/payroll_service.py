"""Payroll service - main orchestrator for payroll period operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from hospital_payroll.calculators.attendance_deriver import derive_range
from hospital_payroll.calculators.payroll_calculator import PayrollCalculator
from hospital_payroll.calculators.period_aggregator import aggregate_period
from hospital_payroll.calculators.types import (
    AggregatedTotals,
    Employee,
    IntegrityWarning,
    PayrollLine,
    PayrollPeriod,
    PayrollPeriodStatus,
)
from hospital_payroll.exceptions import (
    MissingCompensationProfileError,
    PayrollCoreError,
    UnknownEmployeeError,
    UnknownPeriodError,
)
from hospital_payroll.policy import DEFAULT_POLICY, PayrollPolicy
from hospital_payroll.services.repository import PayrollRepository
from hospital_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollPeriodStateMachine,
)

logger = logging.getLogger(__name__)


@dataclass
class RunFailure:
    """An employee left out of a payroll run."""

    employee_id: str
    code: str
    message: str


@dataclass
class PayrollRunResult:
    """Outcome of calculating a payroll period."""

    period_id: UUID
    status: PayrollPeriodStatus
    lines: list[PayrollLine] = field(default_factory=list)
    failures: list[RunFailure] = field(default_factory=list)

    @property
    def warnings(self) -> list[IntegrityWarning]:
        return [w for line in self.lines for w in line.warnings]

    @property
    def total_gross(self) -> Decimal:
        return sum((line.gross for line in self.lines), Decimal("0"))

    @property
    def total_net(self) -> Decimal:
        return sum((line.net for line in self.lines), Decimal("0"))


class PayrollService:
    """Service for managing the payroll period lifecycle.

    Operations:
    - get_period_totals: Aggregate one employee's attendance over a period
    - calculate_payroll: (Re)compute every active employee's payroll line
    - approve_period: Freeze the calculated lines
    - mark_period_paid: Record that the approved period has been paid
    """

    def __init__(
        self,
        repository: PayrollRepository,
        policy: PayrollPolicy = DEFAULT_POLICY,
        engine_version: str = "1.0.0",
    ):
        self.repository = repository
        self.policy = policy
        self.calculator = PayrollCalculator(policy.compensation, engine_version)

    async def get_period(self, period_id: UUID) -> PayrollPeriod:
        period = await self.repository.get_period(period_id)
        if period is None:
            raise UnknownPeriodError(period_id)
        return period

    async def get_period_totals(self, employee_id: str, period_id: UUID) -> AggregatedTotals:
        period = await self.get_period(period_id)
        if await self.repository.get_employee(employee_id) is None:
            raise UnknownEmployeeError(employee_id)
        return await self._aggregate(employee_id, period)

    async def list_lines(self, period_id: UUID) -> list[PayrollLine]:
        await self.get_period(period_id)
        return await self.repository.list_payroll_lines(period_id)

    async def calculate_payroll(self, period_id: UUID) -> PayrollRunResult:
        """Calculate payroll for every active employee of a period.

        The period's lines are fully replaced: each employee's line is
        written in a single replacement, lines of employees that failed or
        are no longer active are removed. A failure for one employee never
        aborts the run.

        Raises InvalidTransitionError if the period is APPROVED or PAID.
        """
        period = await self.get_period(period_id)
        from_status = period.status
        self._validate(period, PayrollPeriodStatus.CALCULATED, line_count=0)

        result = PayrollRunResult(period_id=period_id, status=PayrollPeriodStatus.CALCULATED)
        employees = await self.repository.list_employees(active_only=True)

        for employee in employees:
            try:
                line = await self._calculate_employee(period, employee)
                await self.repository.replace_payroll_line(line)
                result.lines.append(line)
            except PayrollCoreError as e:
                logger.warning(
                    "Payroll for employee %s in period %s skipped: %s",
                    employee.employee_id,
                    period_id,
                    e,
                )
                await self._omit(result, period_id, employee.employee_id, e.code, str(e))
            except Exception as e:
                logger.exception(
                    "Payroll calculation failed for employee %s in period %s",
                    employee.employee_id,
                    period_id,
                )
                await self._omit(result, period_id, employee.employee_id, "CALCULATION_ERROR", str(e))

        active_ids = {e.employee_id for e in employees}
        for stale in await self.repository.list_payroll_lines(period_id):
            if stale.employee_id not in active_ids:
                await self.repository.delete_payroll_line(period_id, stale.employee_id)

        period.status = PayrollPeriodStatus.CALCULATED
        period.calculated_at = datetime.now(timezone.utc)
        await self._save(period, from_status, PayrollPeriodStatus.CALCULATED)

        logger.info(
            "Calculated period %s: %d line(s), %d failure(s)",
            period_id,
            len(result.lines),
            len(result.failures),
        )
        return result

    async def approve_period(self, period_id: UUID) -> PayrollPeriod:
        """Approve a calculated period. Requires at least one payroll line."""
        period = await self.get_period(period_id)
        lines = await self.repository.list_payroll_lines(period_id)
        from_status = period.status
        self._validate(period, PayrollPeriodStatus.APPROVED, line_count=len(lines))

        period.status = PayrollPeriodStatus.APPROVED
        period.approved_at = datetime.now(timezone.utc)
        await self._save(period, from_status, PayrollPeriodStatus.APPROVED)
        logger.info("Approved period %s with %d line(s)", period_id, len(lines))
        return period

    async def mark_period_paid(self, period_id: UUID) -> PayrollPeriod:
        period = await self.get_period(period_id)
        from_status = period.status
        self._validate(period, PayrollPeriodStatus.PAID, line_count=0)

        period.status = PayrollPeriodStatus.PAID
        period.paid_at = datetime.now(timezone.utc)
        await self._save(period, from_status, PayrollPeriodStatus.PAID)
        logger.info("Marked period %s as paid", period_id)
        return period

    async def _calculate_employee(self, period: PayrollPeriod, employee: Employee) -> PayrollLine:
        profile = await self.repository.get_compensation_profile(employee.employee_id)
        if profile is None:
            raise MissingCompensationProfileError(employee.employee_id)

        totals = await self._aggregate(employee.employee_id, period)
        loan = await self.repository.get_active_loan(employee.employee_id)
        return self.calculator.calculate(period.period_id, profile, totals, loan)

    async def _aggregate(self, employee_id: str, period: PayrollPeriod) -> AggregatedTotals:
        events = await self.repository.list_clock_events(
            employee_id, period.start_date, period.end_date
        )
        leaves = await self.repository.list_leaves(employee_id, period.start_date, period.end_date)
        records = derive_range(
            employee_id, period.start_date, period.end_date, events, leaves, self.policy.attendance
        )
        return aggregate_period(
            employee_id, period.start_date, period.end_date, records, self.policy.attendance
        )

    async def _omit(
        self, result: PayrollRunResult, period_id: UUID, employee_id: str, code: str, message: str
    ) -> None:
        result.failures.append(RunFailure(employee_id=employee_id, code=code, message=message))
        await self.repository.delete_payroll_line(period_id, employee_id)

    @staticmethod
    def _validate(period: PayrollPeriod, to_status: PayrollPeriodStatus, line_count: int) -> None:
        errors = PayrollPeriodStateMachine.validate_period_for_transition(
            period, to_status, line_count
        )
        if errors:
            raise InvalidTransitionError(period.status.value, to_status.value, "; ".join(errors))

    async def _save(
        self,
        period: PayrollPeriod,
        from_status: PayrollPeriodStatus,
        to_status: PayrollPeriodStatus,
    ) -> None:
        if not await self.repository.save_period(period, expected_status=from_status):
            raise InvalidTransitionError(
                from_status.value, to_status.value, "Status changed concurrently"
            )
