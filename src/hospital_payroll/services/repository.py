"""Repository interface of the payroll core, and an in-memory implementation.

Services never reach for global state: each one receives a repository in
its constructor. ``InMemoryRepository`` backs the tests and demos;
``SqlRepository`` (see sql_repository.py) backs the deployed API.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from hospital_payroll.calculators.types import (
    ClockEvent,
    CompensationProfile,
    Employee,
    EmployeeLoan,
    InvoiceLine,
    InvoiceShare,
    LeaveInterval,
    PayrollLine,
    PayrollPeriod,
    PayrollPeriodStatus,
    ShareTemplate,
    Stakeholder,
)


class PayrollRepository(Protocol):
    """Storage operations the payroll services depend on."""

    # --- HR reference data ---

    async def get_employee(self, employee_id: str) -> Employee | None: ...

    async def list_employees(self, active_only: bool = True) -> list[Employee]: ...

    async def get_compensation_profile(self, employee_id: str) -> CompensationProfile | None: ...

    async def get_active_loan(self, employee_id: str) -> EmployeeLoan | None: ...

    # --- Attendance ---

    async def list_clock_events(
        self, employee_id: str, start: date, end: date
    ) -> list[ClockEvent]: ...

    async def latest_clock_event(self, employee_id: str, work_date: date) -> ClockEvent | None: ...

    async def append_clock_event(self, event: ClockEvent) -> bool:
        """Append only if event.sequence_no is the next number for its day.

        Returns False when another event claimed that sequence number first.
        """
        ...

    async def list_leaves(self, employee_id: str, start: date, end: date) -> list[LeaveInterval]: ...

    # --- Payroll ---

    async def get_period(self, period_id: UUID) -> PayrollPeriod | None: ...

    async def save_period(
        self, period: PayrollPeriod, expected_status: PayrollPeriodStatus
    ) -> bool:
        """Persist a period if its stored status still equals expected_status."""
        ...

    async def list_payroll_lines(self, period_id: UUID) -> list[PayrollLine]: ...

    async def replace_payroll_line(self, line: PayrollLine) -> None: ...

    async def delete_payroll_line(self, period_id: UUID, employee_id: str) -> None: ...

    # --- Revenue sharing ---

    async def get_invoice_line(self, invoice_line_id: UUID) -> InvoiceLine | None: ...

    async def list_share_templates(self, service_id: str) -> list[ShareTemplate]: ...

    async def list_stakeholders(self) -> dict[str, Stakeholder]: ...

    async def list_shares_for_line(self, invoice_line_id: UUID) -> list[InvoiceShare]: ...

    async def add_shares(self, shares: Iterable[InvoiceShare]) -> bool:
        """Store a line's shares unless that line already has shares.

        Returns False, storing nothing, when another allocation got there first.
        """
        ...

    async def get_share(self, share_id: UUID) -> InvoiceShare | None: ...

    async def save_share_payment(self, share: InvoiceShare, expected_amount_paid: Decimal) -> bool:
        """Persist payment fields if the stored amount paid still equals expected_amount_paid."""
        ...


class InMemoryRepository:
    """Dict-backed repository. Clock appends and share writes are serialized by a lock."""

    def __init__(self) -> None:
        self.employees: dict[str, Employee] = {}
        self.profiles: dict[str, CompensationProfile] = {}
        self.loans: list[EmployeeLoan] = []
        self.clock_events: list[ClockEvent] = []
        self.leaves: list[LeaveInterval] = []
        self.periods: dict[UUID, PayrollPeriod] = {}
        self.lines: dict[tuple[UUID, str], PayrollLine] = {}
        self.stakeholders: dict[str, Stakeholder] = {}
        self.templates: list[ShareTemplate] = []
        self.invoice_lines: dict[UUID, InvoiceLine] = {}
        self.shares: dict[UUID, InvoiceShare] = {}
        self._write_lock = asyncio.Lock()

    # --- Seeding helpers ---

    def add_employee(
        self,
        employee: Employee,
        profile: CompensationProfile | None = None,
        loan: EmployeeLoan | None = None,
    ) -> None:
        self.employees[employee.employee_id] = employee
        if profile is not None:
            self.profiles[employee.employee_id] = profile
        if loan is not None:
            self.loans.append(loan)

    def add_period(self, period: PayrollPeriod) -> None:
        self.periods[period.period_id] = period

    def add_clock_events(self, *events: ClockEvent) -> None:
        """Store events as given facts, numbering them per (employee, date)."""
        for event in events:
            same_day = [
                e
                for e in self.clock_events
                if e.employee_id == event.employee_id and e.work_date == event.work_date
            ]
            self.clock_events.append(replace(event, sequence_no=len(same_day) + 1))

    def add_leave(self, leave: LeaveInterval) -> None:
        self.leaves.append(leave)

    def add_stakeholder(self, stakeholder: Stakeholder) -> None:
        self.stakeholders[stakeholder.stakeholder_id] = stakeholder

    def add_template(self, template: ShareTemplate) -> None:
        self.templates.append(template)

    def add_invoice_line(self, line: InvoiceLine) -> None:
        self.invoice_lines[line.invoice_line_id] = line

    # --- HR reference data ---

    async def get_employee(self, employee_id: str) -> Employee | None:
        return self.employees.get(employee_id)

    async def list_employees(self, active_only: bool = True) -> list[Employee]:
        employees = sorted(self.employees.values(), key=lambda e: e.employee_id)
        if active_only:
            return [e for e in employees if e.is_active]
        return employees

    async def get_compensation_profile(self, employee_id: str) -> CompensationProfile | None:
        return self.profiles.get(employee_id)

    async def get_active_loan(self, employee_id: str) -> EmployeeLoan | None:
        return next(
            (loan for loan in self.loans if loan.employee_id == employee_id and loan.is_active),
            None,
        )

    # --- Attendance ---

    async def list_clock_events(self, employee_id: str, start: date, end: date) -> list[ClockEvent]:
        return sorted(
            (
                e
                for e in self.clock_events
                if e.employee_id == employee_id and start <= e.work_date <= end
            ),
            key=lambda e: (e.work_date, e.sequence_no),
        )

    async def latest_clock_event(self, employee_id: str, work_date: date) -> ClockEvent | None:
        day = await self.list_clock_events(employee_id, work_date, work_date)
        return day[-1] if day else None

    async def append_clock_event(self, event: ClockEvent) -> bool:
        async with self._write_lock:
            latest = await self.latest_clock_event(event.employee_id, event.work_date)
            expected = latest.sequence_no + 1 if latest else 1
            if event.sequence_no != expected:
                return False
            self.clock_events.append(event)
            return True

    async def list_leaves(self, employee_id: str, start: date, end: date) -> list[LeaveInterval]:
        return [
            lv
            for lv in self.leaves
            if lv.employee_id == employee_id and lv.start_date <= end and lv.end_date >= start
        ]

    # --- Payroll ---

    async def get_period(self, period_id: UUID) -> PayrollPeriod | None:
        period = self.periods.get(period_id)
        # Callers mutate the returned period; hand out a copy like a DB read would
        return replace(period) if period is not None else None

    async def save_period(self, period: PayrollPeriod, expected_status: PayrollPeriodStatus) -> bool:
        stored = self.periods.get(period.period_id)
        if stored is None or stored.status != expected_status:
            return False
        self.periods[period.period_id] = replace(period)
        return True

    async def list_payroll_lines(self, period_id: UUID) -> list[PayrollLine]:
        return sorted(
            (line for (pid, _), line in self.lines.items() if pid == period_id),
            key=lambda line: line.employee_id,
        )

    async def replace_payroll_line(self, line: PayrollLine) -> None:
        self.lines[(line.period_id, line.employee_id)] = line

    async def delete_payroll_line(self, period_id: UUID, employee_id: str) -> None:
        self.lines.pop((period_id, employee_id), None)

    # --- Revenue sharing ---

    async def get_invoice_line(self, invoice_line_id: UUID) -> InvoiceLine | None:
        return self.invoice_lines.get(invoice_line_id)

    async def list_share_templates(self, service_id: str) -> list[ShareTemplate]:
        return sorted(
            (t for t in self.templates if t.service_id == service_id),
            key=lambda t: t.display_order,
        )

    async def list_stakeholders(self) -> dict[str, Stakeholder]:
        return dict(self.stakeholders)

    async def list_shares_for_line(self, invoice_line_id: UUID) -> list[InvoiceShare]:
        return [s for s in self.shares.values() if s.invoice_line_id == invoice_line_id]

    async def add_shares(self, shares: Iterable[InvoiceShare]) -> bool:
        shares = list(shares)
        async with self._write_lock:
            lines = {s.invoice_line_id for s in shares}
            if any(s.invoice_line_id in lines for s in self.shares.values()):
                return False
            for share in shares:
                self.shares[share.share_id] = share
            return True

    async def get_share(self, share_id: UUID) -> InvoiceShare | None:
        return self.shares.get(share_id)

    async def save_share_payment(self, share: InvoiceShare, expected_amount_paid: Decimal) -> bool:
        async with self._write_lock:
            stored = self.shares.get(share.share_id)
            if stored is None or stored.amount_paid != expected_amount_paid:
                return False
            self.shares[share.share_id] = share
            return True
