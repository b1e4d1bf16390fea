"""Payroll period state machine with transition validation."""

from __future__ import annotations

from hospital_payroll.calculators.types import PayrollPeriod, PayrollPeriodStatus


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PayrollPeriodStateMachine:
    """State machine for payroll period status transitions.

    Allowed transitions:
    - DRAFT → CALCULATED
    - CALCULATED → CALCULATED (recalculation)
    - CALCULATED → APPROVED
    - APPROVED → PAID

    There is no reopening: APPROVED and PAID periods are frozen.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollPeriodStatus.DRAFT: [PayrollPeriodStatus.CALCULATED],
        PayrollPeriodStatus.CALCULATED: [
            PayrollPeriodStatus.CALCULATED,
            PayrollPeriodStatus.APPROVED,
        ],
        PayrollPeriodStatus.APPROVED: [PayrollPeriodStatus.PAID],
        PayrollPeriodStatus.PAID: [],  # Terminal state
    }

    # Statuses where (re)calculation is allowed
    CALCULATION_ALLOWED = {
        PayrollPeriodStatus.DRAFT,
        PayrollPeriodStatus.CALCULATED,
    }

    # Statuses where payroll lines are final and may be exported
    RESULTS_FINAL = {
        PayrollPeriodStatus.APPROVED,
        PayrollPeriodStatus.PAID,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def can_calculate(cls, status: str) -> bool:
        """Check if calculation is allowed in this status."""
        return status in cls.CALCULATION_ALLOWED

    @classmethod
    def are_results_final(cls, status: str) -> bool:
        """Check if payroll lines are final (approved or paid)."""
        return status in cls.RESULTS_FINAL

    @classmethod
    def validate_period_for_transition(
        cls, period: PayrollPeriod, to_status: str, line_count: int
    ) -> list[str]:
        """Validate a period for a specific transition, returning any errors.

        Returns list of error messages (empty if valid).
        """
        errors: list[str] = []
        from_status = period.status

        if to_status == PayrollPeriodStatus.CALCULATED and not cls.can_calculate(from_status):
            errors.append(f"Period is {_value(from_status)} and can no longer be recalculated")
            return errors

        if not cls.can_transition(from_status, to_status):
            errors.append(
                f"Cannot transition from '{_value(from_status)}' to '{_value(to_status)}'"
            )
            return errors

        if to_status == PayrollPeriodStatus.APPROVED and line_count == 0:
            errors.append("Period has no payroll lines")

        return errors


def _value(status: str) -> str:
    return getattr(status, "value", status)
