"""Pure computation stages of the attendance-to-payroll pipeline."""

from hospital_payroll.calculators.attendance_deriver import (
    derive_daily_record,
    derive_range,
    detect_exceptions,
)
from hospital_payroll.calculators.end_of_service import compute_end_of_service_provision
from hospital_payroll.calculators.payroll_calculator import PayrollCalculator
from hospital_payroll.calculators.period_aggregator import aggregate_period
from hospital_payroll.calculators.share_allocator import (
    allocate_line,
    apply_share_payment,
    compute_share_amount,
)

__all__ = [
    "PayrollCalculator",
    "aggregate_period",
    "allocate_line",
    "apply_share_payment",
    "compute_end_of_service_provision",
    "compute_share_amount",
    "derive_daily_record",
    "derive_range",
    "detect_exceptions",
]
