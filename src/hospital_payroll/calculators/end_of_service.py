"""End-of-service provision accrued by an employee's years of service.

Each year of service earns a number of days of basic salary, by tier:
- up to the first tier boundary (5 years): 15 days per year
- up to the second tier boundary (10 years): 30 days per year
- beyond that: 45 days per year

The daily salary is basic / days_per_month. Partial years accrue
proportionally, and the provision is rounded to a whole unit once, at the end.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from hospital_payroll.calculators.rounding import round_money
from hospital_payroll.exceptions import DataIntegrityError
from hospital_payroll.policy import CompensationPolicy

_DEFAULT_POLICY = CompensationPolicy()

DAYS_PER_YEAR = Decimal("365.25")
ZERO = Decimal("0")


def years_of_service(hire_date: date, as_of: date) -> Decimal:
    """Fractional years from hire_date to as_of; zero before the hire date."""
    days = max(as_of.toordinal() - hire_date.toordinal(), 0)
    return Decimal(days) / DAYS_PER_YEAR


def round_years(years: Decimal) -> Decimal:
    """Years of service as reported: one decimal place, half-up."""
    return years.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def accrued_days(years: Decimal, policy: CompensationPolicy = _DEFAULT_POLICY) -> Decimal:
    """Days of basic salary earned over the given years of service."""
    first_end, second_end = policy.end_of_service_tier_years
    first_days, second_days, third_days = policy.end_of_service_tier_days

    first = min(years, first_end)
    second = min(max(years - first_end, ZERO), second_end - first_end)
    third = max(years - second_end, ZERO)
    return first * first_days + second * second_days + third * third_days


def compute_end_of_service_provision(
    basic: Decimal,
    hire_date: date,
    as_of: date,
    policy: CompensationPolicy = _DEFAULT_POLICY,
) -> Decimal:
    """Provision owed at as_of to an employee hired on hire_date.

    Raises DataIntegrityError for a negative basic salary.
    """
    if basic < 0:
        raise DataIntegrityError(f"Basic salary {basic} is negative")
    daily_salary = basic / policy.days_per_month
    return round_money(daily_salary * accrued_days(years_of_service(hire_date, as_of), policy))
