"""Attendance and compensation policy objects.

Rates and thresholds used by the calculators. Changing policy never requires
touching calculation code: build a new policy (or load one from a JSON
document) and pass it to the services.

Pattern:
    policy = PayrollPolicy(
        attendance=AttendancePolicy(grace_minutes=15),
        compensation=CompensationPolicy(version="2026.2", income_tax_rate=Decimal("0.04")),
    )

Rules:
    1. Immutable after creation (frozen dataclasses).
    2. Every recognized option is a dataclass field; unknown options are rejected.
    3. Every policy carries a version that is stamped onto computed payroll lines.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from datetime import time
from decimal import Decimal
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(frozen=True)
class AttendancePolicy:
    """
    Daily attendance derivation rules.

    Attributes:
        shift_start: Check-ins after this time (plus grace) are late. Default 08:30.
        shift_end: Check-outs before this time are early departures. Default 16:30.
        standard_shift_hours: Hours per day before overtime accrues. Default 8.
        grace_minutes: Minutes tolerated after shift_start. Default 0.
        abnormal_hours_threshold: Daily hours above which a record is
            reported as ABNORMAL_HOURS. Default 16.
        timezone: IANA zone of the facility clock. Timezone-aware clock
            readings are converted to it before the work date is taken.
            Default Asia/Baghdad.
    """

    shift_start: time = time(8, 30)
    shift_end: time = time(16, 30)
    standard_shift_hours: Decimal = Decimal("8")
    grace_minutes: int = 0
    abnormal_hours_threshold: Decimal = Decimal("16")
    timezone: str = "Asia/Baghdad"

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.shift_end <= self.shift_start:
            raise ValueError("shift_end must be after shift_start")
        if self.standard_shift_hours <= 0:
            raise ValueError("standard_shift_hours must be positive")
        if self.grace_minutes < 0:
            raise ValueError("grace_minutes cannot be negative")
        if self.abnormal_hours_threshold <= self.standard_shift_hours:
            raise ValueError("abnormal_hours_threshold must exceed standard_shift_hours")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{self.timezone}'") from e

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass(frozen=True)
class CompensationPolicy:
    """
    Payroll rates and constants.

    Attributes:
        version: Identifier stamped on every payroll line computed with this policy.
        housing_allowance_rate: Share of basic salary paid as housing. Default 0.20.
        transport_allowance: Fixed monthly transport allowance. Default 150,000.
        meal_allowance: Fixed monthly meal allowance. Default 100,000.
        overtime_multiplier: Overtime premium over the hourly rate. Default 1.5.
        standard_monthly_hours: Divisor turning basic salary into an hourly rate. Default 176.
        night_shift_premium_rate: Share of basic paid to NIGHT shift workers. Default 0.15.
        social_security_employee_rate: Deducted from the employee. Default 0.05.
        social_security_employer_rate: Employer contribution, tracked only. Default 0.12.
        income_tax_rate: Flat rate applied to gross. Default 0.03.
        days_per_month: Divisor turning basic salary into a daily rate. Default 30.
        default_basic_salary: Used when a profile has no basic salary. Default 1,000,000.
        end_of_service_tier_years: Years of service closing the first and second
            end-of-service tiers. Default (5, 10).
        end_of_service_tier_days: Days of basic salary accrued per year of service
            in the first, second and third tier. Default (15, 30, 45).
        currency: ISO currency of all amounts. Default IQD.
    """

    version: str = "2026.1"
    housing_allowance_rate: Decimal = Decimal("0.20")
    transport_allowance: Decimal = Decimal("150000")
    meal_allowance: Decimal = Decimal("100000")
    overtime_multiplier: Decimal = Decimal("1.5")
    standard_monthly_hours: Decimal = Decimal("176")
    night_shift_premium_rate: Decimal = Decimal("0.15")
    social_security_employee_rate: Decimal = Decimal("0.05")
    social_security_employer_rate: Decimal = Decimal("0.12")
    income_tax_rate: Decimal = Decimal("0.03")
    days_per_month: Decimal = Decimal("30")
    default_basic_salary: Decimal = Decimal("1000000")
    end_of_service_tier_years: tuple[Decimal, Decimal] = (Decimal("5"), Decimal("10"))
    end_of_service_tier_days: tuple[Decimal, Decimal, Decimal] = (
        Decimal("15"),
        Decimal("30"),
        Decimal("45"),
    )
    currency: str = "IQD"

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.version:
            raise ValueError("version is required")
        for name in (
            "housing_allowance_rate",
            "night_shift_premium_rate",
            "social_security_employee_rate",
            "social_security_employer_rate",
            "income_tax_rate",
        ):
            rate = getattr(self, name)
            if rate < 0 or rate > 1:
                raise ValueError(f"{name} must be between 0 and 1")
        if self.transport_allowance < 0 or self.meal_allowance < 0:
            raise ValueError("allowances cannot be negative")
        if self.overtime_multiplier < 1:
            raise ValueError("overtime_multiplier must be at least 1")
        if self.standard_monthly_hours <= 0 or self.days_per_month <= 0:
            raise ValueError("standard_monthly_hours and days_per_month must be positive")
        if self.default_basic_salary <= 0:
            raise ValueError("default_basic_salary must be positive")
        first, second = self.end_of_service_tier_years
        if not 0 < first < second:
            raise ValueError("end_of_service_tier_years must be increasing and positive")
        if len(self.end_of_service_tier_days) != 3 or min(self.end_of_service_tier_days) < 0:
            raise ValueError("end_of_service_tier_days needs three non-negative day counts")


@dataclass(frozen=True)
class PayrollPolicy:
    """Complete policy bundle handed to the services."""

    attendance: AttendancePolicy = field(default_factory=AttendancePolicy)
    compensation: CompensationPolicy = field(default_factory=CompensationPolicy)

    @property
    def version(self) -> str:
        return self.compensation.version

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> PayrollPolicy:
        """Build a policy from a plain mapping (e.g. parsed JSON).

        Raises ValueError on unrecognized sections or options.
        """
        unknown = set(data) - {"attendance", "compensation"}
        if unknown:
            raise ValueError(f"Unrecognized policy sections: {sorted(unknown)}")

        return cls(
            attendance=_build(AttendancePolicy, data.get("attendance", {})),
            compensation=_build(CompensationPolicy, data.get("compensation", {})),
        )


def _build(policy_cls: type, options: dict[str, Any]) -> Any:
    known = {f.name: f for f in fields(policy_cls)}
    unknown = set(options) - set(known)
    if unknown:
        raise ValueError(
            f"Unrecognized {policy_cls.__name__} options: {sorted(unknown)}"
        )

    kwargs: dict[str, Any] = {}
    for name, raw in options.items():
        default = known[name].default
        if isinstance(default, Decimal):
            kwargs[name] = Decimal(str(raw))
        elif isinstance(default, tuple):
            kwargs[name] = tuple(Decimal(str(v)) for v in raw)
        elif isinstance(default, time):
            kwargs[name] = time.fromisoformat(raw)
        else:
            kwargs[name] = raw
    return policy_cls(**kwargs)


def load_policy_file(path: str | Path) -> PayrollPolicy:
    """Load a policy document from a JSON file."""
    with open(path, encoding="utf-8") as fh:
        return PayrollPolicy.from_mapping(json.load(fh))


DEFAULT_POLICY = PayrollPolicy()
