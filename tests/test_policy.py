"""Tests for policy and settings loading."""

import json
from datetime import time
from decimal import Decimal

import pytest

from hospital_payroll.config import Settings
from hospital_payroll.policy import (
    AttendancePolicy,
    CompensationPolicy,
    PayrollPolicy,
    load_policy_file,
)


class TestPolicy:
    def test_defaults(self):
        policy = PayrollPolicy()

        assert policy.attendance.shift_start == time(8, 30)
        assert policy.attendance.standard_shift_hours == Decimal("8")
        assert policy.compensation.transport_allowance == Decimal("150000")
        assert policy.version == policy.compensation.version

    def test_from_mapping_converts_types(self):
        policy = PayrollPolicy.from_mapping(
            {
                "attendance": {
                    "shift_start": "09:00",
                    "grace_minutes": 5,
                    "timezone": "Asia/Dubai",
                },
                "compensation": {"version": "2027.1", "income_tax_rate": "0.04"},
            }
        )

        assert policy.attendance.shift_start == time(9, 0)
        assert policy.attendance.grace_minutes == 5
        assert policy.attendance.zone.key == "Asia/Dubai"
        assert policy.compensation.income_tax_rate == Decimal("0.04")
        assert policy.version == "2027.1"

    def test_unknown_option_rejected(self):
        with pytest.raises(ValueError, match="bonus_rate"):
            PayrollPolicy.from_mapping({"compensation": {"bonus_rate": "0.1"}})

    def test_unknown_section_rejected(self):
        with pytest.raises(ValueError, match="scheduling"):
            PayrollPolicy.from_mapping({"scheduling": {}})

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"shift_start": time(17, 0)},
            {"standard_shift_hours": Decimal("0")},
            {"grace_minutes": -1},
            {"abnormal_hours_threshold": Decimal("6")},
            {"timezone": "Mars/Olympus_Mons"},
        ],
    )
    def test_invalid_attendance_policy(self, kwargs):
        with pytest.raises(ValueError):
            AttendancePolicy(**kwargs)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"income_tax_rate": Decimal("1.5")},
            {"overtime_multiplier": Decimal("0.5")},
            {"days_per_month": Decimal("0")},
            {"default_basic_salary": Decimal("0")},
            {"version": ""},
        ],
    )
    def test_invalid_compensation_policy(self, kwargs):
        with pytest.raises(ValueError):
            CompensationPolicy(**kwargs)

    def test_load_policy_file(self, tmp_path):
        path = tmp_path / "policy.json"
        path.write_text(json.dumps({"compensation": {"version": "file-1"}}))

        assert load_policy_file(path).version == "file-1"


class TestSettings:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///payroll.db")
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("PAYROLL_POLICY_FILE", "/etc/payroll/policy.json")

        settings = Settings.from_env()

        assert settings.database_url == "sqlite+aiosqlite:///payroll.db"
        assert settings.port == 9000
        assert settings.debug is True
        assert settings.log_level == "DEBUG"
        assert settings.policy_file == "/etc/payroll/policy.json"

    def test_defaults_without_env(self, monkeypatch):
        for name in ("DATABASE_URL", "PORT", "DEBUG", "LOG_LEVEL", "PAYROLL_POLICY_FILE"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.database_url.startswith("postgresql+asyncpg://")
        assert settings.policy_file is None

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValueError, match="LOG_LEVEL"):
            Settings(log_level="CHATTY")
