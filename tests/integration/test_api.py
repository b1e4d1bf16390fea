"""API endpoint integration tests.

Requests run through the real dependency chain onto the SQLite test database.
"""

from decimal import Decimal
from uuid import uuid4

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from hospital_payroll.api.app import create_app
from hospital_payroll.api.dependencies import get_db_session
from hospital_payroll.database import make_session_factory

from .conftest import INVOICE_LINE_ID, PERIOD_ID, TEST_DATABASE_URL

PERIODS = f"/api/v1/payroll-periods/{PERIOD_ID}"


class TestHealthEndpoints:
    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "healthy"
        assert response.json()["policy_version"] == "2026.1"

    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_readiness_reports_missing_tables(self):
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
        factory = make_session_factory(engine)

        async def empty_db_session():
            async with factory() as session:
                yield session

        app = create_app()
        app.dependency_overrides[get_db_session] = empty_db_session
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/ready")
        await engine.dispose()

        assert response.status_code == 503
        assert "payroll_line" in response.json()["missing_tables"]

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestPayrollEndpoints:
    async def test_get_period(self, client: AsyncClient):
        response = await client.get(PERIODS)

        assert response.status_code == 200
        assert response.json()["status"] == "DRAFT"

    async def test_unknown_period_is_404(self, client: AsyncClient):
        response = await client.get(f"/api/v1/payroll-periods/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "UNKNOWN_PERIOD"

    async def test_employee_totals(self, client: AsyncClient):
        response = await client.get(f"{PERIODS}/employees/EMP-001/totals")

        assert response.status_code == 200
        data = response.json()
        assert data["days_present"] == 22
        assert Decimal(data["overtime_hours"]) == Decimal("4")

    async def test_calculate_approve_pay(self, client: AsyncClient):
        response = await client.post(f"{PERIODS}/calculate")
        assert response.status_code == 200
        run = response.json()
        assert run["status"] == "CALCULATED"
        assert run["failures"] == []
        assert Decimal(run["lines"][0]["net"]) == Decimal("2536637")

        response = await client.post(f"{PERIODS}/approve")
        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"

        response = await client.post(f"{PERIODS}/pay")
        assert response.status_code == 200
        assert response.json()["paid_at"] is not None

    async def test_approve_draft_is_409(self, client: AsyncClient):
        response = await client.post(f"{PERIODS}/approve")

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "INVALID_TRANSITION"
        assert data["context"] == {"from_status": "DRAFT", "to_status": "APPROVED"}

    async def test_recalculate_after_approval_is_409(self, client: AsyncClient):
        await client.post(f"{PERIODS}/calculate")
        await client.post(f"{PERIODS}/approve")

        response = await client.post(f"{PERIODS}/calculate")

        assert response.status_code == 409
        assert "can no longer be recalculated" in response.json()["detail"]

    async def test_exports_after_approval(self, client: AsyncClient):
        await client.post(f"{PERIODS}/calculate")
        response = await client.get(f"{PERIODS}/bank-transfer")
        assert response.status_code == 409

        await client.post(f"{PERIODS}/approve")

        bank = (await client.get(f"{PERIODS}/bank-transfer")).json()
        assert bank[0]["account_number"] == "IQ12RAFI0000001"
        slips = (await client.get(f"{PERIODS}/payslips")).json()
        assert slips[0]["employee_name"] == "Layla Hassan"
        social = (await client.get(f"{PERIODS}/social-security")).json()
        assert Decimal(social[0]["employer_contribution"]) == Decimal("240000")

    async def test_list_lines(self, client: AsyncClient):
        await client.post(f"{PERIODS}/calculate")

        response = await client.get(f"{PERIODS}/lines")

        assert response.status_code == 200
        assert [line["employee_id"] for line in response.json()] == ["EMP-001"]


class TestAttendanceEndpoints:
    async def test_daily_attendance(self, client: AsyncClient):
        response = await client.get("/api/v1/attendance/employees/EMP-001/daily/2026-03-10")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "PRESENT"
        assert Decimal(data["overtime_hours"]) == Decimal("4")

    async def test_unknown_employee_is_404(self, client: AsyncClient):
        response = await client.get("/api/v1/attendance/employees/EMP-404/daily/2026-03-10")

        assert response.status_code == 404
        assert response.json()["code"] == "UNKNOWN_EMPLOYEE"

    async def test_clock_event_alternation(self, client: AsyncClient):
        payload = {"employee_id": "EMP-001", "kind": "CHECK_IN", "at": "2026-04-01T08:20:00"}

        first = await client.post("/api/v1/attendance/clock-events", json=payload)
        second = await client.post("/api/v1/attendance/clock-events", json=payload)

        assert first.status_code == 201
        assert first.json()["sequence_no"] == 1
        assert second.status_code == 409
        assert second.json()["detail"] == "already checked in"

    async def test_utc_reading_filed_under_facility_date(self, client: AsyncClient):
        payload = {"employee_id": "EMP-001", "kind": "CHECK_IN", "at": "2026-04-01T22:30:00Z"}

        response = await client.post("/api/v1/attendance/clock-events", json=payload)

        assert response.status_code == 201
        assert response.json()["work_date"] == "2026-04-02"
        assert response.json()["event_time"] == "01:30:00"

    async def test_exceptions_report(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/attendance/exceptions", params={"start": "2026-03-23", "end": "2026-03-23"}
        )

        assert response.status_code == 200
        assert [e["exception_type"] for e in response.json()] == ["UNAUTHORIZED_ABSENCE"]


class TestRevenueShareEndpoints:
    async def test_allocate_list_and_pay(self, client: AsyncClient):
        response = await client.post(f"/api/v1/revenue-shares/invoice-lines/{INVOICE_LINE_ID}/allocate")
        assert response.status_code == 200
        allocation = response.json()
        assert Decimal(allocation["residual"]) == Decimal("100000")

        shares = (
            await client.get(f"/api/v1/revenue-shares/invoice-lines/{INVOICE_LINE_ID}/shares")
        ).json()
        assert len(shares) == 3

        doctor = next(s for s in shares if s["stakeholder_id"] == "DR-7")
        response = await client.post(
            f"/api/v1/revenue-shares/shares/{doctor['share_id']}/payments",
            json={"amount": "100000", "paid_on": "2026-04-05"},
        )
        assert response.status_code == 200
        assert response.json()["payment_status"] == "PARTIALLY_PAID"

    async def test_overpayment_is_422(self, client: AsyncClient):
        allocation = (
            await client.post(f"/api/v1/revenue-shares/invoice-lines/{INVOICE_LINE_ID}/allocate")
        ).json()
        share_id = allocation["shares"][0]["share_id"]

        response = await client.post(
            f"/api/v1/revenue-shares/shares/{share_id}/payments",
            json={"amount": "99999999", "paid_on": "2026-04-05"},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_PAYMENT"

    async def test_unknown_invoice_line_is_404(self, client: AsyncClient):
        response = await client.post(f"/api/v1/revenue-shares/invoice-lines/{uuid4()}/allocate")

        assert response.status_code == 404


class TestEndOfServiceEndpoints:
    async def test_provisions(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/end-of-service/provisions", params={"as_of": "2026-01-01"}
        )

        assert response.status_code == 200
        [row] = response.json()
        assert row["employee_name"] == "Layla Hassan"
        assert Decimal(row["years_of_service"]) == Decimal("8")
        # 8 years: 5 * 15 + 3 * 30 = 165 days of 2,000,000 / 30
        assert Decimal(row["provision_amount"]) == Decimal("11000000")

    async def test_department_filter(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/end-of-service/provisions",
            params={"as_of": "2026-01-01", "department": "Radiology"},
        )

        assert response.status_code == 200
        assert response.json() == []
