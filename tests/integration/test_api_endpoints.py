"""API endpoint integration tests.

Drives the FastAPI endpoints for cycles, details, adjustments and the
audit log end to end.
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from ..conftest import ADMIN_ID

pytestmark = pytest.mark.asyncio

CYCLE = {
    "name": "January 2026 (1st half)",
    "period_start": "2026-01-01",
    "period_end": "2026-01-15",
}


async def create_cycle(client: AsyncClient, headers: dict[str, str], **overrides) -> dict:
    response = await client.post("/api/v1/payroll-cycles", headers=headers, json={**CYCLE, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


async def calculated_details(client: AsyncClient, headers: dict[str, str]) -> tuple[str, dict]:
    """Create and calculate a cycle; return its id and details keyed by employee."""
    cycle_id = (await create_cycle(client, headers))["payroll_cycle_id"]
    response = await client.post(f"/api/v1/payroll-cycles/{cycle_id}/calculate", headers=headers)
    assert response.status_code == 200, response.text

    response = await client.get(f"/api/v1/payroll-cycles/{cycle_id}/details", headers=headers)
    details = {d["employee_id"]: d for d in response.json()["items"]}
    return cycle_id, details


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert "timestamp" in data

    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestAccessControl:
    """Every payroll endpoint requires an admin actor."""

    async def test_missing_actor(self, client: AsyncClient):
        response = await client.get("/api/v1/payroll-cycles")
        assert response.status_code == 401

    async def test_malformed_actor(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/payroll-cycles",
            headers={"X-Actor-ID": "not-a-uuid", "X-Actor-Role": "admin"},
        )
        assert response.status_code == 401

    async def test_non_admin(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/audit-logs",
            headers={"X-Actor-ID": str(uuid4()), "X-Actor-Role": "employee"},
        )
        assert response.status_code == 403


class TestPayrollCycles:
    """Test cycle creation and lookup."""

    async def test_create_and_get(self, client: AsyncClient, admin_headers):
        created = await create_cycle(client, admin_headers)
        assert created["status"] == "active"
        assert created["finalized_at"] is None

        response = await client.get(
            f"/api/v1/payroll-cycles/{created['payroll_cycle_id']}", headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["name"] == CYCLE["name"]

        response = await client.get("/api/v1/payroll-cycles", headers=admin_headers)
        assert response.json()["total"] == 1

    async def test_invalid_cycle_lists_every_error(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/v1/payroll-cycles",
            headers=admin_headers,
            json={"name": " ", "period_start": "2026-02-10", "period_end": "2026-02-01"},
        )
        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert len(data["details"]) == 2

    async def test_malformed_body(self, client: AsyncClient, admin_headers):
        response = await client.post(
            "/api/v1/payroll-cycles",
            headers=admin_headers,
            json={"name": "Broken", "period_start": "not-a-date"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_unknown_cycle(self, client: AsyncClient, admin_headers):
        response = await client.get(f"/api/v1/payroll-cycles/{uuid4()}", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"


class TestCalculation:
    """Test calculating and resetting a cycle."""

    async def test_calculate(self, client: AsyncClient, admin_headers, staff):
        cycle_id = (await create_cycle(client, admin_headers))["payroll_cycle_id"]

        response = await client.post(
            f"/api/v1/payroll-cycles/{cycle_id}/calculate", headers=admin_headers
        )
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["employee_count"] == 2
        assert data["total_base_pay"] == "4600.00"
        assert data["audit_log_created"] is True

        response = await client.get(
            f"/api/v1/payroll-cycles/{cycle_id}/details", headers=admin_headers
        )
        details = {d["employee_id"]: d for d in response.json()["items"]}
        assert details[str(staff["dana"].employee_id)]["net_pay"] == "1600.00"
        assert details[str(staff["eli"].employee_id)]["calculation_method"] == "daily"

    async def test_reset(self, client: AsyncClient, admin_headers, staff):
        cycle_id, _ = await calculated_details(client, admin_headers)

        response = await client.delete(
            f"/api/v1/payroll-cycles/{cycle_id}/details", headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["removed"] == 2

        response = await client.get(
            f"/api/v1/payroll-cycles/{cycle_id}/details", headers=admin_headers
        )
        assert response.json()["total"] == 0


class TestAdjustments:
    """Test bonus, deduction and overtime endpoints."""

    async def test_bonus_requires_reason(self, client: AsyncClient, admin_headers, staff):
        _, details = await calculated_details(client, admin_headers)
        detail = details[str(staff["dana"].employee_id)]

        response = await client.put(
            f"/api/v1/payroll-details/{detail['payroll_detail_id']}/bonus",
            headers=admin_headers,
            json={"bonus": 100},
        )
        assert response.status_code == 400
        assert response.json()["details"] == [
            "Bonus reason is required when bonus is greater than 0"
        ]

    async def test_set_bonus_and_deduction(self, client: AsyncClient, admin_headers, staff):
        _, details = await calculated_details(client, admin_headers)
        detail_id = details[str(staff["dana"].employee_id)]["payroll_detail_id"]

        response = await client.put(
            f"/api/v1/payroll-details/{detail_id}/bonus",
            headers=admin_headers,
            json={"bonus": 250, "bonus_reason": "Covered a weekend"},
        )
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["detail"]["bonus"] == "250.00"
        assert data["detail"]["net_pay"] == "1850.00"
        assert data["changes"]["net_pay_impact"]["direction"] == "increase"
        assert data["audit_log_created"] is True

        response = await client.put(
            f"/api/v1/payroll-details/{detail_id}/deduction",
            headers=admin_headers,
            json={"deduction": "50.5", "deduction_reason": "Locker key"},
        )
        assert response.json()["detail"]["net_pay"] == "1799.50"

        response = await client.delete(
            f"/api/v1/payroll-details/{detail_id}/bonus", headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["detail"]["bonus_reason"] is None
        assert response.json()["detail"]["net_pay"] == "1549.50"

    async def test_negative_amount_rejected(self, client: AsyncClient, admin_headers, staff):
        _, details = await calculated_details(client, admin_headers)
        detail_id = details[str(staff["dana"].employee_id)]["payroll_detail_id"]

        response = await client.put(
            f"/api/v1/payroll-details/{detail_id}/deduction",
            headers=admin_headers,
            json={"deduction": -1, "deduction_reason": "Oops"},
        )
        assert response.status_code == 400

    async def test_overtime(self, client: AsyncClient, admin_headers, staff):
        _, details = await calculated_details(client, admin_headers)
        detail_id = details[str(staff["eli"].employee_id)]["payroll_detail_id"]

        response = await client.put(
            f"/api/v1/payroll-details/{detail_id}/overtime",
            headers=admin_headers,
            json={"hours": 4, "rate": "125"},
        )
        assert response.status_code == 200, response.text
        assert response.json()["detail"]["overtime_pay"] == "500.00"
        assert response.json()["detail"]["net_pay"] == "3500.00"

    async def test_preview_does_not_save(self, client: AsyncClient, admin_headers, staff):
        _, details = await calculated_details(client, admin_headers)
        detail_id = details[str(staff["dana"].employee_id)]["payroll_detail_id"]

        response = await client.post(
            f"/api/v1/payroll-details/{detail_id}/preview",
            headers=admin_headers,
            json={"deduction": 100, "deduction_reason": "Uniform"},
        )
        assert response.status_code == 200, response.text
        impact = response.json()["net_pay_impact"]
        assert impact["new_net_pay"] == "1500.00"
        assert impact["text"] == "Net pay decreases by 100.00"

        response = await client.get(f"/api/v1/payroll-details/{detail_id}", headers=admin_headers)
        assert response.json()["deduction"] == "0.00"

    async def test_unknown_detail(self, client: AsyncClient, admin_headers):
        response = await client.put(
            f"/api/v1/payroll-details/{uuid4()}/bonus",
            headers=admin_headers,
            json={"bonus": 10, "bonus_reason": "Any"},
        )
        assert response.status_code == 404


class TestFinalization:
    """Test the summary and finalize endpoints."""

    async def test_finalize_then_locked(self, client: AsyncClient, admin_headers, staff):
        cycle_id, details = await calculated_details(client, admin_headers)

        response = await client.get(
            f"/api/v1/payroll-cycles/{cycle_id}/summary", headers=admin_headers
        )
        assert response.json()["validation"]["can_finalize"] is True

        response = await client.post(
            f"/api/v1/payroll-cycles/{cycle_id}/finalize", headers=admin_headers
        )
        assert response.status_code == 200, response.text
        summary = response.json()["finalization_summary"]
        assert summary["cycle_info"]["status"] == "completed"
        assert summary["totals"]["total_net_pay"] == "4600.00"
        assert summary["finalization_details"]["finalized_by"] == str(ADMIN_ID)

        response = await client.post(
            f"/api/v1/payroll-cycles/{cycle_id}/finalize", headers=admin_headers
        )
        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_FINALIZED"

        detail_id = details[str(staff["dana"].employee_id)]["payroll_detail_id"]
        response = await client.put(
            f"/api/v1/payroll-details/{detail_id}/bonus",
            headers=admin_headers,
            json={"bonus": 10, "bonus_reason": "Too late"},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "CYCLE_LOCKED"

        response = await client.post(
            f"/api/v1/payroll-cycles/{cycle_id}/calculate", headers=admin_headers
        )
        assert response.status_code == 409

    async def test_finalize_blocked(self, client: AsyncClient, admin_headers, staff):
        cycle_id, details = await calculated_details(client, admin_headers)
        detail_id = details[str(staff["dana"].employee_id)]["payroll_detail_id"]
        await client.put(
            f"/api/v1/payroll-details/{detail_id}/deduction",
            headers=admin_headers,
            json={"deduction": 2000, "deduction_reason": "Salary advance"},
        )

        response = await client.post(
            f"/api/v1/payroll-cycles/{cycle_id}/finalize", headers=admin_headers
        )
        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "FINALIZATION_BLOCKED"
        assert [issue["type"] for issue in data["issues"]] == ["negative_net_pay"]


class TestAuditLogs:
    async def test_entries_carry_request_context(self, client: AsyncClient, admin_headers, staff):
        cycle_id, _ = await calculated_details(client, admin_headers)

        response = await client.get(
            "/api/v1/audit-logs",
            headers=admin_headers,
            params={"table_name": "payroll_cycle", "record_id": cycle_id},
        )
        assert response.status_code == 200
        items = response.json()["items"]
        assert [e["action"] for e in items] == ["CALCULATE", "CREATE"]
        assert items[0]["actor_user_id"] == str(ADMIN_ID)
        assert items[0]["ip_address"] == "198.51.100.20"
        assert items[0]["user_agent"] == "integration-tests"

    async def test_limit(self, client: AsyncClient, admin_headers):
        await create_cycle(client, admin_headers)
        await create_cycle(
            client, admin_headers, name="February 2026", period_start="2026-02-01", period_end="2026-02-28"
        )

        response = await client.get("/api/v1/audit-logs", headers=admin_headers, params={"limit": 1})
        assert response.json()["total"] == 1
