"""Tests for payroll cycle creation, lookup and reset."""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import select

from attendance_payroll.errors import NotFoundError, ValidationError
from attendance_payroll.models import AuditLogEntry
from attendance_payroll.services.cycle_service import CycleService
from attendance_payroll.services.detail_store import PayrollDetailStore

pytestmark = pytest.mark.asyncio


class TestCreateCycle:
    async def test_create(self, session, audit, actor):
        service = CycleService(session, audit)
        cycle = await service.create_cycle(
            "  February 2026  ", date(2026, 2, 1), date(2026, 2, 28), actor
        )

        assert cycle.name == "February 2026"
        assert cycle.status == "active"
        assert cycle.finalized_at is None

        row = (await session.execute(select(AuditLogEntry))).scalar_one()
        assert row.action == "CREATE"
        assert row.table_name == "payroll_cycle"
        assert row.new_values["period_start"] == "2026-02-01"

    async def test_single_day_cycle_allowed(self, session, audit, actor):
        cycle = await CycleService(session, audit).create_cycle(
            "Bonus day", date(2026, 3, 1), date(2026, 3, 1), actor
        )
        assert cycle.period_start == cycle.period_end

    async def test_collects_all_errors(self, session, audit, actor):
        with pytest.raises(ValidationError) as exc_info:
            await CycleService(session, audit).create_cycle(
                "", date(2026, 2, 28), date(2026, 2, 1), actor
            )
        assert len(exc_info.value.errors) == 2

    async def test_name_too_long(self, session, audit, actor):
        with pytest.raises(ValidationError):
            await CycleService(session, audit).create_cycle(
                "x" * 201, date(2026, 2, 1), date(2026, 2, 28), actor
            )

    async def test_overlap_and_duplicate_name(self, session, audit, actor, cycle):
        with pytest.raises(ValidationError) as exc_info:
            await CycleService(session, audit).create_cycle(
                cycle.name, date(2026, 1, 10), date(2026, 1, 25), actor
            )
        errors = exc_info.value.errors
        assert len(errors) == 2
        assert any("overlaps" in e for e in errors)
        assert any("already exists" in e for e in errors)

    async def test_adjacent_period_allowed(self, session, audit, actor, cycle):
        created = await CycleService(session, audit).create_cycle(
            "January 2026 (2nd half)", date(2026, 1, 16), date(2026, 1, 31), actor
        )
        assert created.period_start == date(2026, 1, 16)


class TestLookup:
    async def test_get_and_list(self, session, audit, actor, cycle):
        service = CycleService(session, audit)
        later = await service.create_cycle("February 2026", date(2026, 2, 1), date(2026, 2, 28), actor)

        assert (await service.get_cycle(cycle.payroll_cycle_id)).name == cycle.name
        assert [c.payroll_cycle_id for c in await service.list_cycles()] == [
            later.payroll_cycle_id,
            cycle.payroll_cycle_id,
        ]
        assert await service.list_cycles(status="completed") == []

    async def test_get_missing(self, session, audit):
        with pytest.raises(NotFoundError):
            await CycleService(session, audit).get_cycle(uuid4())


class TestResetCycle:
    async def test_reset_removes_details(self, session, audit, actor, cycle, scenario_detail):
        removed = await CycleService(session, audit).reset_cycle(cycle.payroll_cycle_id, actor)

        assert removed == 1
        assert await PayrollDetailStore(session).list_by_cycle(cycle.payroll_cycle_id) == []
        row = (await session.execute(select(AuditLogEntry))).scalar_one()
        assert row.action == "DELETE"
        assert row.old_values["detail_count"] == 1

    async def test_reset_missing_cycle(self, session, audit, actor):
        with pytest.raises(NotFoundError):
            await CycleService(session, audit).reset_cycle(uuid4(), actor)
