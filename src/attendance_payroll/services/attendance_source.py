"""Read-only access to employees and attendance intervals."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators import AttendanceRecord
from attendance_payroll.calculators.pay_calculator import interval_in_period
from attendance_payroll.models import AttendanceInterval, Employee


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class AttendanceSource:
    """Loads the attendance data a payroll cycle is calculated from.

    The SQL filter is a day wider than the period on both sides so that
    intervals near the edges are not lost; the exact check-in date
    test is applied afterwards in Python.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def intervals_for_period(
        self,
        period_start: date,
        period_end: date,
        employee_ids: list[UUID] | None = None,
    ) -> dict[UUID, list[AttendanceRecord]]:
        """Intervals checked in during the period, grouped by employee."""
        query = select(AttendanceInterval).where(
            AttendanceInterval.check_in_at < _day_start(period_end + timedelta(days=2)),
            AttendanceInterval.check_in_at >= _day_start(period_start - timedelta(days=1)),
        )
        if employee_ids is not None:
            query = query.where(AttendanceInterval.employee_id.in_(employee_ids))
        query = query.order_by(AttendanceInterval.employee_id, AttendanceInterval.check_in_at)

        result = await self.session.execute(query)
        grouped: dict[UUID, list[AttendanceRecord]] = defaultdict(list)
        for row in result.scalars():
            record = AttendanceRecord(
                employee_id=row.employee_id,
                check_in_at=row.check_in_at,
                check_out_at=row.check_out_at,
                branch_id=row.branch_id,
            )
            if interval_in_period(record, period_start, period_end):
                grouped[row.employee_id].append(record)
        return dict(grouped)

    async def employees_with_attendance(
        self,
        period_start: date,
        period_end: date,
    ) -> tuple[list[Employee], dict[UUID, list[AttendanceRecord]]]:
        """Active employees with at least one interval in the period.

        Returns the employees ordered by name together with their intervals.
        """
        intervals = await self.intervals_for_period(period_start, period_end)
        if not intervals:
            return [], {}

        result = await self.session.execute(
            select(Employee)
            .where(Employee.employee_id.in_(list(intervals)), Employee.is_active.is_(True))
            .order_by(Employee.full_name, Employee.employee_id)
        )
        employees = list(result.scalars().all())
        return employees, {e.employee_id: intervals[e.employee_id] for e in employees}

    async def get_employee(self, employee_id: UUID) -> Employee | None:
        return await self.session.get(Employee, employee_id)

    async def employee_names(self, employee_ids: list[UUID]) -> dict[UUID, str]:
        if not employee_ids:
            return {}
        result = await self.session.execute(
            select(Employee.employee_id, Employee.full_name).where(
                Employee.employee_id.in_(employee_ids)
            )
        )
        return {employee_id: name for employee_id, name in result.all()}
