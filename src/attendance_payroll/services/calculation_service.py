"""Bulk base-pay calculation for a payroll cycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators import BasePayResult, PayCalculator, PayRule
from attendance_payroll.config import get_settings
from attendance_payroll.database import write_transaction
from attendance_payroll.services.attendance_source import AttendanceSource
from attendance_payroll.services.audit_trail import AuditContext, AuditRecord, AuditTrail
from attendance_payroll.services.detail_store import PayrollDetailStore

logger = logging.getLogger(__name__)


@dataclass
class EmployeeCalculation:
    """Calculated base pay for one employee."""

    employee_id: UUID
    full_name: str
    payroll_detail_id: UUID
    created: bool
    result: BasePayResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": str(self.employee_id),
            "full_name": self.full_name,
            "payroll_detail_id": str(self.payroll_detail_id),
            "created": self.created,
            "base_pay": str(self.result.base_pay),
            "total_hours": str(self.result.total_hours),
            "total_days_worked": self.result.total_days_worked,
            "calculation_method": self.result.calculation_method.value,
            "skipped_intervals": self.result.skipped_intervals,
            "breakdown": [line.to_dict() for line in self.result.breakdown],
        }


@dataclass
class CycleCalculation:
    cycle_id: UUID
    employees: list[EmployeeCalculation] = field(default_factory=list)
    audit_log_created: bool = False

    @property
    def total_base_pay(self) -> Decimal:
        return sum((e.result.base_pay for e in self.employees), Decimal("0.00"))

    @property
    def created_count(self) -> int:
        return sum(1 for e in self.employees if e.created)


class PayrollCalculationService:
    """Recomputes base pay for every employee with attendance in a cycle.

    Safe to re-run while the cycle is active: details are upserted, and
    bonus, deduction and overtime inputs already on a detail are kept.
    """

    def __init__(
        self,
        session: AsyncSession,
        audit: AuditTrail,
        rule: PayRule | None = None,
    ):
        self.session = session
        self.audit = audit
        self.store = PayrollDetailStore(session)
        self.source = AttendanceSource(session)
        if rule is None:
            rule = PayRule(daily_rate_threshold_hours=get_settings().daily_rate_threshold_hours)
        self.calculator = PayCalculator(rule)

    async def calculate_cycle(self, cycle_id: UUID, context: AuditContext) -> CycleCalculation:
        """Calculate and store base pay for the whole cycle, then audit it."""
        calculation = CycleCalculation(cycle_id=cycle_id)

        async with write_transaction(self.session, "Payroll cycle", cycle_id):
            cycle = await self.store.lock_cycle(cycle_id, "calculate")
            employees, intervals = await self.source.employees_with_attendance(
                cycle.period_start, cycle.period_end
            )

            for employee in employees:
                result = self.calculator.calculate_base_pay(
                    employee_id=employee.employee_id,
                    intervals=intervals[employee.employee_id],
                    period_start=cycle.period_start,
                    period_end=cycle.period_end,
                    hourly_rate=employee.hourly_rate,
                    daily_rate=employee.daily_rate,
                )
                upsert = await self.store.upsert_base_pay(
                    cycle_id=cycle_id,
                    employee_id=employee.employee_id,
                    base_pay=result.base_pay,
                    total_hours=result.total_hours,
                    total_days_worked=result.total_days_worked,
                    calculation_method=result.calculation_method,
                    cycle_locked=True,
                )
                calculation.employees.append(
                    EmployeeCalculation(
                        employee_id=employee.employee_id,
                        full_name=employee.full_name,
                        payroll_detail_id=upsert.detail.payroll_detail_id,
                        created=upsert.created,
                        result=result,
                    )
                )
            cycle_name = cycle.name

        logger.info(
            "Calculated payroll cycle %s: %d employee(s), base pay %s",
            cycle_id,
            len(calculation.employees),
            calculation.total_base_pay,
        )

        calculation.audit_log_created = await self.audit.record(
            AuditRecord(
                context=context,
                action="CALCULATE",
                table_name="payroll_cycle",
                record_id=cycle_id,
                description=(
                    f"Calculated payroll cycle {cycle_name} for "
                    f"{len(calculation.employees)} employee(s), total base pay "
                    f"{calculation.total_base_pay}"
                ),
                new_values={
                    "employee_count": len(calculation.employees),
                    "created": calculation.created_count,
                    "updated": len(calculation.employees) - calculation.created_count,
                    "total_base_pay": calculation.total_base_pay,
                },
            )
        )
        return calculation
