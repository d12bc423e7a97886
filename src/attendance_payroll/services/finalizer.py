"""Cycle validation and the one-way finalize transition."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators import to_money
from attendance_payroll.database import write_transaction
from attendance_payroll.errors import (
    AlreadyFinalizedError,
    FinalizationBlockedError,
    NotFoundError,
)
from attendance_payroll.models import PayrollCycle, PayrollDetail
from attendance_payroll.models.base import utcnow
from attendance_payroll.services.attendance_source import AttendanceSource
from attendance_payroll.services.audit_trail import AuditContext, AuditRecord, AuditTrail
from attendance_payroll.services.detail_store import PayrollDetailStore
from attendance_payroll.services.state_machine import CycleStateMachine, CycleStatus

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


# ============================================================================
# Result types
# ============================================================================


@dataclass(frozen=True)
class ValidationIssue:
    """A reason a cycle cannot be finalized."""

    type: str  # missing_data, negative_net_pay
    employee_id: UUID
    employee_name: str
    message: str
    net_pay: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "employee_id": str(self.employee_id),
            "employee_name": self.employee_name,
            "net_pay": str(self.net_pay) if self.net_pay is not None else None,
            "message": self.message,
        }


@dataclass
class FinalizationValidation:
    cycle_status: str
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def can_finalize(self) -> bool:
        return not self.issues and CycleStateMachine.can_transition(
            self.cycle_status, CycleStatus.COMPLETED
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "can_finalize": self.can_finalize,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass(frozen=True)
class CycleTotals:
    total_employees: int = 0
    total_base_pay: Decimal = ZERO
    total_overtime_pay: Decimal = ZERO
    total_bonus: Decimal = ZERO
    total_deduction: Decimal = ZERO
    total_net_pay: Decimal = ZERO

    @property
    def average_net_pay(self) -> Decimal:
        if not self.total_employees:
            return ZERO
        return to_money(self.total_net_pay / self.total_employees)

    @classmethod
    def from_details(cls, details: Iterable[PayrollDetail]) -> CycleTotals:
        details = list(details)
        return cls(
            total_employees=len(details),
            total_base_pay=sum((d.base_pay for d in details), ZERO),
            total_overtime_pay=sum((d.overtime_pay for d in details), ZERO),
            total_bonus=sum((d.bonus for d in details), ZERO),
            total_deduction=sum((d.deduction for d in details), ZERO),
            total_net_pay=sum((d.net_pay for d in details), ZERO),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_employees": self.total_employees,
            "total_base_pay": str(self.total_base_pay),
            "total_overtime_pay": str(self.total_overtime_pay),
            "total_bonus": str(self.total_bonus),
            "total_deduction": str(self.total_deduction),
            "total_net_pay": str(self.total_net_pay),
            "average_net_pay": str(self.average_net_pay),
        }


def _cycle_info(cycle: PayrollCycle) -> dict[str, Any]:
    return {
        "id": str(cycle.payroll_cycle_id),
        "name": cycle.name,
        "period_start": cycle.period_start.isoformat(),
        "period_end": cycle.period_end.isoformat(),
        "status": cycle.status,
        "finalized_at": cycle.finalized_at.isoformat() if cycle.finalized_at else None,
        "finalized_by": str(cycle.finalized_by) if cycle.finalized_by else None,
        "total_employees": cycle.total_employees,
        "total_amount": str(cycle.total_amount) if cycle.total_amount is not None else None,
    }


@dataclass
class FinalizationSummary:
    cycle: PayrollCycle
    totals: CycleTotals
    finalized_at: datetime
    finalized_by: UUID
    validation_passed: bool = True
    audit_log_created: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycle_info": _cycle_info(self.cycle),
            "totals": self.totals.to_dict(),
            "finalization_details": {
                "finalized_at": self.finalized_at.isoformat(),
                "finalized_by": str(self.finalized_by),
                "validation_passed": self.validation_passed,
                "audit_log_created": self.audit_log_created,
            },
        }


@dataclass
class CycleSummary:
    cycle: PayrollCycle
    totals: CycleTotals
    validation: FinalizationValidation
    employee_details: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycle_info": _cycle_info(self.cycle),
            "totals": self.totals.to_dict(),
            "validation": self.validation.to_dict(),
            "employee_details": self.employee_details,
        }


# ============================================================================
# Finalizer
# ============================================================================


class CycleFinalizer:
    """Validates a cycle and moves it from active to completed.

    Finalize holds the cycle row FOR UPDATE for its whole transaction and
    flips the status with a conditional update, so of two concurrent
    callers exactly one succeeds and the other gets AlreadyFinalizedError.
    """

    def __init__(self, session: AsyncSession, audit: AuditTrail):
        self.session = session
        self.audit = audit
        self.store = PayrollDetailStore(session)
        self.source = AttendanceSource(session)

    async def _load_cycle(self, cycle_id: UUID, lock: bool = False) -> PayrollCycle:
        query = select(PayrollCycle).where(PayrollCycle.payroll_cycle_id == cycle_id)
        if lock:
            query = query.with_for_update()
        result = await self.session.execute(
            query.execution_options(populate_existing=True)
        )
        cycle = result.scalar_one_or_none()
        if cycle is None:
            raise NotFoundError("Payroll cycle", cycle_id)
        return cycle

    async def _collect_issues(
        self,
        cycle: PayrollCycle,
        details: list[PayrollDetail],
    ) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        employees, _ = await self.source.employees_with_attendance(
            cycle.period_start, cycle.period_end
        )
        with_detail = {d.employee_id for d in details}
        for employee in employees:
            if employee.employee_id not in with_detail:
                issues.append(
                    ValidationIssue(
                        type="missing_data",
                        employee_id=employee.employee_id,
                        employee_name=employee.full_name,
                        message=(
                            f"{employee.full_name} has attendance in the period "
                            "but no payroll detail"
                        ),
                    )
                )

        names = await self.source.employee_names([d.employee_id for d in details])
        for detail in details:
            if detail.net_pay < 0:
                name = names.get(detail.employee_id, str(detail.employee_id))
                issues.append(
                    ValidationIssue(
                        type="negative_net_pay",
                        employee_id=detail.employee_id,
                        employee_name=name,
                        net_pay=detail.net_pay,
                        message=f"{name} has negative net pay {detail.net_pay}",
                    )
                )
        return issues

    async def validate_for_finalization(self, cycle_id: UUID) -> FinalizationValidation:
        """Collect every issue that would block finalization. Read-only."""
        cycle = await self._load_cycle(cycle_id)
        details = await self.store.list_by_cycle(cycle_id)
        return FinalizationValidation(
            cycle_status=cycle.status,
            issues=await self._collect_issues(cycle, details),
        )

    async def finalize(self, cycle_id: UUID, context: AuditContext) -> FinalizationSummary:
        """Lock the cycle for good.

        Raises:
            NotFoundError: If the cycle does not exist
            AlreadyFinalizedError: If the cycle is already completed
            FinalizationBlockedError: If validation finds any issue
        """
        finalized_by = context.actor_user_id

        async with write_transaction(self.session, "Payroll cycle", cycle_id):
            cycle = await self._load_cycle(cycle_id, lock=True)
            if cycle.status == CycleStatus.COMPLETED:
                raise AlreadyFinalizedError(cycle_id, cycle.finalized_at, cycle.finalized_by)
            CycleStateMachine.validate_transition(cycle.status, CycleStatus.COMPLETED)

            details = await self.store.list_by_cycle(cycle_id)
            issues = await self._collect_issues(cycle, details)
            if issues:
                raise FinalizationBlockedError(cycle_id, issues)

            totals = CycleTotals.from_details(details)
            finalized_at = utcnow()

            # Conditional update: only succeeds if still active
            result = await self.session.execute(
                update(PayrollCycle)
                .where(
                    PayrollCycle.payroll_cycle_id == cycle_id,
                    PayrollCycle.status == CycleStatus.ACTIVE.value,
                )
                .values(
                    status=CycleStatus.COMPLETED.value,
                    finalized_at=finalized_at,
                    finalized_by=finalized_by,
                    total_employees=totals.total_employees,
                    total_amount=totals.total_net_pay,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise AlreadyFinalizedError(cycle_id)

            await self.session.refresh(cycle)
            cycle_name = cycle.name

        logger.info(
            "Finalized payroll cycle %s: %d employee(s), net pay %s",
            cycle_id,
            totals.total_employees,
            totals.total_net_pay,
        )

        summary = FinalizationSummary(
            cycle=cycle,
            totals=totals,
            finalized_at=finalized_at,
            finalized_by=finalized_by,
        )
        summary.audit_log_created = await self.audit.record(
            AuditRecord(
                context=context,
                action="CALCULATE",
                table_name="payroll_cycle",
                record_id=cycle_id,
                description=(
                    f"Finalized payroll cycle {cycle_name} "
                    f"({totals.total_employees} employee(s), total {totals.total_net_pay})"
                ),
                old_values={
                    "status": CycleStatus.ACTIVE.value,
                    "finalized_at": None,
                    "finalized_by": None,
                },
                new_values={
                    "status": CycleStatus.COMPLETED.value,
                    "finalized_at": finalized_at,
                    "finalized_by": finalized_by,
                    "total_employees": totals.total_employees,
                    "total_amount": totals.total_net_pay,
                    "totals": totals.to_dict(),
                    "validation_passed": True,
                },
            )
        )
        return summary

    async def get_summary(self, cycle_id: UUID) -> CycleSummary:
        """Totals, validation and per-employee rows for a cycle. Read-only."""
        cycle = await self._load_cycle(cycle_id)
        details = await self.store.list_by_cycle(cycle_id)
        names = await self.source.employee_names([d.employee_id for d in details])
        validation = FinalizationValidation(
            cycle_status=cycle.status,
            issues=await self._collect_issues(cycle, details),
        )
        rows = [
            {
                "payroll_detail_id": str(d.payroll_detail_id),
                "employee_id": str(d.employee_id),
                "employee_name": names.get(d.employee_id),
                "base_pay": str(d.base_pay),
                "overtime_pay": str(d.overtime_pay),
                "bonus": str(d.bonus),
                "deduction": str(d.deduction),
                "net_pay": str(d.net_pay),
                "total_hours": str(d.total_hours),
                "total_days_worked": d.total_days_worked,
                "calculation_method": d.calculation_method,
            }
            for d in sorted(details, key=lambda d: names.get(d.employee_id, ""))
        ]
        return CycleSummary(
            cycle=cycle,
            totals=CycleTotals.from_details(details),
            validation=validation,
            employee_details=rows,
        )
