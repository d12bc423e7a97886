"""Creation, lookup and reset of payroll cycles."""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.database import write_transaction
from attendance_payroll.errors import NotFoundError, ValidationError
from attendance_payroll.models import PayrollCycle
from attendance_payroll.services.audit_trail import AuditContext, AuditRecord, AuditTrail
from attendance_payroll.services.detail_store import PayrollDetailStore
from attendance_payroll.services.state_machine import CycleStatus

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200


class CycleService:
    """Payroll cycle lifecycle outside of calculation and finalization."""

    def __init__(self, session: AsyncSession, audit: AuditTrail):
        self.session = session
        self.audit = audit
        self.store = PayrollDetailStore(session)

    async def create_cycle(
        self,
        name: str,
        period_start: date,
        period_end: date,
        context: AuditContext,
    ) -> PayrollCycle:
        """Create an active cycle.

        Raises ValidationError listing every problem: blank or over-long
        name, start after end, overlap with another cycle, duplicate name.
        """
        errors: list[str] = []
        name = (name or "").strip()
        if not name:
            errors.append("Cycle name is required")
        elif len(name) > MAX_NAME_LENGTH:
            errors.append(f"Cycle name must be at most {MAX_NAME_LENGTH} characters")
        if period_start > period_end:
            errors.append("period_start must be on or before period_end")

        if period_start <= period_end:
            overlapping = await self.session.scalar(
                select(PayrollCycle.name)
                .where(
                    PayrollCycle.period_start <= period_end,
                    PayrollCycle.period_end >= period_start,
                )
                .limit(1)
            )
            if overlapping is not None:
                errors.append(f"Period overlaps existing payroll cycle '{overlapping}'")
        if name:
            duplicate = await self.session.scalar(
                select(func.count())
                .select_from(PayrollCycle)
                .where(PayrollCycle.name == name)
            )
            if duplicate:
                errors.append(f"A payroll cycle named '{name}' already exists")

        if errors:
            raise ValidationError(errors)

        cycle = PayrollCycle(
            payroll_cycle_id=uuid4(),
            name=name,
            period_start=period_start,
            period_end=period_end,
            status=CycleStatus.ACTIVE.value,
        )
        async with write_transaction(self.session, "Payroll cycle", cycle.payroll_cycle_id):
            self.session.add(cycle)

        logger.info("Created payroll cycle %s (%s to %s)", name, period_start, period_end)
        await self.audit.record(
            AuditRecord(
                context=context,
                action="CREATE",
                table_name="payroll_cycle",
                record_id=cycle.payroll_cycle_id,
                description=f"Created payroll cycle {name} ({period_start} to {period_end})",
                new_values={
                    "name": name,
                    "period_start": period_start,
                    "period_end": period_end,
                    "status": cycle.status,
                },
            )
        )
        return cycle

    async def list_cycles(self, status: str | None = None) -> list[PayrollCycle]:
        query = select(PayrollCycle)
        if status:
            query = query.where(PayrollCycle.status == status)
        result = await self.session.execute(
            query.order_by(PayrollCycle.period_start.desc(), PayrollCycle.name)
        )
        return list(result.scalars().all())

    async def get_cycle(self, cycle_id: UUID) -> PayrollCycle:
        cycle = await self.session.get(PayrollCycle, cycle_id)
        if cycle is None:
            raise NotFoundError("Payroll cycle", cycle_id)
        return cycle

    async def reset_cycle(self, cycle_id: UUID, context: AuditContext) -> int:
        """Delete every detail of an active cycle so it can be recalculated."""
        async with write_transaction(self.session, "Payroll cycle", cycle_id):
            removed = await self.store.delete_by_cycle(cycle_id)
            cycle = await self.session.get(PayrollCycle, cycle_id)
            cycle_name = cycle.name if cycle else str(cycle_id)

        logger.info("Reset payroll cycle %s: %d detail(s) removed", cycle_id, removed)
        await self.audit.record(
            AuditRecord(
                context=context,
                action="DELETE",
                table_name="payroll_detail",
                record_id=cycle_id,
                description=f"Reset payroll cycle {cycle_name}, removing {removed} payroll detail(s)",
                old_values={"payroll_cycle_id": cycle_id, "detail_count": removed},
            )
        )
        return removed
