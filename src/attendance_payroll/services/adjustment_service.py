"""Bonus, deduction and overtime adjustments on a payroll detail."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators import compute_net_pay, compute_overtime_pay, to_money
from attendance_payroll.database import write_transaction
from attendance_payroll.errors import NotFoundError, ValidationError
from attendance_payroll.models import PayrollDetail
from attendance_payroll.services.attendance_source import AttendanceSource
from attendance_payroll.services.audit_trail import AuditContext, AuditRecord, AuditTrail
from attendance_payroll.services.changes import ChangesSummary, create_changes_summary
from attendance_payroll.services.detail_store import PayrollDetailStore

logger = logging.getLogger(__name__)

MAX_AMOUNT = Decimal("9999999999.99")
MAX_OVERTIME_HOURS = Decimal("999999.99")
MAX_REASON_LENGTH = 500


def _to_decimal(value: Any) -> Decimal | None:
    """The value as a finite Decimal, or None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return amount if amount.is_finite() else None


def _parse_amount(value: Any, label: str, maximum: Decimal, errors: list[str]) -> Decimal | None:
    amount = _to_decimal(value)
    if amount is None:
        errors.append(f"{label} must be a finite number")
        return None
    if amount < 0:
        errors.append(f"{label} must be greater than or equal to 0")
        return None
    if amount > maximum:
        errors.append(f"{label} must not exceed {maximum}")
        return None
    return to_money(amount)


def validate_adjustment(
    amount: Any,
    reason: str | None,
    label: str,
) -> tuple[Decimal, str | None]:
    """Validate an amount and its justification.

    Returns the amount in cents and the trimmed reason, or raises
    ValidationError listing every broken rule. A zero amount carries no
    reason. Reason rules apply to any positive number, in range or not.
    """
    errors: list[str] = []
    parsed = _parse_amount(amount, label, MAX_AMOUNT, errors)
    raw = _to_decimal(amount)

    cleaned = reason.strip() if isinstance(reason, str) else None
    if raw is not None and to_money(raw) > 0:
        if not cleaned:
            errors.append(f"{label} reason is required when {label.lower()} is greater than 0")
        elif len(cleaned) > MAX_REASON_LENGTH:
            errors.append(f"{label} reason must be at most {MAX_REASON_LENGTH} characters")

    if errors or parsed is None:
        raise ValidationError(errors)
    return parsed, (cleaned if parsed > 0 else None)


def validate_overtime(hours: Any, rate: Any) -> tuple[Decimal, Decimal]:
    errors: list[str] = []
    parsed_hours = _parse_amount(hours, "Overtime hours", MAX_OVERTIME_HOURS, errors)
    parsed_rate = _parse_amount(rate, "Overtime rate", MAX_AMOUNT, errors)
    if errors or parsed_hours is None or parsed_rate is None:
        raise ValidationError(errors)
    return parsed_hours, parsed_rate


@dataclass
class AdjustmentResult:
    """Outcome of one adjustment."""

    detail: PayrollDetail
    old_values: dict[str, Any]
    new_values: dict[str, Any]
    changes: ChangesSummary
    audit_log_created: bool


class AdjustmentService:
    """Validated edits of the manual parts of a payroll detail.

    Each edit runs in its own transaction: the cycle row is share-locked,
    the detail row locked for update, and the write is version-checked.
    The audit entry is recorded only after the commit succeeds.
    """

    def __init__(self, session: AsyncSession, audit: AuditTrail):
        self.session = session
        self.audit = audit
        self.store = PayrollDetailStore(session)
        self.source = AttendanceSource(session)

    async def set_bonus(
        self,
        detail_id: UUID,
        amount: Any,
        reason: str | None,
        context: AuditContext,
    ) -> AdjustmentResult:
        amount, reason = validate_adjustment(amount, reason, "Bonus")
        return await self._apply("bonus", detail_id, amount, reason, context, "UPDATE")

    async def set_deduction(
        self,
        detail_id: UUID,
        amount: Any,
        reason: str | None,
        context: AuditContext,
    ) -> AdjustmentResult:
        amount, reason = validate_adjustment(amount, reason, "Deduction")
        return await self._apply("deduction", detail_id, amount, reason, context, "UPDATE")

    async def clear_bonus(self, detail_id: UUID, context: AuditContext) -> AdjustmentResult:
        return await self._apply("bonus", detail_id, Decimal("0.00"), None, context, "DELETE")

    async def clear_deduction(self, detail_id: UUID, context: AuditContext) -> AdjustmentResult:
        return await self._apply("deduction", detail_id, Decimal("0.00"), None, context, "DELETE")

    async def set_overtime(
        self,
        detail_id: UUID,
        hours: Any,
        rate: Any,
        context: AuditContext,
    ) -> AdjustmentResult:
        """Set the manually entered overtime hours and hourly overtime rate."""
        hours, rate = validate_overtime(hours, rate)

        async with write_transaction(self.session, "Payroll detail", detail_id):
            detail = await self.store.lock_detail(detail_id, "set overtime")
            old_values = detail.adjustment_snapshot()
            detail.overtime_hours = hours
            detail.overtime_rate = rate
            detail.recompute_net_pay()
            new_values = detail.adjustment_snapshot()
            employee_name = await self._employee_name(detail)

        delta = new_values["overtime_pay"] - old_values["overtime_pay"]
        description = (
            f"Overtime for {employee_name} set to {hours} h at {rate} "
            f"(overtime pay {old_values['overtime_pay']} -> {new_values['overtime_pay']}, "
            f"{delta:+})"
        )
        return await self._finish(
            detail, old_values, new_values, {}, employee_name, description, "UPDATE", context
        )

    async def preview(
        self,
        detail_id: UUID,
        bonus: Any = None,
        bonus_reason: str | None = None,
        deduction: Any = None,
        deduction_reason: str | None = None,
    ) -> ChangesSummary:
        """Changes summary for a would-be adjustment. Nothing is written."""
        detail = await self.store.get_by_id(detail_id)
        if detail is None:
            raise NotFoundError("Payroll detail", detail_id)

        errors: list[str] = []
        new_bonus, new_deduction = detail.bonus, detail.deduction
        if bonus is not None:
            try:
                new_bonus, bonus_reason = validate_adjustment(bonus, bonus_reason, "Bonus")
            except ValidationError as exc:
                errors.extend(exc.errors)
        if deduction is not None:
            try:
                new_deduction, deduction_reason = validate_adjustment(
                    deduction, deduction_reason, "Deduction"
                )
            except ValidationError as exc:
                errors.extend(exc.errors)
        if errors:
            raise ValidationError(errors)

        old_values = detail.adjustment_snapshot()
        new_values = {
            "bonus": new_bonus,
            "deduction": new_deduction,
            "net_pay": compute_net_pay(
                detail.base_pay,
                compute_overtime_pay(detail.overtime_hours, detail.overtime_rate),
                new_bonus,
                new_deduction,
            ),
        }
        return create_changes_summary(
            old_values,
            new_values,
            reasons={"bonus_reason": bonus_reason, "deduction_reason": deduction_reason},
            employee_name=await self._employee_name(detail),
        )

    async def _apply(
        self,
        field_name: str,
        detail_id: UUID,
        amount: Decimal,
        reason: str | None,
        context: AuditContext,
        action: str,
    ) -> AdjustmentResult:
        reason_field = f"{field_name}_reason"

        async with write_transaction(self.session, "Payroll detail", detail_id):
            verb = "clear" if action == "DELETE" else "set"
            detail = await self.store.lock_detail(detail_id, f"{verb} {field_name}")
            snapshot = detail.adjustment_snapshot()
            setattr(detail, field_name, amount)
            setattr(detail, reason_field, reason)
            detail.recompute_net_pay()
            employee_name = await self._employee_name(detail)

        old_values = {
            field_name: snapshot[field_name],
            reason_field: snapshot[reason_field],
            "net_pay": snapshot["net_pay"],
        }
        new_values = {
            field_name: getattr(detail, field_name),
            reason_field: getattr(detail, reason_field),
            "net_pay": detail.net_pay,
        }

        label = field_name.capitalize()
        delta = new_values[field_name] - old_values[field_name]
        if action == "DELETE":
            description = (
                f"{label} for {employee_name} cleared (was {old_values[field_name]}, {delta:+})"
            )
        else:
            description = (
                f"{label} for {employee_name} set to {amount} "
                f"(was {old_values[field_name]}, {delta:+})"
            )
        return await self._finish(
            detail,
            old_values,
            new_values,
            {reason_field: reason},
            employee_name,
            description,
            action,
            context,
        )

    async def _finish(
        self,
        detail: PayrollDetail,
        old_values: dict[str, Any],
        new_values: dict[str, Any],
        reasons: dict[str, str | None],
        employee_name: str,
        description: str,
        action: str,
        context: AuditContext,
    ) -> AdjustmentResult:
        logger.info("%s", description)
        recorded = await self.audit.record(
            AuditRecord(
                context=context,
                action=action,
                table_name="payroll_detail",
                record_id=detail.payroll_detail_id,
                description=description,
                old_values=old_values,
                new_values=new_values,
            )
        )
        return AdjustmentResult(
            detail=detail,
            old_values=old_values,
            new_values=new_values,
            changes=create_changes_summary(old_values, new_values, reasons, employee_name),
            audit_log_created=recorded,
        )

    async def _employee_name(self, detail: PayrollDetail) -> str:
        employee = await self.source.get_employee(detail.employee_id)
        return employee.full_name if employee else str(detail.employee_id)
