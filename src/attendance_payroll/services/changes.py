"""Human-readable diff of a bonus/deduction adjustment."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from attendance_payroll.calculators import to_money

ADJUSTMENT_FIELDS = ("bonus", "deduction")

NO_REASON = "no reason given"


def _money(value: Any) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return to_money(value)


@dataclass(frozen=True)
class ChangeItem:
    """One adjusted field."""

    field: str
    kind: str  # added, removed, changed
    old_value: Decimal
    new_value: Decimal
    reason: str | None = None

    @property
    def delta(self) -> Decimal:
        return self.new_value - self.old_value

    @property
    def text(self) -> str:
        label = self.field.capitalize()
        if self.kind == "added":
            return f"{label} added: {self.new_value} ({self.reason or NO_REASON})"
        if self.kind == "removed":
            return f"{label} removed: {self.old_value}"
        return (
            f"{label} changed from {self.old_value} to {self.new_value} "
            f"({self.reason or NO_REASON})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "kind": self.kind,
            "old_value": str(self.old_value),
            "new_value": str(self.new_value),
            "delta": str(self.delta),
            "reason": self.reason,
            "text": self.text,
        }


@dataclass(frozen=True)
class NetPayImpact:
    """Signed effect of the change on net pay."""

    old_net_pay: Decimal
    new_net_pay: Decimal

    @property
    def difference(self) -> Decimal:
        return self.new_net_pay - self.old_net_pay

    @property
    def direction(self) -> str:
        if self.difference > 0:
            return "increase"
        if self.difference < 0:
            return "decrease"
        return "unchanged"

    @property
    def text(self) -> str:
        if self.direction == "increase":
            return f"Net pay increases by {self.difference}"
        if self.direction == "decrease":
            return f"Net pay decreases by {abs(self.difference)}"
        return "Net pay is unchanged"

    def to_dict(self) -> dict[str, Any]:
        return {
            "old_net_pay": str(self.old_net_pay),
            "new_net_pay": str(self.new_net_pay),
            "difference": str(self.difference),
            "direction": self.direction,
            "text": self.text,
        }


@dataclass(frozen=True)
class ChangesSummary:
    title: str
    net_pay_impact: NetPayImpact
    changes: list[ChangeItem] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "changes": [c.to_dict() for c in self.changes],
            "net_pay_impact": self.net_pay_impact.to_dict(),
        }


def create_changes_summary(
    old_values: Mapping[str, Any],
    new_values: Mapping[str, Any],
    reasons: Mapping[str, str | None] | None = None,
    employee_name: str | None = None,
) -> ChangesSummary:
    """Compare two adjustment snapshots.

    ``old_values`` and ``new_values`` hold bonus, deduction and net_pay.
    ``reasons`` maps ``bonus_reason``/``deduction_reason`` to the
    justification of the new value. Pure; nothing is read or written.
    """
    reasons = reasons or {}
    changes: list[ChangeItem] = []

    for name in ADJUSTMENT_FIELDS:
        old = _money(old_values.get(name))
        new = _money(new_values.get(name))
        if old == new:
            continue
        if old == 0 and new > 0:
            kind = "added"
        elif old > 0 and new == 0:
            kind = "removed"
        else:
            kind = "changed"
        reason = reasons.get(f"{name}_reason") if kind != "removed" else None
        changes.append(ChangeItem(field=name, kind=kind, old_value=old, new_value=new, reason=reason))

    title = "Payroll changes"
    if employee_name:
        title = f"Payroll changes for {employee_name}"

    return ChangesSummary(
        title=title,
        changes=changes,
        net_pay_impact=NetPayImpact(
            old_net_pay=_money(old_values.get("net_pay")),
            new_net_pay=_money(new_values.get("net_pay")),
        ),
    )
