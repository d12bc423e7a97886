"""Payroll services."""

from attendance_payroll.services.adjustment_service import AdjustmentResult, AdjustmentService
from attendance_payroll.services.attendance_source import AttendanceSource
from attendance_payroll.services.audit_trail import (
    AuditContext,
    AuditRecord,
    AuditTrail,
    extract_ip_address,
)
from attendance_payroll.services.calculation_service import (
    CycleCalculation,
    PayrollCalculationService,
)
from attendance_payroll.services.changes import ChangesSummary, create_changes_summary
from attendance_payroll.services.cycle_service import CycleService
from attendance_payroll.services.detail_store import PayrollDetailStore
from attendance_payroll.services.finalizer import (
    CycleFinalizer,
    CycleTotals,
    FinalizationSummary,
    FinalizationValidation,
    ValidationIssue,
)
from attendance_payroll.services.state_machine import CycleStateMachine, CycleStatus

__all__ = [
    "AdjustmentResult",
    "AdjustmentService",
    "AttendanceSource",
    "AuditContext",
    "AuditRecord",
    "AuditTrail",
    "ChangesSummary",
    "CycleCalculation",
    "CycleFinalizer",
    "CycleService",
    "CycleStateMachine",
    "CycleStatus",
    "CycleTotals",
    "FinalizationSummary",
    "FinalizationValidation",
    "PayrollCalculationService",
    "PayrollDetailStore",
    "ValidationIssue",
    "create_changes_summary",
    "extract_ip_address",
]
