"""ORM models."""

from attendance_payroll.models.attendance import AttendanceInterval, Employee
from attendance_payroll.models.audit import AUDIT_ACTIONS, AuditLogEntry
from attendance_payroll.models.base import Base, TimestampMixin
from attendance_payroll.models.payroll import PayrollCycle, PayrollDetail

__all__ = [
    "AUDIT_ACTIONS",
    "AttendanceInterval",
    "AuditLogEntry",
    "Base",
    "Employee",
    "PayrollCycle",
    "PayrollDetail",
    "TimestampMixin",
]
