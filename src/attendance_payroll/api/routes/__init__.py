"""API routes."""

from attendance_payroll.api.routes.audit_logs import router as audit_logs_router
from attendance_payroll.api.routes.health import router as health_router
from attendance_payroll.api.routes.payroll_cycles import router as payroll_cycles_router
from attendance_payroll.api.routes.payroll_details import router as payroll_details_router

__all__ = [
    "audit_logs_router",
    "health_router",
    "payroll_cycles_router",
    "payroll_details_router",
]
