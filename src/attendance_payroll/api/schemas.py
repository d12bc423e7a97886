"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Payroll cycle schemas
# ============================================================================


class PayrollCycleCreate(BaseModel):
    """Schema for creating a payroll cycle."""

    name: str
    period_start: date
    period_end: date


class PayrollCycleResponse(BaseModel):
    """Schema for payroll cycle response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_cycle_id: UUID
    name: str
    period_start: date
    period_end: date
    status: str
    created_at: datetime
    finalized_at: datetime | None = None
    finalized_by: UUID | None = None
    total_employees: int | None = None
    total_amount: Decimal | None = None


class PayrollCycleListResponse(BaseModel):
    """Schema for listing payroll cycles."""

    items: list[PayrollCycleResponse]
    total: int


class CalculationResponse(BaseModel):
    """Result of calculating base pay for a cycle."""

    payroll_cycle_id: UUID
    employee_count: int
    total_base_pay: Decimal
    results: list[dict[str, Any]]
    audit_log_created: bool


class ResetResponse(BaseModel):
    payroll_cycle_id: UUID
    removed: int


class FinalizeResponse(BaseModel):
    message: str
    finalization_summary: dict[str, Any]


# ============================================================================
# Payroll detail schemas
# ============================================================================


class PayrollDetailResponse(BaseModel):
    """Schema for payroll detail response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_detail_id: UUID
    payroll_cycle_id: UUID
    employee_id: UUID
    base_pay: Decimal
    overtime_hours: Decimal
    overtime_rate: Decimal
    overtime_pay: Decimal
    bonus: Decimal
    bonus_reason: str | None = None
    deduction: Decimal
    deduction_reason: str | None = None
    net_pay: Decimal
    total_hours: Decimal
    total_days_worked: int
    calculation_method: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class PayrollDetailListResponse(BaseModel):
    items: list[PayrollDetailResponse]
    total: int


class BonusRequest(BaseModel):
    """Bonus amount with its justification. A positive bonus needs a reason."""

    bonus: Decimal
    bonus_reason: str | None = None


class DeductionRequest(BaseModel):
    """Deduction amount with its justification."""

    deduction: Decimal
    deduction_reason: str | None = None


class OvertimeRequest(BaseModel):
    hours: Decimal
    rate: Decimal


class PreviewRequest(BaseModel):
    """Would-be bonus/deduction values. Omitted fields keep their current value."""

    bonus: Decimal | None = None
    bonus_reason: str | None = None
    deduction: Decimal | None = None
    deduction_reason: str | None = None


class AdjustmentResponse(BaseModel):
    detail: PayrollDetailResponse
    changes: dict[str, Any]
    audit_log_created: bool


# ============================================================================
# Audit log schemas
# ============================================================================


class AuditLogResponse(BaseModel):
    """Schema for an audit log entry."""

    model_config = ConfigDict(from_attributes=True)

    audit_log_id: int
    actor_user_id: UUID
    action: str
    table_name: str
    record_id: str | None = None
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    description: str
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    items: list[AuditLogResponse]
    total: int


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    error: str
    code: str | None = None
    details: list[Any] | None = Field(default=None)
