"""Payroll cycle API endpoints."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from attendance_payroll.api.dependencies import Actor, Audit, DbSession
from attendance_payroll.api.schemas import (
    CalculationResponse,
    ErrorResponse,
    FinalizeResponse,
    PayrollCycleCreate,
    PayrollCycleListResponse,
    PayrollCycleResponse,
    PayrollDetailListResponse,
    PayrollDetailResponse,
    ResetResponse,
)
from attendance_payroll.services.calculation_service import PayrollCalculationService
from attendance_payroll.services.cycle_service import CycleService
from attendance_payroll.services.detail_store import PayrollDetailStore
from attendance_payroll.services.finalizer import CycleFinalizer

router = APIRouter(prefix="/payroll-cycles", tags=["payroll-cycles"])


# ============================================================================
# Payroll cycle CRUD
# ============================================================================


@router.post(
    "",
    response_model=PayrollCycleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_payroll_cycle(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    payload: PayrollCycleCreate,
) -> PayrollCycleResponse:
    """Create a new payroll cycle in active status."""
    cycle = await CycleService(db, audit).create_cycle(
        payload.name, payload.period_start, payload.period_end, actor
    )
    return PayrollCycleResponse.model_validate(cycle)


@router.get("", response_model=PayrollCycleListResponse)
async def list_payroll_cycles(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> PayrollCycleListResponse:
    """List payroll cycles, newest period first."""
    cycles = await CycleService(db, audit).list_cycles(status_filter)
    return PayrollCycleListResponse(
        items=[PayrollCycleResponse.model_validate(c) for c in cycles],
        total=len(cycles),
    )


@router.get(
    "/{cycle_id}",
    response_model=PayrollCycleResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_cycle(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    cycle_id: Annotated[UUID, Path()],
) -> PayrollCycleResponse:
    """Get a specific payroll cycle by ID."""
    cycle = await CycleService(db, audit).get_cycle(cycle_id)
    return PayrollCycleResponse.model_validate(cycle)


# ============================================================================
# Calculation and details
# ============================================================================


@router.post(
    "/{cycle_id}/calculate",
    response_model=CalculationResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def calculate_payroll_cycle(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    cycle_id: Annotated[UUID, Path()],
) -> CalculationResponse:
    """Calculate base pay for every employee with attendance. Safe to re-run."""
    calculation = await PayrollCalculationService(db, audit).calculate_cycle(cycle_id, actor)
    return CalculationResponse(
        payroll_cycle_id=cycle_id,
        employee_count=len(calculation.employees),
        total_base_pay=calculation.total_base_pay,
        results=[e.to_dict() for e in calculation.employees],
        audit_log_created=calculation.audit_log_created,
    )


@router.get(
    "/{cycle_id}/details",
    response_model=PayrollDetailListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_payroll_details(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    cycle_id: Annotated[UUID, Path()],
) -> PayrollDetailListResponse:
    """List the payroll details of a cycle."""
    await CycleService(db, audit).get_cycle(cycle_id)
    details = await PayrollDetailStore(db).list_by_cycle(cycle_id)
    return PayrollDetailListResponse(
        items=[PayrollDetailResponse.model_validate(d) for d in details],
        total=len(details),
    )


@router.delete(
    "/{cycle_id}/details",
    response_model=ResetResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def reset_payroll_cycle(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    cycle_id: Annotated[UUID, Path()],
) -> ResetResponse:
    """Delete all details of an active cycle so it can be recalculated."""
    removed = await CycleService(db, audit).reset_cycle(cycle_id, actor)
    return ResetResponse(payroll_cycle_id=cycle_id, removed=removed)


# ============================================================================
# Summary and finalization
# ============================================================================


@router.get(
    "/{cycle_id}/summary",
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_cycle_summary(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    cycle_id: Annotated[UUID, Path()],
) -> dict[str, Any]:
    """Totals, finalization readiness and per-employee rows."""
    summary = await CycleFinalizer(db, audit).get_summary(cycle_id)
    return summary.to_dict()


@router.post(
    "/{cycle_id}/finalize",
    response_model=FinalizeResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def finalize_payroll_cycle(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    cycle_id: Annotated[UUID, Path()],
) -> FinalizeResponse:
    """Finalize a cycle. Irreversible; 409 if already completed or blocked."""
    summary = await CycleFinalizer(db, audit).finalize(cycle_id, actor)
    return FinalizeResponse(
        message=f"Payroll cycle '{summary.cycle.name}' finalized",
        finalization_summary=summary.to_dict(),
    )
