"""Payroll detail API endpoints: lookup and adjustments."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Path

from attendance_payroll.api.dependencies import Actor, Audit, DbSession
from attendance_payroll.api.schemas import (
    AdjustmentResponse,
    BonusRequest,
    DeductionRequest,
    ErrorResponse,
    OvertimeRequest,
    PayrollDetailResponse,
    PreviewRequest,
)
from attendance_payroll.errors import NotFoundError
from attendance_payroll.services.adjustment_service import AdjustmentResult, AdjustmentService
from attendance_payroll.services.detail_store import PayrollDetailStore

router = APIRouter(prefix="/payroll-details", tags=["payroll-details"])

ADJUSTMENT_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _adjustment_response(result: AdjustmentResult) -> AdjustmentResponse:
    return AdjustmentResponse(
        detail=PayrollDetailResponse.model_validate(result.detail),
        changes=result.changes.to_dict(),
        audit_log_created=result.audit_log_created,
    )


@router.get(
    "/{detail_id}",
    response_model=PayrollDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_detail(
    db: DbSession,
    actor: Actor,
    detail_id: Annotated[UUID, Path()],
) -> PayrollDetailResponse:
    """Get a specific payroll detail by ID."""
    detail = await PayrollDetailStore(db).get_by_id(detail_id)
    if detail is None:
        raise NotFoundError("Payroll detail", detail_id)
    return PayrollDetailResponse.model_validate(detail)


# ============================================================================
# Bonus
# ============================================================================


@router.put("/{detail_id}/bonus", response_model=AdjustmentResponse, responses=ADJUSTMENT_RESPONSES)
async def set_bonus(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    detail_id: Annotated[UUID, Path()],
    payload: BonusRequest,
) -> AdjustmentResponse:
    """Set the bonus. A positive amount requires a reason."""
    result = await AdjustmentService(db, audit).set_bonus(
        detail_id, payload.bonus, payload.bonus_reason, actor
    )
    return _adjustment_response(result)


@router.delete(
    "/{detail_id}/bonus", response_model=AdjustmentResponse, responses=ADJUSTMENT_RESPONSES
)
async def clear_bonus(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    detail_id: Annotated[UUID, Path()],
) -> AdjustmentResponse:
    """Remove the bonus and its reason."""
    result = await AdjustmentService(db, audit).clear_bonus(detail_id, actor)
    return _adjustment_response(result)


# ============================================================================
# Deduction
# ============================================================================


@router.put(
    "/{detail_id}/deduction", response_model=AdjustmentResponse, responses=ADJUSTMENT_RESPONSES
)
async def set_deduction(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    detail_id: Annotated[UUID, Path()],
    payload: DeductionRequest,
) -> AdjustmentResponse:
    """Set the deduction. A positive amount requires a reason."""
    result = await AdjustmentService(db, audit).set_deduction(
        detail_id, payload.deduction, payload.deduction_reason, actor
    )
    return _adjustment_response(result)


@router.delete(
    "/{detail_id}/deduction", response_model=AdjustmentResponse, responses=ADJUSTMENT_RESPONSES
)
async def clear_deduction(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    detail_id: Annotated[UUID, Path()],
) -> AdjustmentResponse:
    """Remove the deduction and its reason."""
    result = await AdjustmentService(db, audit).clear_deduction(detail_id, actor)
    return _adjustment_response(result)


# ============================================================================
# Overtime and preview
# ============================================================================


@router.put(
    "/{detail_id}/overtime", response_model=AdjustmentResponse, responses=ADJUSTMENT_RESPONSES
)
async def set_overtime(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    detail_id: Annotated[UUID, Path()],
    payload: OvertimeRequest,
) -> AdjustmentResponse:
    """Set overtime hours and rate."""
    result = await AdjustmentService(db, audit).set_overtime(
        detail_id, payload.hours, payload.rate, actor
    )
    return _adjustment_response(result)


@router.post(
    "/{detail_id}/preview",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def preview_adjustment(
    db: DbSession,
    audit: Audit,
    actor: Actor,
    detail_id: Annotated[UUID, Path()],
    payload: PreviewRequest,
) -> dict[str, Any]:
    """Summarize what an adjustment would change without saving it."""
    summary = await AdjustmentService(db, audit).preview(
        detail_id,
        bonus=payload.bonus,
        bonus_reason=payload.bonus_reason,
        deduction=payload.deduction,
        deduction_reason=payload.deduction_reason,
    )
    return summary.to_dict()
