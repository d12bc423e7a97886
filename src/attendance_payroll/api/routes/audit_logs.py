"""Audit log API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from attendance_payroll.api.dependencies import Actor, Audit
from attendance_payroll.api.schemas import AuditLogListResponse, AuditLogResponse
from attendance_payroll.services.audit_trail import DEFAULT_QUERY_LIMIT

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    audit: Audit,
    actor: Actor,
    table_name: str | None = None,
    record_id: str | None = None,
    limit: Annotated[int, Query()] = DEFAULT_QUERY_LIMIT,
) -> AuditLogListResponse:
    """Audit entries, newest first. limit is clamped to the configured maximum."""
    entries = await audit.query(table_name=table_name, record_id=record_id, limit=limit)
    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(e) for e in entries],
        total=len(entries),
    )
