"""Append-only audit log."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import CheckConstraint, Index, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from attendance_payroll.errors import StorageError
from attendance_payroll.models.base import Base, BigIntPK, JSONType, TimestampMixin

AUDIT_ACTIONS = ("CREATE", "UPDATE", "DELETE", "CALCULATE")


class AuditLogEntry(Base, TimestampMixin):
    """Audit trail entry. Rows are inserted once and never changed."""

    __tablename__ = "audit_log"

    audit_log_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    actor_user_id: Mapped[UUID] = mapped_column(nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    table_name: Mapped[str] = mapped_column(String, nullable=False)
    record_id: Mapped[str | None] = mapped_column(String, nullable=True)
    old_values: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    new_values: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "action IN ('CREATE', 'UPDATE', 'DELETE', 'CALCULATE')",
            name="audit_log_action_check",
        ),
        Index("audit_log_table_record_idx", "table_name", "record_id"),
        Index("audit_log_created_at_idx", "created_at"),
    )


@event.listens_for(AuditLogEntry, "before_update")
@event.listens_for(AuditLogEntry, "before_delete")
def _reject_audit_mutation(mapper: Any, connection: Any, target: AuditLogEntry) -> None:
    raise StorageError(f"audit_log entry {target.audit_log_id} is append-only")
