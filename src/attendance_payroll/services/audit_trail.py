"""Append-only audit trail.

Entries are written in their own session and transaction, after the
business change they describe has been committed. A failure to record is
logged and counted but never propagated, so it cannot roll back or mask the
operation that triggered it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.config import get_settings
from attendance_payroll.models import AUDIT_ACTIONS, AuditLogEntry

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 50


def _json_serializer(obj: Any) -> Any:
    """Custom JSON serializer for audit snapshots."""
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def _snapshot(values: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if values is None:
        return None
    return json.loads(json.dumps(dict(values), default=_json_serializer))


def extract_ip_address(headers: Mapping[str, str]) -> str | None:
    """Client address from proxy headers.

    Takes the first address of X-Forwarded-For, then X-Real-IP.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return None


@dataclass(frozen=True)
class AuditContext:
    """Who is acting, and from where."""

    actor_user_id: UUID
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass
class AuditRecord:
    """An audit entry waiting to be written."""

    context: AuditContext
    action: str
    table_name: str
    record_id: Any
    description: str
    old_values: Mapping[str, Any] | None = None
    new_values: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.action not in AUDIT_ACTIONS:
            raise ValueError(f"Unknown audit action: {self.action}")


@dataclass
class AuditStats:
    recorded: int = 0
    failed: int = 0


@dataclass
class AuditTrail:
    """Writes and reads the audit log."""

    session_factory: async_sessionmaker[AsyncSession]
    max_limit: int = field(default_factory=lambda: get_settings().audit_query_max_limit)
    stats: AuditStats = field(default_factory=AuditStats)

    async def record(self, entry: AuditRecord) -> bool:
        """Persist one entry. Returns False instead of raising on failure."""
        try:
            row = AuditLogEntry(
                actor_user_id=entry.context.actor_user_id,
                action=entry.action,
                table_name=entry.table_name,
                record_id=str(entry.record_id) if entry.record_id is not None else None,
                old_values=_snapshot(entry.old_values),
                new_values=_snapshot(entry.new_values),
                description=entry.description,
                ip_address=entry.context.ip_address,
                user_agent=entry.context.user_agent,
            )
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
        except Exception:
            self.stats.failed += 1
            logger.exception(
                "Failed to record audit entry %s %s/%s",
                entry.action,
                entry.table_name,
                entry.record_id,
            )
            return False

        self.stats.recorded += 1
        return True

    async def query(
        self,
        table_name: str | None = None,
        record_id: Any = None,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> list[AuditLogEntry]:
        """Entries newest first, optionally filtered by table and record."""
        limit = max(1, min(limit, self.max_limit))

        query = select(AuditLogEntry)
        if table_name:
            query = query.where(AuditLogEntry.table_name == table_name)
        if record_id is not None:
            query = query.where(AuditLogEntry.record_id == str(record_id))
        query = query.order_by(
            AuditLogEntry.created_at.desc(), AuditLogEntry.audit_log_id.desc()
        ).limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())
