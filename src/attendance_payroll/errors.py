"""Domain errors raised by the payroll engine."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from attendance_payroll.services.finalizer import ValidationIssue


class PayrollError(Exception):
    """Base class for payroll engine errors."""

    code = "PAYROLL_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation for API responses."""
        return {"error": str(self), "code": self.code}


class ValidationError(PayrollError):
    """Raised when input breaks one or more validation rules.

    All violated rules are collected in ``errors`` rather than stopping at
    the first one.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["details"] = self.errors
        return data


class NotFoundError(PayrollError):
    """Raised when a cycle, detail or employee does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class CycleLockedError(PayrollError):
    """Raised when writing to a payroll cycle that is already completed."""

    code = "CYCLE_LOCKED"

    def __init__(self, cycle_id: UUID, operation: str | None = None):
        self.cycle_id = cycle_id
        self.operation = operation
        msg = f"Payroll cycle {cycle_id} is completed and cannot be modified"
        if operation:
            msg += f" ({operation})"
        super().__init__(msg)


class AlreadyFinalizedError(PayrollError):
    """Raised when finalizing a cycle that is already completed.

    Callers retrying a finalize should treat this as "already done".
    """

    code = "ALREADY_FINALIZED"

    def __init__(
        self,
        cycle_id: UUID,
        finalized_at: datetime | None = None,
        finalized_by: UUID | None = None,
    ):
        self.cycle_id = cycle_id
        self.finalized_at = finalized_at
        self.finalized_by = finalized_by
        super().__init__(f"Payroll cycle {cycle_id} has already been finalized")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["finalized_at"] = self.finalized_at.isoformat() if self.finalized_at else None
        data["finalized_by"] = str(self.finalized_by) if self.finalized_by else None
        return data


class FinalizationBlockedError(PayrollError):
    """Raised when validation fails at the moment of finalization."""

    code = "FINALIZATION_BLOCKED"

    def __init__(self, cycle_id: UUID, issues: list[ValidationIssue]):
        self.cycle_id = cycle_id
        self.issues = list(issues)
        super().__init__(
            f"Payroll cycle {cycle_id} cannot be finalized: "
            f"{len(self.issues)} validation issue(s)"
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["issues"] = [issue.to_dict() for issue in self.issues]
        return data


class InvalidTransitionError(PayrollError):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class StorageError(PayrollError):
    """Raised when the underlying persistence layer fails."""

    code = "STORAGE_ERROR"


class ConcurrentUpdateError(StorageError):
    """Raised when another writer changed a record first. Safe to retry."""

    code = "CONCURRENT_UPDATE"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} was modified concurrently; retry the request")
