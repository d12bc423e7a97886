"""Payroll cycle state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from attendance_payroll.errors import InvalidTransitionError


class CycleStatus(str, Enum):
    """Payroll cycle status values."""

    ACTIVE = "active"
    COMPLETED = "completed"


class CycleStateMachine:
    """State machine for payroll cycle status transitions.

    Allowed transitions:
    - active → completed (finalize)

    completed is terminal. A completed cycle and all of its details are
    read-only.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        CycleStatus.ACTIVE: [CycleStatus.COMPLETED],
        CycleStatus.COMPLETED: [],  # Terminal state
    }

    # Statuses where details may be calculated, adjusted or reset
    WRITES_ALLOWED = {CycleStatus.ACTIVE}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def accepts_writes(cls, status: str) -> bool:
        """Check if details of a cycle in this status can be modified."""
        return status in cls.WRITES_ALLOWED

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status, [])
