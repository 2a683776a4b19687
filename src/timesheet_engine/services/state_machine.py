"""Timesheet approval state machine with transition validation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TimesheetStatus(str, Enum):
    """Timesheet status values."""

    DRAFTED = "Drafted"
    SUBMITTED = "Submitted"
    APPROVAL_IN_PROGRESS = "Approval In Progress"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ApprovalDecision(str, Enum):
    """Decision recorded on an approval track entry."""

    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status = getattr(from_status, "value", from_status)
        self.to_status = to_status = getattr(to_status, "value", to_status)
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NotAuthorizedApprover(Exception):
    """Raised when the actor may not decide at the timesheet's current level."""

    def __init__(self, actor_id: object, approval_level: int):
        self.actor_id = actor_id
        self.approval_level = approval_level
        super().__init__(
            f"Employee {actor_id} is not an approver for approval level {approval_level}"
        )


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of applying a decision to a timesheet."""

    from_status: TimesheetStatus
    to_status: TimesheetStatus
    decided_level: int
    approval_level: int
    decision: ApprovalDecision


class ApprovalStateMachine:
    """State machine for timesheet approval.

    Allowed transitions:
    - Drafted → Submitted
    - Rejected → Submitted (resubmission)
    - Submitted → Approval In Progress (approve, more levels remain)
    - Submitted → Approved (approve, last level)
    - Submitted → Rejected
    - Approval In Progress → Approval In Progress / Approved / Rejected
    - Approved: terminal
    """

    VALID_TRANSITIONS: dict[TimesheetStatus, list[TimesheetStatus]] = {
        TimesheetStatus.DRAFTED: [TimesheetStatus.SUBMITTED],
        TimesheetStatus.SUBMITTED: [
            TimesheetStatus.APPROVAL_IN_PROGRESS,
            TimesheetStatus.APPROVED,
            TimesheetStatus.REJECTED,
        ],
        TimesheetStatus.APPROVAL_IN_PROGRESS: [
            TimesheetStatus.APPROVAL_IN_PROGRESS,
            TimesheetStatus.APPROVED,
            TimesheetStatus.REJECTED,
        ],
        TimesheetStatus.APPROVED: [],  # Terminal state
        TimesheetStatus.REJECTED: [TimesheetStatus.SUBMITTED],
    }

    # Statuses awaiting an approver's decision
    AWAITING_DECISION = {
        TimesheetStatus.SUBMITTED,
        TimesheetStatus.APPROVAL_IN_PROGRESS,
    }

    # Statuses where day hours can still be edited
    HOURS_MUTABLE = {
        TimesheetStatus.DRAFTED,
        TimesheetStatus.REJECTED,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(TimesheetStatus(from_status), [])
        return TimesheetStatus(to_status) in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[TimesheetStatus]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(TimesheetStatus(current_status), [])

    @classmethod
    def can_edit_hours(cls, status: str) -> bool:
        return TimesheetStatus(status) in cls.HOURS_MUTABLE

    @classmethod
    def is_awaiting_decision(cls, status: str) -> bool:
        return TimesheetStatus(status) in cls.AWAITING_DECISION

    @classmethod
    def submit(cls, status: str, approval_level: int) -> TransitionOutcome:
        """Submit a drafted or rejected timesheet."""
        from_status = TimesheetStatus(status)
        cls.validate_transition(from_status, TimesheetStatus.SUBMITTED)
        return TransitionOutcome(
            from_status=from_status,
            to_status=TimesheetStatus.SUBMITTED,
            decided_level=approval_level,
            approval_level=1,
            decision=ApprovalDecision.SUBMITTED,
        )

    @classmethod
    def decide(
        cls,
        status: str,
        approval_level: int,
        approval_count: int,
        approve: bool,
        is_approver: bool,
        is_admin: bool = False,
        actor_id: object = None,
    ) -> TransitionOutcome:
        """Apply an approver's decision at the current approval level.

        Raises:
            NotAuthorizedApprover: actor is neither a level approver nor admin.
            InvalidTransitionError: timesheet is not awaiting a decision, or
                its level is outside the configured approval count.
        """
        from_status = TimesheetStatus(status)
        target = TimesheetStatus.APPROVED if approve else TimesheetStatus.REJECTED
        if from_status not in cls.AWAITING_DECISION:
            raise InvalidTransitionError(
                from_status, target, "Timesheet is not awaiting approval"
            )
        if not (is_approver or is_admin):
            raise NotAuthorizedApprover(actor_id, approval_level)

        if not approve:
            return TransitionOutcome(
                from_status=from_status,
                to_status=TimesheetStatus.REJECTED,
                decided_level=approval_level,
                approval_level=1,
                decision=ApprovalDecision.REJECTED,
            )

        if approval_level < approval_count:
            to_status = TimesheetStatus.APPROVAL_IN_PROGRESS
            next_level = approval_level + 1
        elif approval_level == approval_count:
            to_status = TimesheetStatus.APPROVED
            next_level = approval_level
        else:
            raise InvalidTransitionError(
                from_status,
                target,
                f"Approval level {approval_level} exceeds configured count {approval_count}",
            )

        return TransitionOutcome(
            from_status=from_status,
            to_status=to_status,
            decided_level=approval_level,
            approval_level=next_level,
            decision=ApprovalDecision.APPROVED,
        )
