"""Timesheet submission and approval."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

from timesheet_engine.repositories.base import ApprovalTrack, Stores, Timesheet
from timesheet_engine.services.state_machine import (
    ApprovalStateMachine,
    TimesheetStatus,
    TransitionOutcome,
)

logger = logging.getLogger(__name__)


class TimesheetNotFound(LookupError):
    """Raised when a timesheet does not exist or was deleted."""

    def __init__(self, timesheet_id: UUID):
        self.timesheet_id = timesheet_id
        super().__init__(f"Timesheet {timesheet_id} not found")


class ApprovalNotConfigured(LookupError):
    """Raised when the timesheet's placement has no approval configuration."""

    def __init__(self, placement_id: UUID):
        self.placement_id = placement_id
        super().__init__(f"Placement {placement_id} has no timesheet approval configured")


class ApprovalService:
    """Service for moving timesheets through approval.

    Operations:
    - submit: Drafted/Rejected → Submitted
    - approve: advance one approval level, or finish as Approved
    - reject: back to level 1 as Rejected

    Each call reads the timesheet, validates, then writes the new status and
    an approval track entry. Validation failures write nothing.
    """

    def __init__(self, stores: Stores):
        self.stores = stores

    async def get_timesheet(self, timesheet_id: UUID) -> Timesheet:
        timesheet = await self.stores.timesheets.get(timesheet_id)
        if timesheet is None or timesheet.is_deleted:
            raise TimesheetNotFound(timesheet_id)
        return timesheet

    async def submit(
        self,
        timesheet_id: UUID,
        actor_id: UUID,
        comment: str | None = None,
    ) -> Timesheet:
        timesheet = await self.get_timesheet(timesheet_id)
        outcome = ApprovalStateMachine.submit(timesheet.status, timesheet.approval_level)
        return await self._apply(timesheet, outcome, actor_id, comment)

    async def approve(
        self,
        timesheet_id: UUID,
        actor_id: UUID,
        comment: str | None = None,
        is_admin: bool = False,
    ) -> Timesheet:
        return await self._decide(timesheet_id, actor_id, True, comment, is_admin)

    async def reject(
        self,
        timesheet_id: UUID,
        actor_id: UUID,
        comment: str | None = None,
        is_admin: bool = False,
    ) -> Timesheet:
        return await self._decide(timesheet_id, actor_id, False, comment, is_admin)

    async def history(self, timesheet_id: UUID) -> list[ApprovalTrack]:
        return await self.stores.approval_tracks.find(timesheet_id)

    async def _decide(
        self,
        timesheet_id: UUID,
        actor_id: UUID,
        approve: bool,
        comment: str | None,
        is_admin: bool,
    ) -> Timesheet:
        timesheet = await self.get_timesheet(timesheet_id)

        placement = await self.stores.placements.find(timesheet.placement_id)
        approval_id = placement.timesheet_approval_id if placement else None
        config = (
            await self.stores.approval_configs.find(approval_id) if approval_id else None
        )
        if config is None:
            raise ApprovalNotConfigured(timesheet.placement_id)

        outcome = ApprovalStateMachine.decide(
            status=timesheet.status,
            approval_level=timesheet.approval_level,
            approval_count=config.approval_count,
            approve=approve,
            is_approver=config.is_approver(timesheet.approval_level, actor_id),
            is_admin=is_admin,
            actor_id=actor_id,
        )
        return await self._apply(timesheet, outcome, actor_id, comment)

    async def _apply(
        self,
        timesheet: Timesheet,
        outcome: TransitionOutcome,
        actor_id: UUID,
        comment: str | None,
    ) -> Timesheet:
        now = datetime.now(timezone.utc)
        fields: dict[str, object] = {
            "status": outcome.to_status.value,
            "approval_level": outcome.approval_level,
            "updated_at": now,
            "updated_by": actor_id,
        }
        if comment is not None:
            fields["comments"] = comment
        if outcome.to_status == TimesheetStatus.SUBMITTED:
            fields["submitted_on"] = now
        fields["approved_on"] = now if outcome.to_status == TimesheetStatus.APPROVED else None

        await self.stores.timesheets.update(timesheet.id, **fields)
        await self.stores.approval_tracks.append(
            ApprovalTrack(
                id=uuid4(),
                timesheet_id=timesheet.id,
                level=outcome.decided_level,
                actor_id=actor_id,
                decision=outcome.decision.value,
                from_status=outcome.from_status.value,
                to_status=outcome.to_status.value,
                created_at=now,
                comment=comment,
            )
        )

        logger.info(
            "Timesheet %s %s at level %d by %s: %s -> %s",
            timesheet.reference_id,
            outcome.decision.value,
            outcome.decided_level,
            actor_id,
            outcome.from_status.value,
            outcome.to_status.value,
        )
        return await self.get_timesheet(timesheet.id)
