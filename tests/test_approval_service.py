"""Tests for timesheet submission and approval."""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from timesheet_engine.repositories.base import ApprovalConfiguration
from timesheet_engine.services.approval_service import (
    ApprovalNotConfigured,
    ApprovalService,
    TimesheetNotFound,
)
from timesheet_engine.services.state_machine import (
    InvalidTransitionError,
    NotAuthorizedApprover,
    TimesheetStatus,
)

EMPLOYEE = uuid4()
FIRST_APPROVER = uuid4()
SECOND_APPROVER = uuid4()
ADMIN = uuid4()


@pytest.fixture
def approval(db):
    config = ApprovalConfiguration(
        id=uuid4(),
        approval_count=2,
        approvers={1: {FIRST_APPROVER}, 2: {SECOND_APPROVER}},
    )
    db.approval_configs[config.id] = config
    return config


@pytest.fixture
def timesheet(make_placement, make_timesheet, approval):
    placement = make_placement(employee_id=EMPLOYEE, timesheet_approval_id=approval.id)
    return make_timesheet(placement, date(2024, 3, 1), date(2024, 3, 14))


@pytest.fixture
def service(stores):
    return ApprovalService(stores)


class TestSubmit:
    """Test submission."""

    async def test_submit(self, service, timesheet):
        updated = await service.submit(timesheet.id, EMPLOYEE, comment="Week done")

        assert updated.status == TimesheetStatus.SUBMITTED.value
        assert updated.approval_level == 1
        assert updated.submitted_on is not None
        assert updated.comments == "Week done"
        assert updated.updated_by == EMPLOYEE

    async def test_submit_twice_rejected(self, service, timesheet):
        await service.submit(timesheet.id, EMPLOYEE)

        with pytest.raises(InvalidTransitionError):
            await service.submit(timesheet.id, EMPLOYEE)

    async def test_unknown_timesheet(self, service):
        with pytest.raises(TimesheetNotFound):
            await service.submit(uuid4(), EMPLOYEE)

    async def test_deleted_timesheet(self, db, service, timesheet):
        db.timesheets[timesheet.id].deleted_at = datetime(2024, 3, 2, tzinfo=timezone.utc)

        with pytest.raises(TimesheetNotFound):
            await service.submit(timesheet.id, EMPLOYEE)


class TestApprovalFlow:
    """Test multi-level approval."""

    async def test_two_level_approval(self, service, timesheet):
        await service.submit(timesheet.id, EMPLOYEE)

        first = await service.approve(timesheet.id, FIRST_APPROVER)
        assert first.status == TimesheetStatus.APPROVAL_IN_PROGRESS.value
        assert first.approval_level == 2
        assert first.approved_on is None

        second = await service.approve(timesheet.id, SECOND_APPROVER, comment="OK")
        assert second.status == TimesheetStatus.APPROVED.value
        assert second.approval_level == 2
        assert second.approved_on is not None

        history = await service.history(timesheet.id)
        assert [(t.decision, t.level, t.actor_id) for t in history] == [
            ("submitted", 1, EMPLOYEE),
            ("approved", 1, FIRST_APPROVER),
            ("approved", 2, SECOND_APPROVER),
        ]
        assert history[-1].from_status == "Approval In Progress"
        assert history[-1].to_status == "Approved"
        assert history[-1].comment == "OK"

    async def test_wrong_level_approver(self, db, service, timesheet):
        await service.submit(timesheet.id, EMPLOYEE)

        with pytest.raises(NotAuthorizedApprover):
            await service.approve(timesheet.id, SECOND_APPROVER)

        unchanged = db.timesheets[timesheet.id]
        assert unchanged.status == TimesheetStatus.SUBMITTED.value
        assert unchanged.approval_level == 1
        assert len(await service.history(timesheet.id)) == 1

    async def test_admin_override(self, service, timesheet):
        await service.submit(timesheet.id, EMPLOYEE)

        updated = await service.approve(timesheet.id, ADMIN, is_admin=True)

        assert updated.status == TimesheetStatus.APPROVAL_IN_PROGRESS.value

    async def test_reject_and_resubmit(self, service, timesheet):
        await service.submit(timesheet.id, EMPLOYEE)
        await service.approve(timesheet.id, FIRST_APPROVER)

        rejected = await service.reject(timesheet.id, SECOND_APPROVER, comment="Missing Friday")
        assert rejected.status == TimesheetStatus.REJECTED.value
        assert rejected.approval_level == 1
        assert rejected.comments == "Missing Friday"

        resubmitted = await service.submit(timesheet.id, EMPLOYEE)
        assert resubmitted.status == TimesheetStatus.SUBMITTED.value

        # Level 1 decides again after resubmission
        again = await service.approve(timesheet.id, FIRST_APPROVER)
        assert again.approval_level == 2

    async def test_approved_is_terminal(self, service, timesheet):
        await service.submit(timesheet.id, EMPLOYEE)
        await service.approve(timesheet.id, FIRST_APPROVER)
        await service.approve(timesheet.id, SECOND_APPROVER)

        with pytest.raises(InvalidTransitionError):
            await service.reject(timesheet.id, SECOND_APPROVER)
        with pytest.raises(InvalidTransitionError):
            await service.submit(timesheet.id, EMPLOYEE)

    async def test_decide_on_draft(self, service, timesheet):
        with pytest.raises(InvalidTransitionError):
            await service.approve(timesheet.id, FIRST_APPROVER)

    async def test_missing_configuration(self, service, make_placement, make_timesheet):
        placement = make_placement()
        timesheet = make_timesheet(placement, date(2024, 3, 1), date(2024, 3, 14))
        await service.submit(timesheet.id, placement.employee_id)

        with pytest.raises(ApprovalNotConfigured):
            await service.approve(timesheet.id, FIRST_APPROVER)
