import pytest

from src.hr_portal.hr_portal.core.enums import LeaveStatus, TripStatus
from src.hr_portal.hr_portal.core.exceptions import ConflictError, ValidationError
from src.hr_portal.hr_portal.core.state_machine import LEAVE_FLOW, TRIP_FLOW


def test_pending_leave_can_be_approved_or_rejected():
    LEAVE_FLOW.ensure(LeaveStatus.PENDING, LeaveStatus.APPROVED)
    LEAVE_FLOW.ensure(LeaveStatus.PENDING, LeaveStatus.REJECTED)


@pytest.mark.parametrize("terminal", [LeaveStatus.APPROVED, LeaveStatus.REJECTED])
def test_terminal_leave_is_a_conflict(terminal):
    assert LEAVE_FLOW.is_terminal(terminal)
    with pytest.raises(ConflictError):
        LEAVE_FLOW.ensure(terminal, LeaveStatus.APPROVED)


def test_trip_cannot_skip_in_progress():
    with pytest.raises(ValidationError):
        TRIP_FLOW.ensure(TripStatus.APPROVED, TripStatus.COMPLETED)

    TRIP_FLOW.ensure(TripStatus.APPROVED, TripStatus.IN_PROGRESS)
    TRIP_FLOW.ensure(TripStatus.IN_PROGRESS, TripStatus.COMPLETED)
    assert TRIP_FLOW.is_terminal(TripStatus.COMPLETED)
