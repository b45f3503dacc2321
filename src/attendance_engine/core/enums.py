from __future__ import annotations

from enum import Enum


class DayStatus(str, Enum):
    """Day-level attendance status, values match the report payload."""

    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half-day"
    HOLIDAY = "holiday"
    ON_LEAVE = "on-leave"
    PENDING = "pending"


class PunchType(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


class MissingType(str, Enum):
    """Which punch a timeslip corrects."""

    IN = "IN"
    OUT = "OUT"
    BOTH = "BOTH"


class RequestStatus(str, Enum):
    """Approval status shared by timeslips, leaves and workflow requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class WorkflowType(str, Enum):
    TIMESLIP = "TIMESLIP"
    LEAVE = "LEAVE"
    EXPENSE = "EXPENSE"
    GENERIC = "GENERIC"


class StepAction(str, Enum):
    APPROVE = "APPROVED"
    REJECT = "REJECTED"
