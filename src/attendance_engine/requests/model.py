from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import MissingType, RequestStatus


@dataclass(frozen=True)
class Timeslip:
    """Correction request for a missing check-in and/or check-out."""

    timeslip_id: str
    employee_id: str
    organization_id: str
    work_date: date
    missing_type: MissingType
    corrected_in: Optional[time]
    corrected_out: Optional[time]
    reason: Optional[str]
    status: RequestStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.timeslip_id,
            "employee_id": self.employee_id,
            "date": self.work_date.strftime("%Y-%m-%d"),
            "missing_type": self.missing_type.value,
            "corrected_in": self.corrected_in.strftime("%H:%M") if self.corrected_in else None,
            "corrected_out": self.corrected_out.strftime("%H:%M") if self.corrected_out else None,
            "reason": self.reason,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class LeaveRequest:
    leave_id: str
    employee_id: str
    organization_id: str
    start_date: date
    end_date: date
    reason: str
    status: RequestStatus
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.leave_id,
            "employee_id": self.employee_id,
            "start_date": self.start_date.strftime("%Y-%m-%d"),
            "end_date": self.end_date.strftime("%Y-%m-%d"),
            "days": (self.end_date - self.start_date).days + 1,
            "reason": self.reason,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }
