from __future__ import annotations

from datetime import date, time
from typing import Optional, Protocol, Sequence

from ..core.enums import MissingType, RequestStatus
from .model import LeaveRequest, Timeslip


class RequestRepository(Protocol):
    # Timeslips
    def create_timeslip(
        self,
        *,
        employee_id: str,
        organization_id: str,
        work_date: date,
        missing_type: MissingType,
        corrected_in: Optional[time],
        corrected_out: Optional[time],
        reason: Optional[str],
    ) -> str:
        raise NotImplementedError

    def get_timeslip(self, timeslip_id: str) -> Optional[Timeslip]:
        raise NotImplementedError

    def update_timeslip(
        self,
        *,
        timeslip_id: str,
        work_date: date,
        missing_type: MissingType,
        corrected_in: Optional[time],
        corrected_out: Optional[time],
        reason: Optional[str],
    ) -> bool:
        """Update a PENDING timeslip. False when missing or already decided."""

        raise NotImplementedError

    def delete_timeslip(self, timeslip_id: str) -> bool:
        raise NotImplementedError

    def decide_timeslip(self, *, timeslip_id: str, status: RequestStatus) -> bool:
        """PENDING -> status. False when already decided."""

        raise NotImplementedError

    def list_timeslips(
        self,
        *,
        employee_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[Timeslip]:
        raise NotImplementedError

    # Leave requests
    def create_leave(
        self,
        *,
        employee_id: str,
        organization_id: str,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> str:
        raise NotImplementedError

    def get_leave(self, leave_id: str) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def delete_leave(self, leave_id: str) -> bool:
        raise NotImplementedError

    def decide_leave(self, *, leave_id: str, status: RequestStatus) -> bool:
        raise NotImplementedError

    def list_leaves(
        self,
        *,
        employee_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError
