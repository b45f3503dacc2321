from __future__ import annotations

import logging
from datetime import date, time
from typing import Optional

from ..attendance.service import AttendanceService
from ..common.datetime_utils import parse_clock_time
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import MissingType, RequestStatus, WorkflowType
from ..core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..workflows.model import ApprovalRequest, TransitionEvent
from ..workflows.service import WorkflowEngine
from .model import LeaveRequest, Timeslip
from .repository import RequestRepository

logger = logging.getLogger(__name__)


class RequestService:
    """Timeslip and leave requests routed through the approval engine.

    Once a timeslip is approved its corrected punches are appended, so the
    affected day reclassifies; an approved leave feeds the on-leave rule.
    """

    def __init__(
        self,
        requests: RequestRepository,
        attendance: AttendanceService,
        engine: WorkflowEngine,
        employees: EmployeeRepository,
    ):
        self._requests = requests
        self._attendance = attendance
        self._engine = engine
        self._employees = employees
        engine.subscribe(self._on_transition)

    @staticmethod
    def _parse_time(value) -> Optional[time]:
        if value is None or isinstance(value, time):
            return value
        v = str(value).strip()
        if not v:
            return None
        try:
            return parse_clock_time(v)
        except ValueError:
            raise ValidationError("Invalid time (HH:MM or hh:mm AM/PM)")

    @classmethod
    def _validate_correction(cls, missing_type, corrected_in, corrected_out) -> tuple[MissingType, Optional[time], Optional[time]]:
        try:
            missing_type = MissingType(missing_type)
        except ValueError:
            raise ValidationError("Missing type must be IN, OUT or BOTH")

        in_t = cls._parse_time(corrected_in)
        out_t = cls._parse_time(corrected_out)

        if missing_type in (MissingType.IN, MissingType.BOTH) and not in_t:
            raise ValidationError("Corrected check-in time is required")
        if missing_type in (MissingType.OUT, MissingType.BOTH) and not out_t:
            raise ValidationError("Corrected check-out time is required")
        if missing_type == MissingType.IN:
            out_t = None
        if missing_type == MissingType.OUT:
            in_t = None
        if in_t and out_t and out_t <= in_t:
            raise ValidationError("Check-out must be after check-in")
        return missing_type, in_t, out_t

    def _get_employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def get_timeslip(self, timeslip_id: str) -> Timeslip:
        ts = self._requests.get_timeslip(timeslip_id)
        if not ts:
            raise NotFoundError(f"Timeslip {timeslip_id} not found")
        return ts

    def get_leave(self, leave_id: str) -> LeaveRequest:
        leave = self._requests.get_leave(leave_id)
        if not leave:
            raise NotFoundError(f"Leave request {leave_id} not found")
        return leave

    # -------- timeslips --------
    def submit_timeslip(
        self,
        *,
        employee_id: str,
        work_date: date,
        missing_type,
        corrected_in=None,
        corrected_out=None,
        reason: str = "",
    ) -> tuple[Timeslip, ApprovalRequest]:
        employee = self._get_employee(employee_id)
        missing_type, in_t, out_t = self._validate_correction(missing_type, corrected_in, corrected_out)
        definition = self._engine.bind(request_type=WorkflowType.TIMESLIP, employee=employee)

        timeslip_id = self._requests.create_timeslip(
            employee_id=employee.employee_id,
            organization_id=employee.organization_id,
            work_date=work_date,
            missing_type=missing_type,
            corrected_in=in_t,
            corrected_out=out_t,
            reason=(reason or "").strip() or None,
        )
        approval = self._engine.start(definition=definition, subject_id=timeslip_id, employee=employee)
        return self.get_timeslip(timeslip_id), approval

    def update_timeslip(
        self,
        *,
        timeslip_id: str,
        work_date: date,
        missing_type,
        corrected_in=None,
        corrected_out=None,
        reason: str = "",
    ) -> Timeslip:
        ts = self.get_timeslip(timeslip_id)
        if ts.status.is_terminal:
            raise InvalidStateError(f"Timeslip {timeslip_id} is already {ts.status.value}")

        missing_type, in_t, out_t = self._validate_correction(missing_type, corrected_in, corrected_out)
        ok = self._requests.update_timeslip(
            timeslip_id=timeslip_id,
            work_date=work_date,
            missing_type=missing_type,
            corrected_in=in_t,
            corrected_out=out_t,
            reason=(reason or "").strip() or None,
        )
        if not ok:
            raise ConflictError(f"Timeslip {timeslip_id} was decided while editing")
        return self.get_timeslip(timeslip_id)

    def delete_timeslip(self, timeslip_id: str) -> None:
        ts = self.get_timeslip(timeslip_id)
        if ts.status.is_terminal:
            raise InvalidStateError(f"Timeslip {timeslip_id} is already {ts.status.value}")

        approval = self._engine_request_for(WorkflowType.TIMESLIP, timeslip_id)
        if approval:
            self._engine.delete_request(approval.request_id)
        self._requests.delete_timeslip(timeslip_id)

    def list_timeslips(self, *, employee_id: Optional[str] = None, status: Optional[RequestStatus] = None) -> list[Timeslip]:
        return list(self._requests.list_timeslips(employee_id=employee_id, status=status, limit=DEFAULT_LIST_LIMIT))

    # -------- leave --------
    def submit_leave(
        self,
        *,
        employee_id: str,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> tuple[LeaveRequest, ApprovalRequest]:
        employee = self._get_employee(employee_id)
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date")
        reason = require_non_empty(reason, "Reason")
        definition = self._engine.bind(request_type=WorkflowType.LEAVE, employee=employee)

        leave_id = self._requests.create_leave(
            employee_id=employee.employee_id,
            organization_id=employee.organization_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
        )
        approval = self._engine.start(definition=definition, subject_id=leave_id, employee=employee)
        return self.get_leave(leave_id), approval

    def delete_leave(self, leave_id: str) -> None:
        leave = self.get_leave(leave_id)
        if leave.status.is_terminal:
            raise InvalidStateError(f"Leave request {leave_id} is already {leave.status.value}")

        approval = self._engine_request_for(WorkflowType.LEAVE, leave_id)
        if approval:
            self._engine.delete_request(approval.request_id)
        self._requests.delete_leave(leave_id)

    def list_leaves(self, *, employee_id: Optional[str] = None, status: Optional[RequestStatus] = None) -> list[LeaveRequest]:
        return list(self._requests.list_leaves(employee_id=employee_id, status=status, limit=DEFAULT_LIST_LIMIT))

    # -------- workflow events --------
    def _engine_request_for(self, request_type: WorkflowType, subject_id: str) -> Optional[ApprovalRequest]:
        return self._engine.find_request_for_subject(request_type=request_type, subject_id=subject_id)

    def _on_transition(self, event: TransitionEvent) -> None:
        if not event.to_state.is_terminal:
            return
        self._settle(event.request_type, event.subject_id, event.to_state)

    def _settle(self, request_type: WorkflowType, subject_id: str, status: RequestStatus) -> None:
        """Carry a finished approval onto its subject.

        Correction punches go in before the timeslip leaves PENDING, so a
        failure part way leaves a subject that resync_subject can finish.
        """

        if request_type == WorkflowType.TIMESLIP:
            ts = self.get_timeslip(subject_id)
            if ts.status == status:
                return
            if ts.status != RequestStatus.PENDING:
                raise ConflictError(f"Timeslip {ts.timeslip_id} is already {ts.status.value}")
            if status == RequestStatus.APPROVED:
                self._attendance.apply_correction(
                    employee_id=ts.employee_id,
                    work_date=ts.work_date,
                    missing_type=ts.missing_type,
                    corrected_in=ts.corrected_in,
                    corrected_out=ts.corrected_out,
                )
            if not self._requests.decide_timeslip(timeslip_id=ts.timeslip_id, status=status):
                raise ConflictError(f"Timeslip {ts.timeslip_id} was already decided")
        elif request_type == WorkflowType.LEAVE:
            leave = self.get_leave(subject_id)
            if leave.status == status:
                return
            if not self._requests.decide_leave(leave_id=leave.leave_id, status=status):
                raise ConflictError(f"Leave request {leave.leave_id} was already decided")
        else:
            logger.debug("No subject handler for %s subject %s", request_type.value, subject_id)

    def resync_subject(self, request_id: str) -> ApprovalRequest:
        """Re-apply a finished approval to its timeslip or leave request.

        Safe to repeat: correction punches already present are not added again.
        """

        req = self._engine.get_request(request_id)
        if not req.status.is_terminal:
            raise InvalidStateError(f"Request {request_id} is still {req.status.value}")
        self._settle(req.request_type, req.subject_id, req.status)
        logger.info("Resynced %s subject %s with request %s", req.request_type.value, req.subject_id, request_id)
        return req
