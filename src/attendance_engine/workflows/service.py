from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import RequestStatus, StepAction, WorkflowType
from ..core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .model import ApprovalRequest, StepApproval, TransitionEvent, WorkflowDefinition, WorkflowStep
from .repository import WorkflowRepository

logger = logging.getLogger(__name__)

TransitionListener = Callable[[TransitionEvent], None]


class WorkflowEngine:
    """Ordered multi-step approval state machine.

    PENDING -> APPROVED | REJECTED, both terminal. The current step is the
    lowest step without a terminal action. Approving the last step approves
    the request; rejecting any step rejects it at once.
    """

    def __init__(
        self,
        workflows: WorkflowRepository,
        employees: EmployeeRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._workflows = workflows
        self._employees = employees
        self._clock = clock
        self._listeners: list[TransitionListener] = []

    def subscribe(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    # -------- lookups --------
    def _get_workflow(self, workflow_id: str) -> WorkflowDefinition:
        wf = self._workflows.get_workflow(workflow_id)
        if not wf:
            raise NotFoundError(f"Workflow {workflow_id} not found")
        return wf

    def _get_step(self, step_id: str) -> WorkflowStep:
        step = self._workflows.get_step(step_id)
        if not step:
            raise NotFoundError(f"Workflow step {step_id} not found")
        return step

    def _get_employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    def get_workflow(self, workflow_id: str) -> WorkflowDefinition:
        return self._get_workflow(workflow_id)

    def get_request(self, request_id: str) -> ApprovalRequest:
        req = self._workflows.get_request(request_id)
        if not req:
            raise NotFoundError(f"Approval request {request_id} not found")
        return req

    def find_request_for_subject(self, *, request_type: WorkflowType, subject_id: str) -> Optional[ApprovalRequest]:
        return self._workflows.get_request_for_subject(request_type=request_type, subject_id=subject_id)

    def list_workflows(self, *, organization_id: str, type: Optional[WorkflowType] = None) -> list[WorkflowDefinition]:
        return list(self._workflows.list_workflows(organization_id=organization_id, type=type))

    def _ensure_definition_editable(self, workflow_id: str) -> None:
        """Definitions are frozen once any request running on them has finished."""

        for req in self._workflows.list_requests(workflow_id=workflow_id):
            if req.status.is_terminal:
                raise InvalidStateError(
                    f"Workflow {workflow_id} is referenced by {req.status.value} request {req.request_id}"
                )

    def _ensure_orders_not_reached(self, workflow_id: str, *step_orders: int) -> None:
        """In-flight requests only let later steps change; reached steps stay put."""

        for req in self._workflows.list_requests(workflow_id=workflow_id, status=RequestStatus.PENDING):
            if req.current_step_order is None:
                continue
            for order in step_orders:
                if int(order) <= req.current_step_order:
                    raise InvalidStateError(
                        f"Step order {order} is at or before step {req.current_step_order} "
                        f"already reached by pending request {req.request_id}"
                    )

    @staticmethod
    def _ensure_unique_order(wf: WorkflowDefinition, step_order: int, *, ignore_step_id: Optional[str] = None) -> None:
        if int(step_order) <= 0:
            raise ValidationError("Step order must be a positive integer")
        for s in wf.steps:
            if s.step_order == int(step_order) and s.step_id != ignore_step_id:
                raise ValidationError(f"Step order {step_order} already exists in workflow {wf.workflow_id}")

    # -------- definitions --------
    def create_workflow(
        self,
        *,
        organization_id: str,
        name: str,
        type: WorkflowType,
        department_id: Optional[str] = None,
        is_active: bool = True,
    ) -> str:
        name = require_non_empty(name, "Workflow name")
        return self._workflows.create_workflow(
            organization_id=organization_id,
            name=name,
            type=WorkflowType(type),
            department_id=department_id or None,
            is_active=bool(is_active),
        )

    def update_workflow(
        self,
        *,
        workflow_id: str,
        name: str,
        department_id: Optional[str] = None,
        is_active: bool = True,
    ) -> None:
        self._get_workflow(workflow_id)
        self._ensure_definition_editable(workflow_id)
        name = require_non_empty(name, "Workflow name")
        self._workflows.update_workflow(
            workflow_id=workflow_id, name=name, department_id=department_id or None, is_active=bool(is_active)
        )

    def delete_workflow(self, workflow_id: str) -> None:
        self._get_workflow(workflow_id)
        self._ensure_definition_editable(workflow_id)
        if not self._workflows.delete_workflow(workflow_id):
            raise NotFoundError(f"Workflow {workflow_id} not found")

    def add_step(
        self,
        *,
        workflow_id: str,
        name: str,
        step_order: Optional[int] = None,
        condition: Optional[str] = None,
    ) -> str:
        wf = self._get_workflow(workflow_id)
        self._ensure_definition_editable(workflow_id)
        if step_order is None:
            step_order = max((s.step_order for s in wf.steps), default=0) + 1
        self._ensure_unique_order(wf, step_order)
        self._ensure_orders_not_reached(workflow_id, step_order)
        name = require_non_empty(name, "Step name")
        return self._workflows.add_step(
            workflow_id=workflow_id, step_order=int(step_order), name=name, condition=(condition or "").strip() or None
        )

    def update_step(
        self,
        *,
        step_id: str,
        name: Optional[str] = None,
        step_order: Optional[int] = None,
        condition: Optional[str] = None,
    ) -> None:
        step = self._get_step(step_id)
        wf = self._get_workflow(step.workflow_id)
        self._ensure_definition_editable(wf.workflow_id)

        new_order = step.step_order if step_order is None else int(step_order)
        self._ensure_unique_order(wf, new_order, ignore_step_id=step_id)
        if new_order != step.step_order:
            self._ensure_orders_not_reached(wf.workflow_id, step.step_order, new_order)
        new_name = step.name if name is None else require_non_empty(name, "Step name")
        new_condition = step.condition if condition is None else ((condition or "").strip() or None)

        self._workflows.update_step(step_id=step_id, step_order=new_order, name=new_name, condition=new_condition)

    def delete_step(self, step_id: str) -> None:
        step = self._get_step(step_id)
        self._ensure_definition_editable(step.workflow_id)
        self._ensure_orders_not_reached(step.workflow_id, step.step_order)
        if not self._workflows.delete_step(step_id):
            raise NotFoundError(f"Workflow step {step_id} not found")

    def assign_approver(self, *, step_id: str, approver_id: str) -> None:
        """Make approver_id the single active approver of the step."""

        step = self._get_step(step_id)
        self._get_employee(approver_id)
        self._ensure_definition_editable(step.workflow_id)
        if step.approver_id == approver_id:
            return
        self._workflows.replace_assignment(step_id=step_id, approver_id=approver_id)
        logger.info("Step %s approver %s -> %s", step_id, step.approver_id, approver_id)

    # -------- binding / start --------
    def bind(self, *, request_type: WorkflowType, employee: Employee) -> WorkflowDefinition:
        """Pick the active definition for the type, department-scoped first."""

        candidates = [
            wf
            for wf in self._workflows.list_workflows(organization_id=employee.organization_id, type=request_type)
            if wf.is_active
        ]
        scoped = [wf for wf in candidates if wf.department_id and wf.department_id == employee.department_id]
        unscoped = [wf for wf in candidates if not wf.department_id]
        chosen = (scoped or unscoped or [None])[0]
        if chosen is None:
            raise NotFoundError(
                f"No active {request_type.value} workflow for organization {employee.organization_id}"
            )
        if not chosen.steps:
            raise ConfigurationError(f"Workflow {chosen.workflow_id} has no steps")
        logger.debug("Bound %s request of employee %s to workflow %s", request_type.value, employee.employee_id, chosen.workflow_id)
        return chosen

    def start(self, *, definition: WorkflowDefinition, subject_id: str, employee: Employee) -> ApprovalRequest:
        first = definition.ordered_steps[0]
        request_id = self._workflows.create_request(
            workflow_id=definition.workflow_id,
            request_type=definition.type,
            subject_id=subject_id,
            employee_id=employee.employee_id,
            organization_id=employee.organization_id,
            current_step_order=first.step_order,
        )
        logger.info("Started %s approval %s for subject %s", definition.type.value, request_id, subject_id)
        return self.get_request(request_id)

    def submit(self, *, request_type: WorkflowType, subject_id: str, employee_id: str) -> ApprovalRequest:
        employee = self._get_employee(employee_id)
        definition = self.bind(request_type=request_type, employee=employee)
        return self.start(definition=definition, subject_id=subject_id, employee=employee)

    # -------- state --------
    def current_step(self, request: ApprovalRequest) -> Optional[WorkflowStep]:
        if request.status != RequestStatus.PENDING:
            return None
        wf = self._get_workflow(request.workflow_id)
        reached = request.current_step_order
        for step in wf.ordered_steps:
            if reached is not None and step.step_order < reached:
                continue
            if request.action_for(step.step_order) is None:
                return step
        return None

    def pending_for_approver(self, *, approver_id: str, organization_id: Optional[str] = None) -> list[ApprovalRequest]:
        """Requests whose current step is assigned to approver_id."""

        out: list[ApprovalRequest] = []
        for req in self._workflows.list_requests(organization_id=organization_id, status=RequestStatus.PENDING):
            step = self.current_step(req)
            if step and step.approver_id == approver_id:
                out.append(req)
        return out

    def ensure_pending(self, request: ApprovalRequest) -> None:
        if request.status.is_terminal:
            raise InvalidStateError(f"Request {request.request_id} is already {request.status.value}")

    def delete_request(self, request_id: str) -> None:
        req = self.get_request(request_id)
        self.ensure_pending(req)
        if not self._workflows.delete_request(request_id):
            raise ConflictError(f"Request {request_id} changed while deleting")

    # -------- actions --------
    def act(
        self,
        *,
        request_id: str,
        approver_id: str,
        action: StepAction,
        step_id: Optional[str] = None,
        remarks: Optional[str] = None,
        admin_override: bool = False,
    ) -> TransitionEvent:
        req = self.get_request(request_id)
        self.ensure_pending(req)
        self._get_employee(approver_id)

        wf = self._get_workflow(req.workflow_id)
        current = self.current_step(req)
        if current is None:
            raise InvalidStateError(f"Request {request_id} has no actionable step")

        if step_id is not None:
            target = wf.step_by_id(step_id)
            if target is None:
                raise NotFoundError(f"Workflow step {step_id} not found")
            if target.step_id != current.step_id:
                raise InvalidStateError(
                    f"Step {target.step_order} is not the current step ({current.step_order}) of request {request_id}"
                )

        if not admin_override and current.approver_id != approver_id:
            raise AuthorizationError(f"Employee {approver_id} is not the approver of step {current.step_order}")

        action = StepAction(action)
        now = self._clock()
        approval = StepApproval(
            step_order=current.step_order,
            approver_id=approver_id,
            action=RequestStatus(action.value),
            remarks=(remarks or "").strip() or None,
            acted_at=now,
        )

        next_step_order: Optional[int] = None
        if action == StepAction.REJECT:
            new_status = RequestStatus.REJECTED
        else:
            later = [s for s in wf.ordered_steps if s.step_order > current.step_order]
            if later:
                new_status = RequestStatus.PENDING
                next_step_order = later[0].step_order
            else:
                new_status = RequestStatus.APPROVED

        won = self._workflows.transition(
            request_id=request_id,
            expected_step_order=req.current_step_order if req.current_step_order is not None else current.step_order,
            approval=approval,
            new_status=new_status,
            next_step_order=next_step_order,
        )
        if not won:
            raise ConflictError(f"Request {request_id} was already acted on at step {current.step_order}")

        event = TransitionEvent(
            request_id=request_id,
            request_type=req.request_type,
            subject_id=req.subject_id,
            from_state=req.status,
            to_state=new_status,
            acting_approver_id=approver_id,
            step_order=current.step_order,
            timestamp=now,
        )
        logger.info(
            "Request %s step %s %s by %s: %s -> %s",
            request_id,
            current.step_order,
            action.value,
            approver_id,
            event.from_state.value,
            event.to_state.value,
        )
        # The transition is committed; a failing listener must not turn it into an error.
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener failed for request %s (%s); resync the subject to retry", request_id, new_status.value)
        return event

    def approve(self, *, request_id: str, approver_id: str, **kwargs) -> TransitionEvent:
        return self.act(request_id=request_id, approver_id=approver_id, action=StepAction.APPROVE, **kwargs)

    def reject(self, *, request_id: str, approver_id: str, **kwargs) -> TransitionEvent:
        return self.act(request_id=request_id, approver_id=approver_id, action=StepAction.REJECT, **kwargs)

    def act_many(
        self,
        *,
        request_ids: Iterable[str],
        approver_id: str,
        action: StepAction,
        remarks: Optional[str] = None,
        admin_override: bool = False,
    ) -> list[dict]:
        """Apply one action to many requests; each outcome is reported, none aborts the rest."""

        results: list[dict] = []
        for request_id in request_ids:
            try:
                event = self.act(
                    request_id=request_id,
                    approver_id=approver_id,
                    action=action,
                    remarks=remarks,
                    admin_override=admin_override,
                )
                results.append({"requestId": request_id, "success": True, "status": event.to_state.value})
            except DomainError as exc:
                logger.warning("Batch %s on %s failed: %s", StepAction(action).value, request_id, exc)
                results.append({"requestId": request_id, "success": False, "message": str(exc)})
        return results
