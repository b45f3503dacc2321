from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import RequestStatus, WorkflowType


@dataclass(frozen=True)
class WorkflowStep:
    """One ordered stage of an approval chain with at most one active approver."""

    step_id: str
    workflow_id: str
    step_order: int
    name: str
    condition: Optional[str] = None
    approver_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.step_id,
            "workflowId": self.workflow_id,
            "stepOrder": self.step_order,
            "name": self.name,
            "condition": self.condition,
            "approverId": self.approver_id,
        }


@dataclass(frozen=True)
class WorkflowDefinition:
    workflow_id: str
    organization_id: str
    name: str
    type: WorkflowType
    department_id: Optional[str] = None
    is_active: bool = True
    steps: tuple[WorkflowStep, ...] = field(default_factory=tuple)

    @property
    def ordered_steps(self) -> list[WorkflowStep]:
        return sorted(self.steps, key=lambda s: s.step_order)

    def step_by_id(self, step_id: str) -> Optional[WorkflowStep]:
        return next((s for s in self.steps if s.step_id == step_id), None)

    def to_dict(self) -> dict:
        return {
            "id": self.workflow_id,
            "organizationId": self.organization_id,
            "name": self.name,
            "type": self.type.value,
            "departmentId": self.department_id,
            "isActive": self.is_active,
            "steps": [s.to_dict() for s in self.ordered_steps],
        }


@dataclass(frozen=True)
class StepApproval:
    """A terminal action recorded on one step."""

    step_order: int
    approver_id: str
    action: RequestStatus
    remarks: Optional[str] = None
    acted_at: Optional[datetime] = None


@dataclass(frozen=True)
class ApprovalRequest:
    """A running instance of a workflow for one subject (timeslip, leave, ...).

    ``current_step_order`` is the compare-and-swap token for actions; None
    once the request is terminal.
    """

    request_id: str
    workflow_id: str
    request_type: WorkflowType
    subject_id: str
    employee_id: str
    organization_id: str
    status: RequestStatus
    current_step_order: Optional[int]
    created_at: datetime
    approvals: tuple[StepApproval, ...] = field(default_factory=tuple)

    def action_for(self, step_order: int) -> Optional[StepApproval]:
        return next((a for a in self.approvals if a.step_order == step_order), None)

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "workflowId": self.workflow_id,
            "requestType": self.request_type.value,
            "subjectId": self.subject_id,
            "employeeId": self.employee_id,
            "status": self.status.value,
            "currentStepOrder": self.current_step_order,
            "createdAt": self.created_at.isoformat(),
            "approvals": [
                {
                    "stepOrder": a.step_order,
                    "approverId": a.approver_id,
                    "action": a.action.value,
                    "remarks": a.remarks,
                    "actedAt": a.acted_at.isoformat() if a.acted_at else None,
                }
                for a in self.approvals
            ],
        }


@dataclass(frozen=True)
class TransitionEvent:
    request_id: str
    request_type: WorkflowType
    subject_id: str
    from_state: RequestStatus
    to_state: RequestStatus
    acting_approver_id: str
    step_order: int
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "requestId": self.request_id,
            "requestType": self.request_type.value,
            "subjectId": self.subject_id,
            "fromState": self.from_state.value,
            "toState": self.to_state.value,
            "actingApproverId": self.acting_approver_id,
            "stepOrder": self.step_order,
            "timestamp": self.timestamp.isoformat(),
        }
