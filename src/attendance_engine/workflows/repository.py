from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus, WorkflowType
from .model import ApprovalRequest, StepApproval, WorkflowDefinition, WorkflowStep


class WorkflowRepository(Protocol):
    # Definitions
    def create_workflow(
        self,
        *,
        organization_id: str,
        name: str,
        type: WorkflowType,
        department_id: Optional[str] = None,
        is_active: bool = True,
    ) -> str:
        raise NotImplementedError

    def get_workflow(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        """Definition with its steps and active assignments."""

        raise NotImplementedError

    def list_workflows(
        self, *, organization_id: str, type: Optional[WorkflowType] = None
    ) -> Sequence[WorkflowDefinition]:
        raise NotImplementedError

    def update_workflow(
        self, *, workflow_id: str, name: str, department_id: Optional[str], is_active: bool
    ) -> bool:
        raise NotImplementedError

    def delete_workflow(self, workflow_id: str) -> bool:
        raise NotImplementedError

    # Steps
    def add_step(self, *, workflow_id: str, step_order: int, name: str, condition: Optional[str] = None) -> str:
        raise NotImplementedError

    def get_step(self, step_id: str) -> Optional[WorkflowStep]:
        raise NotImplementedError

    def update_step(self, *, step_id: str, step_order: int, name: str, condition: Optional[str]) -> bool:
        raise NotImplementedError

    def delete_step(self, step_id: str) -> bool:
        raise NotImplementedError

    def replace_assignment(self, *, step_id: str, approver_id: str) -> None:
        """Drop any active assignment of the step and store this one."""

        raise NotImplementedError

    # Requests
    def create_request(
        self,
        *,
        workflow_id: str,
        request_type: WorkflowType,
        subject_id: str,
        employee_id: str,
        organization_id: str,
        current_step_order: int,
    ) -> str:
        raise NotImplementedError

    def get_request(self, request_id: str) -> Optional[ApprovalRequest]:
        raise NotImplementedError

    def get_request_for_subject(self, *, request_type: WorkflowType, subject_id: str) -> Optional[ApprovalRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        workflow_id: Optional[str] = None,
        organization_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
    ) -> Sequence[ApprovalRequest]:
        raise NotImplementedError

    def transition(
        self,
        *,
        request_id: str,
        expected_step_order: int,
        approval: StepApproval,
        new_status: RequestStatus,
        next_step_order: Optional[int],
    ) -> bool:
        """Compare-and-swap: apply only while the request is PENDING at expected_step_order.

        Returns False when another actor got there first.
        """

        raise NotImplementedError

    def delete_request(self, request_id: str) -> bool:
        """Delete a PENDING request. False when missing or already terminal."""

        raise NotImplementedError
