from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import RequestStatus, WorkflowType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, execute_guarded, fetchall, fetchone, new_id
from .model import ApprovalRequest, StepApproval, WorkflowDefinition, WorkflowStep
from .repository import WorkflowRepository

_REQUEST_COLUMNS = """
    request_id, workflow_id, request_type, subject_id, employee_id,
    organization_id, status, current_step_order, created_at
"""


class MySQLWorkflowRepository(WorkflowRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- helpers --------
    @staticmethod
    def _load_steps(cur, workflow_ids: Sequence[str]) -> dict[str, list[WorkflowStep]]:
        if not workflow_ids:
            return {}
        placeholders = ",".join(["%s"] * len(workflow_ids))
        cur.execute(
            f"""
            SELECT s.step_id, s.workflow_id, s.step_order, s.name, s.condition_expr, a.approver_id
            FROM workflow_steps s
            LEFT JOIN workflow_step_assignments a ON a.step_id = s.step_id
            WHERE s.workflow_id IN ({placeholders})
            ORDER BY s.step_order
            """,
            tuple(workflow_ids),
        )
        out: dict[str, list[WorkflowStep]] = {}
        for r in fetchall(cur):
            out.setdefault(r["workflow_id"], []).append(
                WorkflowStep(
                    step_id=r["step_id"],
                    workflow_id=r["workflow_id"],
                    step_order=int(r["step_order"]),
                    name=r["name"],
                    condition=r.get("condition_expr"),
                    approver_id=r.get("approver_id"),
                )
            )
        return out

    @staticmethod
    def _to_workflow(r: dict, steps: list[WorkflowStep]) -> WorkflowDefinition:
        return WorkflowDefinition(
            workflow_id=r["workflow_id"],
            organization_id=r["organization_id"],
            name=r["name"],
            type=WorkflowType(r["type"]),
            department_id=r.get("department_id"),
            is_active=bool(r["is_active"]),
            steps=tuple(steps),
        )

    @staticmethod
    def _load_approvals(cur, request_ids: Sequence[str]) -> dict[str, list[StepApproval]]:
        if not request_ids:
            return {}
        placeholders = ",".join(["%s"] * len(request_ids))
        cur.execute(
            f"""
            SELECT request_id, step_order, approver_id, action, remarks, acted_at
            FROM approval_actions
            WHERE request_id IN ({placeholders})
            ORDER BY step_order
            """,
            tuple(request_ids),
        )
        out: dict[str, list[StepApproval]] = {}
        for r in fetchall(cur):
            out.setdefault(r["request_id"], []).append(
                StepApproval(
                    step_order=int(r["step_order"]),
                    approver_id=r["approver_id"],
                    action=RequestStatus(r["action"]),
                    remarks=r.get("remarks"),
                    acted_at=r.get("acted_at"),
                )
            )
        return out

    @staticmethod
    def _to_request(r: dict, approvals: list[StepApproval]) -> ApprovalRequest:
        return ApprovalRequest(
            request_id=r["request_id"],
            workflow_id=r["workflow_id"],
            request_type=WorkflowType(r["request_type"]),
            subject_id=r["subject_id"],
            employee_id=r["employee_id"],
            organization_id=r["organization_id"],
            status=RequestStatus(r["status"]),
            current_step_order=int(r["current_step_order"]) if r.get("current_step_order") is not None else None,
            created_at=r["created_at"],
            approvals=tuple(approvals),
        )

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
        workflow_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO workflows(workflow_id, organization_id, name, type, department_id, is_active)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (workflow_id, organization_id, name, type.value, department_id, int(bool(is_active))),
            )
        return workflow_id

    def get_workflow(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT workflow_id, organization_id, name, type, department_id, is_active FROM workflows WHERE workflow_id=%s",
                (workflow_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            steps = self._load_steps(cur, [workflow_id])
            return self._to_workflow(r, steps.get(workflow_id, []))

    def list_workflows(
        self, *, organization_id: str, type: Optional[WorkflowType] = None
    ) -> Sequence[WorkflowDefinition]:
        sql = "SELECT workflow_id, organization_id, name, type, department_id, is_active FROM workflows WHERE organization_id=%s"
        params: list[object] = [organization_id]
        if type is not None:
            sql += " AND type=%s"
            params.append(type.value)
        sql += " ORDER BY name"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)
            steps = self._load_steps(cur, [r["workflow_id"] for r in rows])
            return [self._to_workflow(r, steps.get(r["workflow_id"], [])) for r in rows]

    def update_workflow(
        self, *, workflow_id: str, name: str, department_id: Optional[str], is_active: bool
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE workflows SET name=%s, department_id=%s, is_active=%s WHERE workflow_id=%s",
                (name, department_id, int(bool(is_active)), workflow_id),
            )
            return cur.rowcount > 0

    def delete_workflow(self, workflow_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                DELETE a FROM workflow_step_assignments a
                JOIN workflow_steps s ON s.step_id = a.step_id
                WHERE s.workflow_id=%s
                """,
                (workflow_id,),
            )
            cur.execute("DELETE FROM workflow_steps WHERE workflow_id=%s", (workflow_id,))
            cur.execute("DELETE FROM workflows WHERE workflow_id=%s", (workflow_id,))
            return cur.rowcount > 0

    # -------- steps --------
    def add_step(self, *, workflow_id: str, step_order: int, name: str, condition: Optional[str] = None) -> str:
        step_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO workflow_steps(step_id, workflow_id, step_order, name, condition_expr)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (step_id, workflow_id, int(step_order), name, condition),
            )
        return step_id

    def get_step(self, step_id: str) -> Optional[WorkflowStep]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.step_id, s.workflow_id, s.step_order, s.name, s.condition_expr, a.approver_id
                FROM workflow_steps s
                LEFT JOIN workflow_step_assignments a ON a.step_id = s.step_id
                WHERE s.step_id=%s
                """,
                (step_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return WorkflowStep(
                step_id=r["step_id"],
                workflow_id=r["workflow_id"],
                step_order=int(r["step_order"]),
                name=r["name"],
                condition=r.get("condition_expr"),
                approver_id=r.get("approver_id"),
            )

    def update_step(self, *, step_id: str, step_order: int, name: str, condition: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE workflow_steps SET step_order=%s, name=%s, condition_expr=%s WHERE step_id=%s",
                (int(step_order), name, condition, step_id),
            )
            return cur.rowcount > 0

    def delete_step(self, step_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM workflow_step_assignments WHERE step_id=%s", (step_id,))
            cur.execute("DELETE FROM workflow_steps WHERE step_id=%s", (step_id,))
            return cur.rowcount > 0

    def replace_assignment(self, *, step_id: str, approver_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO workflow_step_assignments(step_id, approver_id)
                VALUES(%s,%s)
                ON DUPLICATE KEY UPDATE approver_id=VALUES(approver_id), assigned_at=CURRENT_TIMESTAMP
                """,
                (step_id, approver_id),
            )

    # -------- requests --------
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
        request_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO approval_requests(
                    request_id, workflow_id, request_type, subject_id, employee_id,
                    organization_id, status, current_step_order
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    request_id,
                    workflow_id,
                    request_type.value,
                    subject_id,
                    employee_id,
                    organization_id,
                    RequestStatus.PENDING.value,
                    int(current_step_order),
                ),
            )
        return request_id

    def _get_one(self, where: str, params: tuple) -> Optional[ApprovalRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REQUEST_COLUMNS} FROM approval_requests WHERE {where}", params)
            r = fetchone(cur)
            if not r:
                return None
            approvals = self._load_approvals(cur, [r["request_id"]])
            return self._to_request(r, approvals.get(r["request_id"], []))

    def get_request(self, request_id: str) -> Optional[ApprovalRequest]:
        return self._get_one("request_id=%s", (request_id,))

    def get_request_for_subject(self, *, request_type: WorkflowType, subject_id: str) -> Optional[ApprovalRequest]:
        return self._get_one("request_type=%s AND subject_id=%s", (request_type.value, subject_id))

    def list_requests(
        self,
        *,
        workflow_id: Optional[str] = None,
        organization_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
    ) -> Sequence[ApprovalRequest]:
        clauses = ["1=1"]
        params: list[object] = []
        if workflow_id is not None:
            clauses.append("workflow_id=%s")
            params.append(workflow_id)
        if organization_id is not None:
            clauses.append("organization_id=%s")
            params.append(organization_id)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM approval_requests WHERE {' AND '.join(clauses)} ORDER BY created_at",
                tuple(params),
            )
            rows = fetchall(cur)
            approvals = self._load_approvals(cur, [r["request_id"] for r in rows])
            return [self._to_request(r, approvals.get(r["request_id"], [])) for r in rows]

    def transition(
        self,
        *,
        request_id: str,
        expected_step_order: int,
        approval: StepApproval,
        new_status: RequestStatus,
        next_step_order: Optional[int],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            won = execute_guarded(
                cur,
                """
                UPDATE approval_requests
                SET status=%s, current_step_order=%s
                WHERE request_id=%s AND status=%s AND current_step_order=%s
                """,
                (
                    new_status.value,
                    next_step_order,
                    request_id,
                    RequestStatus.PENDING.value,
                    int(expected_step_order),
                ),
            )
            if not won:
                return False

            cur.execute(
                """
                INSERT INTO approval_actions(request_id, step_order, approver_id, action, remarks, acted_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    request_id,
                    int(approval.step_order),
                    approval.approver_id,
                    approval.action.value,
                    approval.remarks,
                    approval.acted_at,
                ),
            )
            return True

    def delete_request(self, request_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            if not execute_guarded(
                cur,
                "DELETE FROM approval_requests WHERE request_id=%s AND status=%s",
                (request_id, RequestStatus.PENDING.value),
            ):
                return False
            cur.execute("DELETE FROM approval_actions WHERE request_id=%s", (request_id,))
            return True
