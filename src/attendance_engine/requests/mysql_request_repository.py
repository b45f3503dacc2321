from __future__ import annotations

from datetime import date, time
from typing import Optional, Sequence

from ..core.enums import MissingType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, execute_guarded, fetchall, fetchone, new_id, normalize_mysql_time
from .model import LeaveRequest, Timeslip
from .repository import RequestRepository

_TIMESLIP_COLUMNS = """
    timeslip_id, employee_id, organization_id, work_date, missing_type,
    corrected_in, corrected_out, reason, status, created_at, updated_at
"""

_LEAVE_COLUMNS = "leave_id, employee_id, organization_id, start_date, end_date, reason, status, created_at"


def _to_timeslip(r: dict) -> Timeslip:
    return Timeslip(
        timeslip_id=r["timeslip_id"],
        employee_id=r["employee_id"],
        organization_id=r["organization_id"],
        work_date=r["work_date"],
        missing_type=MissingType(r["missing_type"]),
        corrected_in=normalize_mysql_time(r.get("corrected_in")),
        corrected_out=normalize_mysql_time(r.get("corrected_out")),
        reason=r.get("reason"),
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        updated_at=r.get("updated_at"),
    )


def _to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=r["leave_id"],
        employee_id=r["employee_id"],
        organization_id=r["organization_id"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
    )


def _filters(employee_id: Optional[str], status: Optional[RequestStatus]) -> tuple[str, list]:
    clauses = ["1=1"]
    params: list[object] = []
    if employee_id is not None:
        clauses.append("employee_id=%s")
        params.append(employee_id)
    if status is not None:
        clauses.append("status=%s")
        params.append(status.value)
    return " AND ".join(clauses), params


class MySQLRequestRepository(RequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Timeslips --------
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
        timeslip_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO timeslips(
                    timeslip_id, employee_id, organization_id, work_date, missing_type,
                    corrected_in, corrected_out, reason, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    timeslip_id,
                    employee_id,
                    organization_id,
                    work_date,
                    missing_type.value,
                    corrected_in,
                    corrected_out,
                    reason,
                    RequestStatus.PENDING.value,
                ),
            )
        return timeslip_id

    def get_timeslip(self, timeslip_id: str) -> Optional[Timeslip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TIMESLIP_COLUMNS} FROM timeslips WHERE timeslip_id=%s", (timeslip_id,))
            r = fetchone(cur)
            return _to_timeslip(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            return execute_guarded(
                cur,
                """
                UPDATE timeslips
                SET work_date=%s, missing_type=%s, corrected_in=%s, corrected_out=%s, reason=%s
                WHERE timeslip_id=%s AND status=%s
                """,
                (
                    work_date,
                    missing_type.value,
                    corrected_in,
                    corrected_out,
                    reason,
                    timeslip_id,
                    RequestStatus.PENDING.value,
                ),
            )

    def delete_timeslip(self, timeslip_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return execute_guarded(
                cur,
                "DELETE FROM timeslips WHERE timeslip_id=%s AND status=%s",
                (timeslip_id, RequestStatus.PENDING.value),
            )

    def decide_timeslip(self, *, timeslip_id: str, status: RequestStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return execute_guarded(
                cur,
                "UPDATE timeslips SET status=%s WHERE timeslip_id=%s AND status=%s",
                (status.value, timeslip_id, RequestStatus.PENDING.value),
            )

    def list_timeslips(
        self,
        *,
        employee_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[Timeslip]:
        where, params = _filters(employee_id, status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TIMESLIP_COLUMNS} FROM timeslips WHERE {where} ORDER BY created_at DESC LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [_to_timeslip(r) for r in fetchall(cur)]

    # -------- Leave requests --------
    def create_leave(
        self,
        *,
        employee_id: str,
        organization_id: str,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> str:
        leave_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(leave_id, employee_id, organization_id, start_date, end_date, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (leave_id, employee_id, organization_id, start_date, end_date, reason, RequestStatus.PENDING.value),
            )
        return leave_id

    def get_leave(self, leave_id: str) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_LEAVE_COLUMNS} FROM leave_requests WHERE leave_id=%s", (leave_id,))
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def delete_leave(self, leave_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return execute_guarded(
                cur,
                "DELETE FROM leave_requests WHERE leave_id=%s AND status=%s",
                (leave_id, RequestStatus.PENDING.value),
            )

    def decide_leave(self, *, leave_id: str, status: RequestStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return execute_guarded(
                cur,
                "UPDATE leave_requests SET status=%s WHERE leave_id=%s AND status=%s",
                (status.value, leave_id, RequestStatus.PENDING.value),
            )

    def list_leaves(
        self,
        *,
        employee_id: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        where, params = _filters(employee_id, status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LEAVE_COLUMNS} FROM leave_requests WHERE {where} ORDER BY created_at DESC LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [_to_leave(r) for r in fetchall(cur)]
