from __future__ import annotations

from datetime import date, datetime, time
from typing import Sequence

from ..core.enums import PunchType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import ApprovedLeave, PunchEvent
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_punches(self, *, employee_id: str, start: date, end: date) -> Sequence[PunchEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT punch_type, punched_at, source
                FROM punches
                WHERE employee_id=%s AND punched_at >= %s AND punched_at <= %s
                ORDER BY punched_at
                """,
                (employee_id, datetime.combine(start, time.min), datetime.combine(end, time.max)),
            )
            return [
                PunchEvent(type=PunchType(r["punch_type"]), timestamp=r["punched_at"], source=r["source"])
                for r in fetchall(cur)
            ]

    def append_punch(self, *, employee_id: str, punch: PunchEvent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO punches(employee_id, punch_type, punched_at, source) VALUES(%s,%s,%s,%s)",
                (employee_id, punch.type.value, punch.timestamp, punch.source),
            )
            return int(cur.lastrowid)

    def list_approved_leaves(self, *, employee_id: str, start: date, end: date) -> Sequence[ApprovedLeave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, start_date, end_date
                FROM leave_requests
                WHERE employee_id=%s AND status=%s AND start_date <= %s AND end_date >= %s
                """,
                (employee_id, RequestStatus.APPROVED.value, end, start),
            )
            return [
                ApprovedLeave(employee_id=r["employee_id"], start_date=r["start_date"], end_date=r["end_date"])
                for r in fetchall(cur)
            ]
