from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, organization_id, employee_code, full_name, department_id,
    department_name, designation, reporting_to, branch_id, is_active
"""


def _to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=r["employee_id"],
        organization_id=r["organization_id"],
        employee_code=r["employee_code"],
        full_name=r["full_name"],
        department_id=r.get("department_id"),
        department=r.get("department_name"),
        designation=r.get("designation"),
        reporting_to=r.get("reporting_to"),
        branch_id=r.get("branch_id"),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (employee_id,))
            r = fetchone(cur)
            return _to_employee(r) if r else None

    def list_for_organization(self, *, organization_id: str, active_only: bool = True) -> Sequence[Employee]:
        sql = f"SELECT {_COLUMNS} FROM employees WHERE organization_id=%s"
        if active_only:
            sql += " AND is_active=1"
        sql += " ORDER BY employee_code"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (organization_id,))
            return [_to_employee(r) for r in fetchall(cur)]
