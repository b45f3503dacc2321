from __future__ import annotations

import calendar
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Optional, Sequence

from ..attendance.service import AttendanceService
from ..core.constants import DEFAULT_REPORT_WORKERS
from ..common.validators import require_in_range
from ..core.exceptions import NotFoundError
from ..common.datetime_utils import month_bounds
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..schedules.service import ScheduleResolver
from .aggregator import aggregate_period
from .model import PeriodReport, ReportData

logger = logging.getLogger(__name__)


class ReportService:
    """Monthly attendance reports across employees.

    Per-employee work is independent and read-only, so it runs on a thread
    pool.
    """

    def __init__(
        self,
        attendance: AttendanceService,
        employees: EmployeeRepository,
        resolver: ScheduleResolver,
        *,
        max_workers: int = DEFAULT_REPORT_WORKERS,
    ):
        self._attendance = attendance
        self._employees = employees
        self._resolver = resolver
        self._max_workers = max(1, int(max_workers))

    def employee_report(
        self,
        *,
        organization_id: str,
        employee: Employee,
        start: date,
        end: date,
        today: Optional[date] = None,
    ) -> PeriodReport:
        records = self._attendance.daily_records(
            organization_id=organization_id,
            employee_id=employee.employee_id,
            start=start,
            end=end,
            today=today,
        )
        return aggregate_period(employee, records, start=start, end=end)

    def _select_employees(self, organization_id: str, employee_ids: Optional[Sequence[str]]) -> list[Employee]:
        if not employee_ids:
            return list(self._employees.list_for_organization(organization_id=organization_id))

        selected: list[Employee] = []
        for employee_id in employee_ids:
            employee = self._employees.get_by_id(employee_id)
            if not employee:
                raise NotFoundError(f"Employee {employee_id} not found")
            selected.append(employee)
        return selected

    def build_period_report(
        self,
        *,
        organization_id: str,
        start: date,
        end: date,
        employee_ids: Optional[Sequence[str]] = None,
        today: Optional[date] = None,
    ) -> list[PeriodReport]:
        employees = self._select_employees(organization_id, employee_ids)
        logger.info("Building report for %d employee(s), %s..%s", len(employees), start, end)

        def build(employee: Employee) -> PeriodReport:
            return self.employee_report(
                organization_id=organization_id, employee=employee, start=start, end=end, today=today
            )

        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            return list(pool.map(build, employees))

    def build_monthly_report(
        self,
        *,
        organization_id: str,
        year: int,
        month: int,
        employee_ids: Optional[Sequence[str]] = None,
        today: Optional[date] = None,
    ) -> ReportData:
        month = require_in_range(month, "Month", 1, 12)

        start, end = month_bounds(year, month)
        reports = self.build_period_report(
            organization_id=organization_id, start=start, end=end, employee_ids=employee_ids, today=today
        )

        org_days = self._resolver.organization_calendar(organization_id=organization_id, start=start, end=end)
        summary = {
            "totalEmployees": len(reports),
            "period": f"{calendar.month_name[int(month)]} {int(year)}",
            "workingDays": sum(1 for d in org_days if d.is_working_day),
            "holidays": sum(1 for d in org_days if not d.is_working_day),
        }
        return ReportData(reports=reports, summary=summary)
