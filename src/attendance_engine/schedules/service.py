from __future__ import annotations

import logging
import threading
from datetime import date

from ..common.datetime_utils import iter_days, month_bounds
from ..core.exceptions import NotFoundError
from ..employees.repository import EmployeeRepository
from .calendar_rules import build_day_schedule
from .model import DaySchedule, Holiday, ScheduleConfig
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


class ScheduleResolver:
    """Resolve the effective schedule for (organization, employee, date).

    Branch timing overrides organization hours only while the branch is
    active. Weekday-off rules and holidays always come from the organization.
    Settings and the holiday calendar are cached per (organization, month).
    """

    def __init__(self, schedules: ScheduleRepository, employees: EmployeeRepository):
        self._schedules = schedules
        self._employees = employees
        self._lock = threading.Lock()
        self._settings_cache: dict[str, ScheduleConfig] = {}
        self._holiday_cache: dict[tuple[str, int, int], tuple[Holiday, ...]] = {}

    def clear_cache(self) -> None:
        with self._lock:
            self._settings_cache.clear()
            self._holiday_cache.clear()

    def _org_config(self, organization_id: str) -> ScheduleConfig:
        with self._lock:
            cached = self._settings_cache.get(organization_id)
        if cached is not None:
            return cached

        config = self._schedules.get_org_settings(organization_id=organization_id)
        if config is None:
            logger.info("No attendance settings for organization %s, using defaults", organization_id)
            config = ScheduleConfig()
        with self._lock:
            self._settings_cache[organization_id] = config
        return config

    def _holidays_for_month(self, organization_id: str, year: int, month: int) -> tuple[Holiday, ...]:
        key = (organization_id, year, month)
        with self._lock:
            cached = self._holiday_cache.get(key)
        if cached is not None:
            return cached

        start, end = month_bounds(year, month)
        holidays = tuple(self._schedules.list_holidays(organization_id=organization_id, start=start, end=end))
        with self._lock:
            self._holiday_cache[key] = holidays
        return holidays

    def _holidays(self, organization_id: str, start: date, end: date) -> list[Holiday]:
        out: list[Holiday] = []
        year, month = start.year, start.month
        while (year, month) <= (end.year, end.month):
            out.extend(self._holidays_for_month(organization_id, year, month))
            year, month = (year + 1, 1) if month == 12 else (year, month + 1)
        return [h for h in out if start <= h.date <= end]

    def resolve(self, *, organization_id: str, employee_id: str, on: date) -> ScheduleConfig:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")

        config = self._org_config(organization_id)
        if employee.branch_id:
            branch = self._schedules.get_branch(branch_id=employee.branch_id)
            if branch and branch.is_active:
                config = config.with_branch(branch)
        return config

    def resolve_range(self, *, organization_id: str, employee_id: str, start: date, end: date) -> list[DaySchedule]:
        config = self.resolve(organization_id=organization_id, employee_id=employee_id, on=start)
        holidays = self._holidays(organization_id, start, end)
        accepted = frozenset(
            self._schedules.list_accepted_optional_holidays(employee_id=employee_id, start=start, end=end)
        )
        return [build_day_schedule(config, day, holidays, accepted) for day in iter_days(start, end)]

    def resolve_day(self, *, organization_id: str, employee_id: str, on: date) -> DaySchedule:
        return self.resolve_range(organization_id=organization_id, employee_id=employee_id, start=on, end=on)[0]

    def organization_calendar(self, *, organization_id: str, start: date, end: date) -> list[DaySchedule]:
        """Org-level day schedules (no branch, no optional holidays)."""

        config = self._org_config(organization_id)
        holidays = self._holidays(organization_id, start, end)
        return [build_day_schedule(config, day, holidays) for day in iter_days(start, end)]
