from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from ..attendance.model import DayRecord
from ..employees.model import Employee


@dataclass(frozen=True)
class PeriodReport:
    """Read-model for one employee over one period (summary cards, export)."""

    employee: Employee
    start: date
    end: date
    total_working_days: int
    present_days: int
    absent_days: int
    half_days: int
    on_leave_days: int
    holiday_days: int
    pending_days: int
    attendance_percentage: int
    total_working_hours: float
    average_working_hours: float
    daily_records: tuple[DayRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        e = self.employee
        return {
            "userId": e.employee_id,
            "employeeCode": e.employee_code,
            "userName": e.full_name,
            "department": e.department,
            "designation": e.designation,
            "reportingTo": e.reporting_to,
            "totalWorkingDays": self.total_working_days,
            "presentDays": self.present_days,
            "absentDays": self.absent_days,
            "halfDays": self.half_days,
            "onLeaveDays": self.on_leave_days,
            "attendancePercentage": self.attendance_percentage,
            "totalWorkingHours": self.total_working_hours,
            "averageWorkingHours": self.average_working_hours,
            "dailyRecords": [r.to_dict() for r in self.daily_records],
        }


@dataclass(frozen=True)
class ReportData:
    reports: list[PeriodReport]
    summary: dict
