from __future__ import annotations

import math
from collections import Counter
from datetime import date
from typing import Sequence

from ..attendance.model import DayRecord
from ..core.enums import DayStatus
from ..employees.model import Employee
from .model import PeriodReport


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def attendance_percentage(*, present_days: int, half_days: int, total_working_days: int) -> int:
    """(present + half/2) / working days as a whole percent, 0 when there are no working days."""

    if total_working_days <= 0:
        return 0
    return round_half_up((present_days + 0.5 * half_days) / total_working_days * 100)


def aggregate_period(employee: Employee, records: Sequence[DayRecord], *, start: date, end: date) -> PeriodReport:
    counts = Counter(r.status for r in records)
    present = counts[DayStatus.PRESENT]
    half = counts[DayStatus.HALF_DAY]
    total_working_days = sum(1 for r in records if r.status != DayStatus.HOLIDAY)

    total_hours = round(sum(float(r.working_hours or 0) for r in records), 2)
    average_hours = round(total_hours / present, 2) if present else 0.0

    return PeriodReport(
        employee=employee,
        start=start,
        end=end,
        total_working_days=total_working_days,
        present_days=present,
        absent_days=counts[DayStatus.ABSENT],
        half_days=half,
        on_leave_days=counts[DayStatus.ON_LEAVE],
        holiday_days=counts[DayStatus.HOLIDAY],
        pending_days=counts[DayStatus.PENDING],
        attendance_percentage=attendance_percentage(
            present_days=present, half_days=half, total_working_days=total_working_days
        ),
        total_working_hours=total_hours,
        average_working_hours=average_hours,
        daily_records=tuple(sorted(records, key=lambda r: r.work_date)),
    )
