from __future__ import annotations

import io
from typing import Optional, Sequence

import pandas as pd

from ..attendance.model import DayRecord
from ..core.enums import DayStatus
from .model import PeriodReport

EMPLOYEE_COLUMNS = ["Employee Code", "Employee Name", "Department", "Designation", "Reporting To"]
SUMMARY_COLUMNS = ["Total Working Days", "Total LOP", "Attendance %"]

MISSING_DAY_CODE = "A"

_STATUS_CODES = {
    DayStatus.PRESENT: "P",
    DayStatus.HALF_DAY: "HD",
    DayStatus.ABSENT: "A",
    DayStatus.ON_LEAVE: "L",
    DayStatus.PENDING: "-",
    DayStatus.HOLIDAY: "H",
}

_CODE_STATUSES = {code: status for status, code in _STATUS_CODES.items()}


def status_code(record: Optional[DayRecord]) -> str:
    """Letter code for one grid cell. Holiday and weekly-off flags win over status."""

    if record is None:
        return MISSING_DAY_CODE
    if record.is_holiday or record.is_sunday:
        return "H"
    try:
        return _STATUS_CODES[DayStatus(record.status)]
    except ValueError:
        return MISSING_DAY_CODE


def status_for_code(code: str) -> DayStatus:
    try:
        return _CODE_STATUSES[code]
    except KeyError:
        raise ValueError(f"Unknown attendance code: {code!r}")


def export_dates(reports: Sequence[PeriodReport]) -> list[str]:
    """Sorted union of every date in any employee's records."""

    return sorted({r.work_date.strftime("%Y-%m-%d") for rep in reports for r in rep.daily_records})


def build_export_rows(reports: Sequence[PeriodReport]) -> list[dict]:
    dates = export_dates(reports)
    rows: list[dict] = []

    for rep in reports:
        e = rep.employee
        row: dict = {
            "Employee Code": e.employee_code or "N/A",
            "Employee Name": e.full_name or "N/A",
            "Department": e.department or "N/A",
            "Designation": e.designation or "N/A",
            "Reporting To": e.reporting_to or "N/A",
        }

        by_date = {r.work_date.strftime("%Y-%m-%d"): r for r in rep.daily_records}
        for d in dates:
            row[d] = status_code(by_date.get(d))

        row["Total Working Days"] = rep.present_days + rep.half_days
        row["Total LOP"] = rep.absent_days
        row["Attendance %"] = f"{rep.attendance_percentage or 0}%"
        rows.append(row)

    return rows


def to_dataframe(reports: Sequence[PeriodReport]) -> pd.DataFrame:
    columns = EMPLOYEE_COLUMNS + export_dates(reports) + SUMMARY_COLUMNS
    return pd.DataFrame(build_export_rows(reports), columns=columns)


def to_csv_bytes(reports: Sequence[PeriodReport]) -> bytes:
    return to_dataframe(reports).to_csv(index=False).encode("utf-8-sig")


def to_excel_bytes(reports: Sequence[PeriodReport], *, sheet_name: str = "Attendance") -> bytes:
    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        to_dataframe(reports).to_excel(writer, index=False, sheet_name=sheet_name)
    return out.getvalue()
