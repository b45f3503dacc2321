from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..core.enums import DayStatus, PunchType
from ..core.exceptions import InvalidPunchSequence


@dataclass(frozen=True)
class PunchEvent:
    """One raw clock event. Append-only per employee per day."""

    type: PunchType
    timestamp: datetime
    source: str = "device"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PunchEvent":
        try:
            punch_type = PunchType(payload["type"])
            ts = payload["timestamp"]
            if isinstance(ts, str):
                ts = datetime.fromisoformat(ts)
        except (KeyError, ValueError) as exc:
            raise InvalidPunchSequence(f"Malformed punch: {payload!r}") from exc
        if not isinstance(ts, datetime):
            raise InvalidPunchSequence(f"Malformed punch timestamp: {payload!r}")
        return cls(type=punch_type, timestamp=ts, source=str(payload.get("source") or "device"))


@dataclass(frozen=True)
class ApprovedLeave:
    employee_id: str
    start_date: date
    end_date: date

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class DayRecord:
    """Domain entity: the classified attendance of one employee on one date.

    Recomputed from punches and facts, never edited directly.
    """

    work_date: date
    status: DayStatus
    in_time: Optional[datetime] = None
    out_time: Optional[datetime] = None
    working_hours: float = 0.0
    is_holiday: bool = False
    is_sunday: bool = False
    late_clock_in: bool = False
    no_clock_out: bool = False
    early_clock_out: bool = False
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.strftime("%Y-%m-%d"),
            "status": self.status.value,
            "inTime": self.in_time.strftime("%H:%M") if self.in_time else None,
            "outTime": self.out_time.strftime("%H:%M") if self.out_time else None,
            "workingHours": self.working_hours,
            "isHoliday": self.is_holiday,
            "isSunday": self.is_sunday,
            "lateClockIn": self.late_clock_in,
            "noClockOut": self.no_clock_out,
            "earlyClockOut": self.early_clock_out,
            "note": self.note,
        }
