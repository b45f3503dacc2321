from __future__ import annotations

from ...core.enums import DayStatus
from ..model import DayRecord
from .base import DayContext, DayStrategy


class HolidayStrategy(DayStrategy):
    """Weekly off or calendar holiday. Never carries working hours."""

    def decide(self, ctx: DayContext) -> DayRecord:
        holiday = ctx.schedule.holiday
        return DayRecord(
            work_date=ctx.work_date,
            status=DayStatus.HOLIDAY,
            working_hours=0.0,
            is_holiday=holiday is not None,
            is_sunday=ctx.schedule.is_weekly_off,
            note=holiday.name if holiday else "Weekly off",
        )
