from __future__ import annotations

from dataclasses import dataclass

from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import DayContext, DayStrategy
from .strategies.holiday_strategy import HolidayStrategy
from .strategies.leave_strategy import LeaveStrategy
from .strategies.punch_strategy import PunchStrategy


@dataclass
class DayStrategyFactory:
    """Factory Pattern: pick the first rule that applies to the day.

    Order: non-working day, approved leave, no punches, punches.
    """

    def for_day(self, ctx: DayContext) -> DayStrategy:
        if not ctx.schedule.is_working_day:
            return HolidayStrategy()
        if ctx.on_leave:
            return LeaveStrategy()
        if not ctx.punches:
            return AbsentStrategy()
        return PunchStrategy()
