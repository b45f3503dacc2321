from __future__ import annotations

from ...core.enums import DayStatus
from ..model import DayRecord
from .base import DayContext, DayStrategy


class LeaveStrategy(DayStrategy):
    """Approved leave covers the day."""

    def decide(self, ctx: DayContext) -> DayRecord:
        return DayRecord(work_date=ctx.work_date, status=DayStatus.ON_LEAVE)
