from __future__ import annotations

from ...core.enums import DayStatus
from ..model import DayRecord
from .base import DayContext, DayStrategy


class AbsentStrategy(DayStrategy):
    """Working day with no punches.

    Only a day that is already over counts as absent; today and future days
    stay pending until they can be judged.
    """

    def decide(self, ctx: DayContext) -> DayRecord:
        if ctx.work_date < ctx.today:
            return DayRecord(work_date=ctx.work_date, status=DayStatus.ABSENT)
        return DayRecord(work_date=ctx.work_date, status=DayStatus.PENDING, note="Day not complete")
