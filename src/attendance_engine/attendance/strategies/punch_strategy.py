from __future__ import annotations

from ...common.datetime_utils import to_minute_of_day
from ...core.enums import DayStatus, PunchType
from ..model import DayRecord
from .base import DayContext, DayStrategy


class PunchStrategy(DayStrategy):
    """Working day with at least one punch.

    first_in is the earliest check-in; last_out the latest check-out strictly
    after it. A check-in after the half-day cutoff yields half-day even with
    a later check-out.

    Both thresholds are strict minute-of-day comparisons: late means after
    work start plus grace (09:16 with 09:00 + 15 is late, 09:15 is not), and
    half-day means after the cutoff (14:01 with a 14:00 cutoff, not 13:50 or
    14:00). Worked examples elsewhere that mark 09:20 on time or 13:50 as
    half-day do not follow these rules; the rules win.
    """

    def decide(self, ctx: DayContext) -> DayRecord:
        config = ctx.schedule.config
        check_ins = [p.timestamp for p in ctx.punches if p.type == PunchType.CHECK_IN]
        if not check_ins:
            return DayRecord(work_date=ctx.work_date, status=DayStatus.ABSENT, note="Check-out without check-in")

        first_in = min(check_ins)
        check_outs = [p.timestamp for p in ctx.punches if p.type == PunchType.CHECK_OUT and p.timestamp > first_in]
        last_out = max(check_outs) if check_outs else None

        working_hours = 0.0
        if last_out is not None:
            working_hours = round((last_out - first_in).total_seconds() / 3600, 2)

        in_minute = to_minute_of_day(first_in)
        late = in_minute > to_minute_of_day(config.work_start_time) + int(config.grace_minutes)
        early = last_out is not None and to_minute_of_day(last_out) < to_minute_of_day(config.work_end_time)

        status = DayStatus.PRESENT
        if in_minute > to_minute_of_day(config.half_day_cutoff_time):
            status = DayStatus.HALF_DAY

        return DayRecord(
            work_date=ctx.work_date,
            status=status,
            in_time=first_in,
            out_time=last_out,
            working_hours=working_hours,
            late_clock_in=late,
            no_clock_out=last_out is None,
            early_clock_out=early,
        )
