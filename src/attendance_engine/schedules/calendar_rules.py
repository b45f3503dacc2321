from __future__ import annotations

from datetime import date
from typing import AbstractSet, Iterable, Optional

from ..common.datetime_utils import js_weekday, weekday_occurrence
from .model import DaySchedule, Holiday, ScheduleConfig


def is_weekly_off(config: ScheduleConfig, day: date) -> bool:
    """True when day is outside workingDays or hit by a weekday-off rule.

    A rule only ever suppresses a day already in workingDays; week index 5
    simply never matches in a month with four occurrences of the weekday.
    """

    weekday = js_weekday(day)
    if weekday not in config.working_days:
        return True
    return weekday_occurrence(day) in config.off_weeks(weekday)


def find_holiday(
    day: date,
    holidays: Iterable[Holiday],
    accepted_optional: AbstractSet[date] = frozenset(),
) -> Optional[Holiday]:
    for holiday in holidays:
        if holiday.date != day:
            continue
        if not holiday.is_optional or day in accepted_optional:
            return holiday
    return None


def build_day_schedule(
    config: ScheduleConfig,
    day: date,
    holidays: Iterable[Holiday] = (),
    accepted_optional: AbstractSet[date] = frozenset(),
) -> DaySchedule:
    if is_weekly_off(config, day):
        return DaySchedule(work_date=day, config=config, is_weekly_off=True)
    return DaySchedule(work_date=day, config=config, holiday=find_holiday(day, holidays, accepted_optional))


def is_non_working_day(
    config: ScheduleConfig,
    day: date,
    holidays: Iterable[Holiday] = (),
    accepted_optional: AbstractSet[date] = frozenset(),
) -> bool:
    return not build_day_schedule(config, day, holidays, accepted_optional).is_working_day
