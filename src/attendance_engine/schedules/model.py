from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, time
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_clock_time
from ..core import constants
from ..core.exceptions import ConfigurationError

WeekdayOffRule = tuple[int, int]


@dataclass(frozen=True)
class BranchTiming:
    """Per-branch override of the organization's working hours."""

    branch_id: str
    name: str
    work_start_time: time
    work_end_time: time
    grace_minutes: int
    late_threshold_minutes: int
    is_active: bool = True


@dataclass(frozen=True)
class Holiday:
    date: date
    name: str
    is_optional: bool = False


@dataclass(frozen=True)
class ScheduleConfig:
    """Effective schedule for one employee on one date.

    Weekdays use Sunday=0 .. Saturday=6. ``weekday_off_rules`` holds
    (weekday, week_index) pairs, e.g. (6, 2) is "2nd Saturday off".
    """

    work_start_time: time = parse_clock_time(constants.DEFAULT_WORK_START)
    work_end_time: time = parse_clock_time(constants.DEFAULT_WORK_END)
    grace_minutes: int = constants.DEFAULT_GRACE_MINUTES
    late_threshold_minutes: int = constants.DEFAULT_LATE_THRESHOLD_MINUTES
    half_day_cutoff_time: time = parse_clock_time(constants.DEFAULT_HALF_DAY_CUTOFF)
    working_days: frozenset[int] = frozenset(constants.DEFAULT_WORKING_DAYS)
    weekday_off_rules: frozenset[WeekdayOffRule] = field(default_factory=frozenset)
    allowed_radius_meters: int = constants.DEFAULT_ALLOWED_RADIUS_METERS
    office_latitude: Optional[float] = None
    office_longitude: Optional[float] = None
    enable_gps_validation: bool = True
    enable_wifi_validation: bool = False
    enable_face_validation: bool = True
    enable_checkin_validation: bool = True
    enable_checkout_validation: bool = True

    def __post_init__(self) -> None:
        if not self.working_days:
            raise ConfigurationError("workingDays must not be empty")
        for day in self.working_days:
            if not 0 <= int(day) <= 6:
                raise ConfigurationError(f"Invalid working day: {day!r}")
        for weekday, week_index in self.weekday_off_rules:
            if not 0 <= int(weekday) <= 6:
                raise ConfigurationError(f"Invalid weekday in weekdayOffRules: {weekday!r}")
            if not 1 <= int(week_index) <= constants.MAX_WEEK_INDEX:
                raise ConfigurationError(f"Invalid week index in weekdayOffRules: {week_index!r}")
        if int(self.grace_minutes) < 0 or int(self.late_threshold_minutes) < 0:
            raise ConfigurationError("Grace and late threshold minutes must not be negative")

    def off_weeks(self, weekday: int) -> frozenset[int]:
        return frozenset(week for day, week in self.weekday_off_rules if day == weekday)

    def with_branch(self, branch: BranchTiming) -> "ScheduleConfig":
        return replace(
            self,
            work_start_time=branch.work_start_time,
            work_end_time=branch.work_end_time,
            grace_minutes=int(branch.grace_minutes),
            late_threshold_minutes=int(branch.late_threshold_minutes),
        )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ScheduleConfig":
        """Build from the settings payload (camelCase keys, times as strings)."""

        def pick(key: str, default: Any) -> Any:
            value = payload.get(key)
            return default if value is None else value

        try:
            rules = frozenset(
                (int(weekday), int(week))
                for weekday, weeks in (payload.get("weekdayOffRules") or {}).items()
                for week in (weeks or [])
            )
            working_days = payload.get("workingDays")
            if working_days is None:
                working_days = constants.DEFAULT_WORKING_DAYS

            return cls(
                work_start_time=parse_clock_time(pick("workStartTime", constants.DEFAULT_WORK_START)),
                work_end_time=parse_clock_time(pick("workEndTime", constants.DEFAULT_WORK_END)),
                grace_minutes=int(pick("graceMinutes", constants.DEFAULT_GRACE_MINUTES)),
                late_threshold_minutes=int(pick("lateThresholdMinutes", constants.DEFAULT_LATE_THRESHOLD_MINUTES)),
                half_day_cutoff_time=parse_clock_time(pick("halfDayCutoffTime", constants.DEFAULT_HALF_DAY_CUTOFF)),
                working_days=frozenset(int(d) for d in working_days),
                weekday_off_rules=rules,
                allowed_radius_meters=int(pick("allowedRadiusMeters", constants.DEFAULT_ALLOWED_RADIUS_METERS)),
                office_latitude=payload.get("officeLatitude", payload.get("officeLat")),
                office_longitude=payload.get("officeLongitude", payload.get("officeLng")),
                enable_gps_validation=bool(pick("enableGpsValidation", True)),
                enable_wifi_validation=bool(pick("enableWifiValidation", False)),
                enable_face_validation=bool(pick("enableFaceValidation", True)),
                enable_checkin_validation=bool(pick("enableCheckinValidation", True)),
                enable_checkout_validation=bool(pick("enableCheckoutValidation", True)),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid attendance settings: {exc}") from exc


@dataclass(frozen=True)
class DaySchedule:
    """Resolver output for one day: the config plus the non-working-day verdict."""

    work_date: date
    config: ScheduleConfig
    is_weekly_off: bool = False
    holiday: Optional[Holiday] = None

    @property
    def is_working_day(self) -> bool:
        return not self.is_weekly_off and self.holiday is None
