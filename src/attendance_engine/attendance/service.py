from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, time
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import CORRECTION_SOURCE
from ..core.enums import MissingType, PunchType
from ..core.exceptions import ValidationError
from ..schedules.service import ScheduleResolver
from .classifier import classify_day
from .factory import DayStrategyFactory
from .model import DayRecord, PunchEvent
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        resolver: ScheduleResolver,
        *,
        strategy_factory: DayStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._resolver = resolver
        self._factory = strategy_factory or DayStrategyFactory()
        self._clock = clock

    def daily_records(
        self,
        *,
        organization_id: str,
        employee_id: str,
        start: date,
        end: date,
        today: Optional[date] = None,
    ) -> list[DayRecord]:
        """One DayRecord per calendar day in [start, end], oldest first."""

        if end < start:
            raise ValidationError("End date must be on or after start date")

        today = today or self._clock().date()
        schedules = self._resolver.resolve_range(
            organization_id=organization_id, employee_id=employee_id, start=start, end=end
        )

        punches_by_day: dict[date, list[PunchEvent]] = defaultdict(list)
        for p in self._attendance.list_punches(employee_id=employee_id, start=start, end=end):
            if not isinstance(p.timestamp, datetime):
                logger.warning("Skipping punch without timestamp for employee %s: %r", employee_id, p)
                continue
            punches_by_day[p.timestamp.date()].append(p)

        leaves = self._attendance.list_approved_leaves(employee_id=employee_id, start=start, end=end)

        return [
            classify_day(
                sc,
                punches_by_day.get(sc.work_date, ()),
                on_leave=any(leave.covers(sc.work_date) for leave in leaves),
                today=today,
                factory=self._factory,
            )
            for sc in schedules
        ]

    def record_punch(self, *, employee_id: str, punch: PunchEvent) -> int:
        return self._attendance.append_punch(employee_id=employee_id, punch=punch)

    def apply_correction(
        self,
        *,
        employee_id: str,
        work_date: date,
        missing_type: MissingType,
        corrected_in: Optional[time],
        corrected_out: Optional[time],
    ) -> list[PunchEvent]:
        """Append the punches an approved timeslip supplies.

        The day is reclassified from punches, so a pending or absent day picks
        the correction up on the next read.
        """

        punches: list[PunchEvent] = []
        if missing_type in (MissingType.IN, MissingType.BOTH) and corrected_in:
            punches.append(
                PunchEvent(
                    type=PunchType.CHECK_IN,
                    timestamp=datetime.combine(work_date, corrected_in),
                    source=CORRECTION_SOURCE,
                )
            )
        if missing_type in (MissingType.OUT, MissingType.BOTH) and corrected_out:
            punches.append(
                PunchEvent(
                    type=PunchType.CHECK_OUT,
                    timestamp=datetime.combine(work_date, corrected_out),
                    source=CORRECTION_SOURCE,
                )
            )

        existing = {
            (p.type, p.timestamp, p.source)
            for p in self._attendance.list_punches(employee_id=employee_id, start=work_date, end=work_date)
        }
        punches = [p for p in punches if (p.type, p.timestamp, p.source) not in existing]

        for p in punches:
            self._attendance.append_punch(employee_id=employee_id, punch=p)
        logger.info("Applied %d correction punch(es) for employee %s on %s", len(punches), employee_id, work_date)
        return punches
