from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional

from ..core.enums import DayStatus, PunchType
from ..core.exceptions import InvalidPunchSequence
from ..schedules.model import DaySchedule
from .factory import DayStrategyFactory
from .model import DayRecord, PunchEvent
from .strategies.base import DayContext

logger = logging.getLogger(__name__)

_default_factory = DayStrategyFactory()


def _validated(punches: Iterable[PunchEvent]) -> tuple[PunchEvent, ...]:
    out = []
    for p in punches:
        if not isinstance(p.type, PunchType) or not isinstance(p.timestamp, datetime):
            raise InvalidPunchSequence(f"Malformed punch: {p!r}")
        out.append(p)
    return tuple(sorted(out, key=lambda p: p.timestamp))


def classify_day(
    schedule: DaySchedule,
    punches: Iterable[PunchEvent] = (),
    *,
    on_leave: bool = False,
    today: date,
    factory: Optional[DayStrategyFactory] = None,
) -> DayRecord:
    """Classify one day. Pure: the same inputs always give the same record.

    Punch data that cannot be read degrades the day to pending with the
    reason in ``note`` instead of failing the caller's whole range.
    """

    factory = factory or _default_factory
    try:
        punches = tuple(punches)
        if schedule.is_working_day and not on_leave:
            punches = _validated(punches)
        ctx = DayContext(schedule=schedule, punches=punches, on_leave=bool(on_leave), today=today)
        return factory.for_day(ctx).decide(ctx)
    except (InvalidPunchSequence, TypeError, ValueError) as exc:
        logger.warning("Day %s degraded to pending: %s", schedule.work_date, exc)
        return DayRecord(work_date=schedule.work_date, status=DayStatus.PENDING, note=str(exc))
