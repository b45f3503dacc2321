from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from ...schedules.model import DaySchedule
from ..model import DayRecord, PunchEvent


@dataclass(frozen=True)
class DayContext:
    """Everything a day is classified from."""

    schedule: DaySchedule
    punches: tuple[PunchEvent, ...]
    on_leave: bool
    today: date

    @property
    def work_date(self) -> date:
        return self.schedule.work_date


class DayStrategy(ABC):
    """Strategy Pattern: encapsulate how one kind of day gets its status."""

    @abstractmethod
    def decide(self, ctx: DayContext) -> DayRecord:
        raise NotImplementedError
