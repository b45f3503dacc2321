from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import BranchTiming, Holiday, ScheduleConfig


class ScheduleRepository(Protocol):
    def get_org_settings(self, *, organization_id: str) -> Optional[ScheduleConfig]:
        """Organization attendance settings, None when never saved."""

        raise NotImplementedError

    def get_branch(self, *, branch_id: str) -> Optional[BranchTiming]:
        raise NotImplementedError

    def list_holidays(self, *, organization_id: str, start: date, end: date) -> Sequence[Holiday]:
        raise NotImplementedError

    def list_accepted_optional_holidays(self, *, employee_id: str, start: date, end: date) -> Sequence[date]:
        raise NotImplementedError
