from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import ApprovedLeave, PunchEvent


class AttendanceRepository(Protocol):
    def list_punches(self, *, employee_id: str, start: date, end: date) -> Sequence[PunchEvent]:
        """Punches whose timestamp falls within [start, end], oldest first."""

        raise NotImplementedError

    def append_punch(self, *, employee_id: str, punch: PunchEvent) -> int:
        raise NotImplementedError

    def list_approved_leaves(self, *, employee_id: str, start: date, end: date) -> Sequence[ApprovedLeave]:
        raise NotImplementedError
