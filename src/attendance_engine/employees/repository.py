from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_for_organization(self, *, organization_id: str, active_only: bool = True) -> Sequence[Employee]:
        raise NotImplementedError
