from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Employee facts the engine needs: branch for timing, labels for export."""

    employee_id: str
    organization_id: str
    employee_code: str
    full_name: str
    department_id: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    reporting_to: Optional[str] = None
    branch_id: Optional[str] = None
    is_active: bool = True
