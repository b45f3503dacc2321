from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .attendance.factory import DayStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_REPORT_WORKERS
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .reports.service import ReportService
from .requests.mysql_request_repository import MySQLRequestRepository
from .requests.service import RequestService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.service import ScheduleResolver
from .workflows.mysql_workflow_repository import MySQLWorkflowRepository
from .workflows.service import WorkflowEngine


@dataclass(frozen=True)
class Container:
    schedule_resolver: ScheduleResolver
    attendance_service: AttendanceService
    report_service: ReportService
    workflow_engine: WorkflowEngine
    request_service: RequestService


def build_container(*, db_config: Mapping, report_workers: int = DEFAULT_REPORT_WORKERS) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    employees_repo = MySQLEmployeeRepository(conn)
    schedules_repo = MySQLScheduleRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    workflows_repo = MySQLWorkflowRepository(conn)
    requests_repo = MySQLRequestRepository(conn)

    schedule_resolver = ScheduleResolver(schedules_repo, employees_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        schedule_resolver,
        strategy_factory=DayStrategyFactory(),
    )
    report_service = ReportService(
        attendance_service, employees_repo, schedule_resolver, max_workers=report_workers
    )
    workflow_engine = WorkflowEngine(workflows_repo, employees_repo)
    request_service = RequestService(requests_repo, attendance_service, workflow_engine, employees_repo)

    return Container(
        schedule_resolver=schedule_resolver,
        attendance_service=attendance_service,
        report_service=report_service,
        workflow_engine=workflow_engine,
        request_service=request_service,
    )
