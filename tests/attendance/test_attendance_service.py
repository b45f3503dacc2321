from __future__ import annotations

from datetime import date, datetime, time

import pytest

from attendance_engine.attendance.model import ApprovedLeave, PunchEvent
from attendance_engine.attendance.service import AttendanceService
from attendance_engine.core.enums import DayStatus, MissingType, PunchType
from attendance_engine.core.exceptions import ValidationError
from attendance_engine.employees.model import Employee
from attendance_engine.schedules.model import Holiday
from attendance_engine.schedules.service import ScheduleResolver
from tests.fakes import FakeAttendanceRepo, FakeEmployeesRepo, FakeSchedulesRepo, fixed_clock

ORG = "org-1"
EMP = "emp-1"


def _punch(kind, day, hh, mm):
    return PunchEvent(type=kind, timestamp=datetime.combine(day, time(hh, mm)))


def _service(punches=None, leaves=None, holidays=()):
    employees = FakeEmployeesRepo(
        [Employee(employee_id=EMP, organization_id=ORG, employee_code="E001", full_name="Test Employee")]
    )
    resolver = ScheduleResolver(FakeSchedulesRepo(holidays=holidays), employees)
    repo = FakeAttendanceRepo(punches={EMP: punches or []}, leaves={EMP: leaves or []})
    return AttendanceService(repo, resolver, clock=fixed_clock(datetime(2026, 10, 19, 12, 0))), repo


def test_one_record_per_day_in_range():
    service, _ = _service()

    records = service.daily_records(
        organization_id=ORG, employee_id=EMP, start=date(2026, 10, 5), end=date(2026, 10, 11)
    )

    assert [r.work_date.day for r in records] == [5, 6, 7, 8, 9, 10, 11]
    assert records[-1].status == DayStatus.HOLIDAY  # Sunday
    assert all(r.status == DayStatus.ABSENT for r in records[:-1])


def test_punches_are_grouped_by_day():
    monday, tuesday = date(2026, 10, 12), date(2026, 10, 13)
    punches = [
        _punch(PunchType.CHECK_IN, monday, 9, 0),
        _punch(PunchType.CHECK_OUT, monday, 18, 0),
        _punch(PunchType.CHECK_IN, tuesday, 14, 30),
    ]
    service, _ = _service(punches=punches)

    records = service.daily_records(organization_id=ORG, employee_id=EMP, start=monday, end=tuesday)

    assert [r.status for r in records] == [DayStatus.PRESENT, DayStatus.HALF_DAY]
    assert records[0].working_hours == 9.0


def test_leave_and_holiday_facts_flow_into_records():
    leaves = [ApprovedLeave(employee_id=EMP, start_date=date(2026, 10, 13), end_date=date(2026, 10, 14))]
    holidays = [Holiday(date=date(2026, 10, 15), name="Festival")]
    service, _ = _service(leaves=leaves, holidays=holidays)

    records = service.daily_records(
        organization_id=ORG, employee_id=EMP, start=date(2026, 10, 13), end=date(2026, 10, 15)
    )

    assert [r.status for r in records] == [DayStatus.ON_LEAVE, DayStatus.ON_LEAVE, DayStatus.HOLIDAY]


def test_today_and_future_without_punches_are_pending():
    service, _ = _service()

    records = service.daily_records(
        organization_id=ORG, employee_id=EMP, start=date(2026, 10, 19), end=date(2026, 10, 20)
    )

    assert [r.status for r in records] == [DayStatus.PENDING, DayStatus.PENDING]


def test_reversed_range_rejected():
    service, _ = _service()

    with pytest.raises(ValidationError):
        service.daily_records(organization_id=ORG, employee_id=EMP, start=date(2026, 10, 2), end=date(2026, 10, 1))


def test_correction_appends_punches_and_reclassifies():
    day = date(2026, 10, 14)
    service, repo = _service(punches=[_punch(PunchType.CHECK_OUT, day, 18, 0)])

    before = service.daily_records(organization_id=ORG, employee_id=EMP, start=day, end=day)[0]
    added = service.apply_correction(
        employee_id=EMP,
        work_date=day,
        missing_type=MissingType.IN,
        corrected_in=time(9, 0),
        corrected_out=None,
    )
    after = service.daily_records(organization_id=ORG, employee_id=EMP, start=day, end=day)[0]

    assert before.status == DayStatus.ABSENT
    assert [p.source for p in added] == ["timeslip"]
    assert len(repo.punches[EMP]) == 2
    assert after.status == DayStatus.PRESENT
    assert after.working_hours == 9.0


def test_record_punch_appends():
    service, repo = _service()

    punch_id = service.record_punch(employee_id=EMP, punch=_punch(PunchType.CHECK_IN, date(2026, 10, 19), 9, 0))

    assert punch_id == 1
    assert repo.punches[EMP][0].type == PunchType.CHECK_IN
