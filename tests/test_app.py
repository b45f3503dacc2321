from __future__ import annotations

import io
from datetime import datetime

import pandas as pd
import pytest

from attendance_engine.attendance.service import AttendanceService
from attendance_engine.container import Container
from attendance_engine.employees.model import Employee
from attendance_engine.main import create_app
from attendance_engine.reports.service import ReportService
from attendance_engine.requests.service import RequestService
from attendance_engine.schedules.service import ScheduleResolver
from attendance_engine.workflows.service import WorkflowEngine
from tests.fakes import (
    FakeAttendanceRepo,
    FakeEmployeesRepo,
    FakeRequestsRepo,
    FakeSchedulesRepo,
    FakeWorkflowRepo,
    fixed_clock,
)

ORG = "org-1"


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    employees = FakeEmployeesRepo(
        [
            Employee(employee_id="emp-1", organization_id=ORG, employee_code="E001", full_name="Requester"),
            Employee(employee_id="mgr-1", organization_id=ORG, employee_code="M001", full_name="Manager"),
        ]
    )
    clock = fixed_clock(datetime(2026, 10, 19, 9, 0))
    requests_repo = FakeRequestsRepo()
    resolver = ScheduleResolver(FakeSchedulesRepo(), employees)
    attendance = AttendanceService(FakeAttendanceRepo(requests=requests_repo), resolver, clock=clock)
    engine = WorkflowEngine(FakeWorkflowRepo(), employees, clock=clock)
    container = Container(
        schedule_resolver=resolver,
        attendance_service=attendance,
        report_service=ReportService(attendance, employees, resolver, max_workers=1),
        workflow_engine=engine,
        request_service=RequestService(requests_repo, attendance, engine, employees),
    )
    app = create_app(container)
    return app.test_client()


def _timeslip_workflow(client):
    resp = client.post("/workflows", json={"organization_id": ORG, "name": "Timeslips", "type": "timeslip"})
    assert resp.status_code == 201
    wf_id = resp.get_json()["data"]["id"]
    resp = client.post(f"/workflows/{wf_id}/steps", json={"name": "Manager", "approver_id": "mgr-1"})
    assert resp.status_code == 201
    return wf_id


def test_health(client):
    assert client.get("/health").get_json() == {"success": True, "status": "ok"}


def test_days_endpoint_returns_records(client):
    resp = client.get("/attendance/emp-1/days?organization_id=org-1&start=2026-10-11&end=2026-10-12")

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert [d["status"] for d in data] == ["holiday", "absent"]
    assert data[0]["isSunday"] is True


def test_bad_date_is_400(client):
    resp = client.get("/attendance/emp-1/days?organization_id=org-1&start=2026-13-01&end=2026-10-12")

    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_unknown_employee_is_404(client):
    resp = client.get("/attendance/ghost/days?organization_id=org-1&start=2026-10-11&end=2026-10-12")

    assert resp.status_code == 404


def test_record_punch_then_read_day(client):
    resp = client.post("/attendance/emp-1/punches", json={"type": "check-in", "timestamp": "2026-10-12T09:00:00"})
    assert resp.status_code == 201

    bad = client.post("/attendance/emp-1/punches", json={"type": "nap", "timestamp": "2026-10-12T13:00:00"})
    assert bad.status_code == 400

    day = client.get("/attendance/emp-1/days?organization_id=org-1&start=2026-10-12&end=2026-10-12")
    assert day.get_json()["data"][0]["status"] == "present"


def test_report_json_and_csv(client):
    resp = client.get("/attendance/report?organization_id=org-1&year=2026&month=10")
    body = resp.get_json()["data"]
    assert body["summary"]["totalEmployees"] == 2
    assert body["summary"]["period"] == "October 2026"

    csv_resp = client.get("/attendance/report.csv?organization_id=org-1&year=2026&month=10")
    assert csv_resp.status_code == 200
    assert "attachment" in csv_resp.headers["Content-Disposition"]
    df = pd.read_csv(io.BytesIO(csv_resp.data), encoding="utf-8-sig")
    assert len(df) == 2
    assert "2026-10-31" in df.columns


def test_report_requires_valid_month(client):
    resp = client.get("/attendance/report?organization_id=org-1&year=2026&month=0")

    assert resp.status_code == 400


def test_timeslip_approval_flow_over_http(client):
    _timeslip_workflow(client)

    resp = client.post(
        "/timeslips",
        json={"employee_id": "emp-1", "date": "2026-10-12", "missing_type": "both", "corrected_in": "09:00", "corrected_out": "18:00"},
    )
    assert resp.status_code == 201
    body = resp.get_json()["data"]
    request_id = body["approval"]["id"]

    pending = client.get("/approvals/pending?approver_id=mgr-1").get_json()["data"]
    assert [r["id"] for r in pending] == [request_id]

    forbidden = client.post(f"/approvals/{request_id}/approve", json={"approver_id": "emp-1"})
    assert forbidden.status_code == 403

    resp = client.post(f"/approvals/{request_id}/approve", json={"approver_id": "mgr-1", "remarks": "ok"})
    assert resp.get_json()["data"]["toState"] == "APPROVED"

    again = client.post(f"/approvals/{request_id}/approve", json={"approver_id": "mgr-1"})
    assert again.status_code == 409

    day = client.get("/attendance/emp-1/days?organization_id=org-1&start=2026-10-12&end=2026-10-12")
    assert day.get_json()["data"][0]["workingHours"] == 9.0

    ts = client.get(f"/timeslips/{body['id']}").get_json()["data"]
    assert ts["status"] == "APPROVED"


def test_batch_endpoint(client):
    _timeslip_workflow(client)
    ids = []
    for day in ("2026-10-12", "2026-10-13"):
        resp = client.post(
            "/timeslips",
            json={"employee_id": "emp-1", "date": day, "missing_type": "IN", "corrected_in": "09:00"},
        )
        ids.append(resp.get_json()["data"]["approval"]["id"])

    resp = client.post(
        "/approvals/batch",
        json={"request_ids": ids + ["missing"], "approver_id": "mgr-1", "action": "rejected"},
    )

    results = resp.get_json()["data"]
    assert [r["success"] for r in results] == [True, True, False]
    assert client.get("/timeslips?status=REJECTED").get_json()["data"][0]["status"] == "REJECTED"


def test_submitting_without_workflow_is_404(client):
    resp = client.post(
        "/leaves",
        json={"employee_id": "emp-1", "start_date": "2026-10-20", "end_date": "2026-10-21", "reason": "Trip"},
    )

    assert resp.status_code == 404


def test_workflow_step_management(client):
    wf_id = _timeslip_workflow(client)
    step_id = client.get(f"/workflows/{wf_id}").get_json()["data"]["steps"][0]["id"]

    resp = client.put(f"/workflows/steps/{step_id}", json={"name": "Line manager", "step_order": 5})
    assert resp.status_code == 200
    dup = client.post(f"/workflows/{wf_id}/steps", json={"name": "Dup", "step_order": 5})
    assert dup.status_code == 400

    steps = client.get(f"/workflows/{wf_id}").get_json()["data"]["steps"]
    assert steps[0]["name"] == "Line manager"
    assert steps[0]["stepOrder"] == 5

    assert client.delete(f"/workflows/steps/{step_id}").status_code == 200
    assert client.get(f"/workflows/{wf_id}").get_json()["data"]["steps"] == []


def test_resync_of_pending_request_is_409(client):
    _timeslip_workflow(client)
    resp = client.post(
        "/timeslips",
        json={"employee_id": "emp-1", "date": "2026-10-12", "missing_type": "IN", "corrected_in": "09:00"},
    )
    request_id = resp.get_json()["data"]["approval"]["id"]

    assert client.post(f"/approvals/{request_id}/resync").status_code == 409

    client.post(f"/approvals/{request_id}/approve", json={"approver_id": "mgr-1"})
    resynced = client.post(f"/approvals/{request_id}/resync")
    assert resynced.status_code == 200
    assert resynced.get_json()["data"]["status"] == "APPROVED"
