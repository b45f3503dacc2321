from __future__ import annotations

import threading
from datetime import datetime

import pytest

from attendance_engine.core.enums import RequestStatus, StepAction, WorkflowType
from attendance_engine.core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from attendance_engine.employees.model import Employee
from attendance_engine.workflows.service import WorkflowEngine
from tests.fakes import FakeEmployeesRepo, FakeWorkflowRepo, fixed_clock

ORG = "org-1"
NOW = datetime(2026, 10, 19, 10, 0)


def _emp(employee_id, department_id=None):
    return Employee(
        employee_id=employee_id,
        organization_id=ORG,
        employee_code=employee_id.upper(),
        full_name=employee_id,
        department_id=department_id,
    )


@pytest.fixture
def setup():
    repo = FakeWorkflowRepo()
    employees = FakeEmployeesRepo(
        [_emp("requester", department_id="dept-1"), _emp("mgr-1"), _emp("mgr-2"), _emp("mgr-3"), _emp("admin")]
    )
    engine = WorkflowEngine(repo, employees, clock=fixed_clock(NOW))
    return engine, repo


def _three_step_workflow(engine, *, type=WorkflowType.TIMESLIP, department_id=None):
    wf_id = engine.create_workflow(organization_id=ORG, name="Timeslip chain", type=type, department_id=department_id)
    step_ids = []
    for order, approver in enumerate(("mgr-1", "mgr-2", "mgr-3"), start=1):
        step_id = engine.add_step(workflow_id=wf_id, name=f"Level {order}")
        engine.assign_approver(step_id=step_id, approver_id=approver)
        step_ids.append(step_id)
    return wf_id, step_ids


def _submit(engine, subject_id="ts-1", type=WorkflowType.TIMESLIP):
    return engine.submit(request_type=type, subject_id=subject_id, employee_id="requester")


def test_steps_get_sequential_orders(setup):
    engine, _ = setup
    wf_id, _ = _three_step_workflow(engine)

    wf = engine.get_workflow(wf_id)

    assert [s.step_order for s in wf.ordered_steps] == [1, 2, 3]
    assert [s.approver_id for s in wf.ordered_steps] == ["mgr-1", "mgr-2", "mgr-3"]


def test_approve_then_reject_rejects_and_last_step_never_current(setup):
    engine, _ = setup
    _three_step_workflow(engine)
    req = _submit(engine)

    assert [r.request_id for r in engine.pending_for_approver(approver_id="mgr-1")] == [req.request_id]

    engine.approve(request_id=req.request_id, approver_id="mgr-1")
    assert engine.pending_for_approver(approver_id="mgr-1") == []
    assert [r.request_id for r in engine.pending_for_approver(approver_id="mgr-2")] == [req.request_id]

    event = engine.reject(request_id=req.request_id, approver_id="mgr-2", remarks="Not justified")

    final = engine.get_request(req.request_id)
    assert final.status == RequestStatus.REJECTED
    assert event.to_state == RequestStatus.REJECTED
    assert event.from_state == RequestStatus.PENDING
    assert engine.current_step(final) is None
    assert engine.pending_for_approver(approver_id="mgr-3") == []
    assert final.action_for(2).remarks == "Not justified"
    assert final.action_for(3) is None


def test_approving_every_step_approves_request(setup):
    engine, _ = setup
    _three_step_workflow(engine)
    req = _submit(engine)

    events = [
        engine.approve(request_id=req.request_id, approver_id=approver) for approver in ("mgr-1", "mgr-2", "mgr-3")
    ]

    assert [e.to_state for e in events] == [RequestStatus.PENDING, RequestStatus.PENDING, RequestStatus.APPROVED]
    final = engine.get_request(req.request_id)
    assert final.status == RequestStatus.APPROVED
    assert [a.acted_at for a in final.approvals] == [NOW, NOW, NOW]


def test_acting_on_non_current_step_is_invalid_state(setup):
    engine, _ = setup
    _, step_ids = _three_step_workflow(engine)
    req = _submit(engine)

    with pytest.raises(InvalidStateError):
        engine.approve(request_id=req.request_id, approver_id="mgr-2", step_id=step_ids[1])


def test_wrong_approver_is_unauthorized_unless_admin_override(setup):
    engine, _ = setup
    _three_step_workflow(engine)
    req = _submit(engine)

    with pytest.raises(AuthorizationError):
        engine.approve(request_id=req.request_id, approver_id="mgr-2")

    event = engine.approve(request_id=req.request_id, approver_id="admin", admin_override=True)
    assert event.acting_approver_id == "admin"
    assert event.step_order == 1


def test_terminal_request_cannot_be_acted_on(setup):
    engine, _ = setup
    _three_step_workflow(engine)
    req = _submit(engine)
    engine.reject(request_id=req.request_id, approver_id="mgr-1")

    with pytest.raises(InvalidStateError):
        engine.approve(request_id=req.request_id, approver_id="mgr-2", admin_override=True)


def test_lost_compare_and_swap_raises_conflict(setup):
    engine, repo = setup
    _three_step_workflow(engine)
    req = _submit(engine)
    repo.force_conflict = True

    with pytest.raises(ConflictError):
        engine.approve(request_id=req.request_id, approver_id="mgr-1")
    assert engine.get_request(req.request_id).approvals == ()


def test_concurrent_approvals_record_exactly_one_action(setup):
    engine, repo = setup
    _three_step_workflow(engine)
    req = _submit(engine)
    barrier = threading.Barrier(2)
    outcomes = []

    original_transition = repo.transition

    def slow_transition(**kwargs):
        barrier.wait(timeout=5)
        return original_transition(**kwargs)

    repo.transition = slow_transition

    def act():
        try:
            engine.approve(request_id=req.request_id, approver_id="mgr-1")
            outcomes.append("ok")
        except ConflictError:
            outcomes.append("conflict")

    threads = [threading.Thread(target=act) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["conflict", "ok"]
    final = engine.get_request(req.request_id)
    assert len(final.approvals) == 1
    assert final.current_step_order == 2


def test_listeners_receive_transition_events(setup):
    engine, _ = setup
    _three_step_workflow(engine)
    req = _submit(engine)
    seen = []
    engine.subscribe(seen.append)

    engine.approve(request_id=req.request_id, approver_id="mgr-1")

    assert len(seen) == 1
    assert seen[0].to_dict()["stepOrder"] == 1
    assert seen[0].subject_id == "ts-1"


def test_reassigning_keeps_single_approver(setup):
    engine, _ = setup
    _, step_ids = _three_step_workflow(engine)
    req = _submit(engine)

    engine.assign_approver(step_id=step_ids[0], approver_id="mgr-3")

    assert engine.pending_for_approver(approver_id="mgr-1") == []
    assert [r.request_id for r in engine.pending_for_approver(approver_id="mgr-3")] == [req.request_id]
    with pytest.raises(NotFoundError):
        engine.assign_approver(step_id=step_ids[0], approver_id="ghost")


def test_definition_frozen_once_a_request_finishes(setup):
    engine, _ = setup
    wf_id, step_ids = _three_step_workflow(engine)
    req = _submit(engine)

    engine.add_step(workflow_id=wf_id, name="Level 4")

    engine.reject(request_id=req.request_id, approver_id="mgr-1")

    with pytest.raises(InvalidStateError):
        engine.add_step(workflow_id=wf_id, name="Level 5")
    with pytest.raises(InvalidStateError):
        engine.update_step(step_id=step_ids[0], name="Renamed")
    with pytest.raises(InvalidStateError):
        engine.assign_approver(step_id=step_ids[0], approver_id="mgr-2")
    with pytest.raises(InvalidStateError):
        engine.delete_workflow(wf_id)


def test_step_orders_must_be_unique_and_positive(setup):
    engine, _ = setup
    wf_id, step_ids = _three_step_workflow(engine)

    with pytest.raises(ValidationError):
        engine.add_step(workflow_id=wf_id, name="Dup", step_order=2)
    with pytest.raises(ValidationError):
        engine.update_step(step_id=step_ids[0], step_order=0)

    engine.update_step(step_id=step_ids[2], step_order=10, condition="amount > 1000")
    wf = engine.get_workflow(wf_id)
    assert [s.step_order for s in wf.ordered_steps] == [1, 2, 10]
    assert wf.ordered_steps[-1].condition == "amount > 1000"


def test_binding_prefers_department_scoped_definition(setup):
    engine, _ = setup
    _three_step_workflow(engine)
    scoped_id, _ = _three_step_workflow(engine, department_id="dept-1")

    req = _submit(engine)

    assert req.workflow_id == scoped_id
    assert req.current_step_order == 1


def test_binding_without_definition_or_steps_fails(setup):
    engine, _ = setup

    with pytest.raises(NotFoundError):
        _submit(engine, type=WorkflowType.EXPENSE)

    engine.create_workflow(organization_id=ORG, name="Empty", type=WorkflowType.EXPENSE)
    with pytest.raises(ConfigurationError):
        _submit(engine, type=WorkflowType.EXPENSE)


def test_inactive_definition_not_bound(setup):
    engine, _ = setup
    wf_id, _ = _three_step_workflow(engine)
    engine.update_workflow(workflow_id=wf_id, name="Retired", is_active=False)

    with pytest.raises(NotFoundError):
        _submit(engine)


def test_batch_reports_each_outcome(setup):
    engine, _ = setup
    _three_step_workflow(engine)
    first = _submit(engine, subject_id="ts-1")
    second = _submit(engine, subject_id="ts-2")
    engine.reject(request_id=second.request_id, approver_id="mgr-1")

    results = engine.act_many(
        request_ids=[first.request_id, second.request_id, "missing"],
        approver_id="mgr-1",
        action=StepAction.APPROVE,
    )

    assert results[0] == {"requestId": first.request_id, "success": True, "status": "PENDING"}
    assert results[1]["success"] is False
    assert results[2]["success"] is False
    assert engine.get_request(first.request_id).current_step_order == 2


def test_pending_request_can_be_withdrawn(setup):
    engine, _ = setup
    _three_step_workflow(engine)
    req = _submit(engine)

    engine.delete_request(req.request_id)

    with pytest.raises(NotFoundError):
        engine.get_request(req.request_id)


def test_steps_at_or_before_the_reached_step_are_locked_while_pending(setup):
    engine, _ = setup
    wf_id = engine.create_workflow(organization_id=ORG, name="Late start", type=WorkflowType.TIMESLIP)
    second = engine.add_step(workflow_id=wf_id, name="Level 2", step_order=2)
    third = engine.add_step(workflow_id=wf_id, name="Level 3", step_order=3)
    engine.assign_approver(step_id=second, approver_id="mgr-2")
    engine.assign_approver(step_id=third, approver_id="mgr-3")
    req = _submit(engine)
    engine.approve(request_id=req.request_id, approver_id="mgr-2")

    with pytest.raises(InvalidStateError):
        engine.add_step(workflow_id=wf_id, name="Level 1", step_order=1)
    with pytest.raises(InvalidStateError):
        engine.update_step(step_id=third, step_order=1)
    with pytest.raises(InvalidStateError):
        engine.delete_step(second)

    engine.update_step(step_id=third, name="Director")
    fourth = engine.add_step(workflow_id=wf_id, name="Level 4")
    engine.assign_approver(step_id=fourth, approver_id="mgr-1")
    engine.approve(request_id=req.request_id, approver_id="mgr-3")
    engine.approve(request_id=req.request_id, approver_id="mgr-1")

    final = engine.get_request(req.request_id)
    assert final.status == RequestStatus.APPROVED
    assert [a.step_order for a in final.approvals] == [2, 3, 4]


def test_current_step_never_goes_back_below_the_reached_order(setup):
    engine, repo = setup
    wf_id, step_ids = _three_step_workflow(engine)
    req = _submit(engine)
    engine.approve(request_id=req.request_id, approver_id="mgr-1")

    # A step written straight into storage below the reached order is ignored.
    repo.add_step(workflow_id=wf_id, step_order=0, name="Backdated")

    current = engine.current_step(engine.get_request(req.request_id))
    assert current.step_id == step_ids[1]


def test_failing_listener_does_not_undo_or_abort_committed_actions(setup):
    engine, _ = setup
    _three_step_workflow(engine)
    first = _submit(engine, subject_id="ts-1")
    second = _submit(engine, subject_id="ts-2")

    def broken(event):
        raise RuntimeError("downstream unavailable")

    engine.subscribe(broken)

    event = engine.approve(request_id=first.request_id, approver_id="mgr-1")
    assert event.to_state == RequestStatus.PENDING

    results = engine.act_many(
        request_ids=[first.request_id, second.request_id],
        approver_id="mgr-2",
        action=StepAction.APPROVE,
        admin_override=True,
    )

    assert [r["success"] for r in results] == [True, True]
    assert engine.get_request(first.request_id).current_step_order == 3
    assert engine.get_request(second.request_id).current_step_order == 2
