from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, require_field
from ..container import Container
from ..core.enums import StepAction, WorkflowType
from ..core.exceptions import ValidationError


def _workflow_type(value) -> WorkflowType:
    try:
        return WorkflowType(str(value).upper())
    except ValueError:
        raise ValidationError(f"Unknown workflow type: {value}")


def _optional_int(value, field: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def register(app: Flask, container: Container) -> None:
    engine = container.workflow_engine

    # -------- definitions --------
    @app.route("/workflows", methods=["GET"], endpoint="list_workflows")
    def list_workflows():
        organization_id = request.args.get("organization_id", "").strip()
        if not organization_id:
            raise ValidationError("organization_id is required")
        type_arg = request.args.get("type")
        workflows = engine.list_workflows(
            organization_id=organization_id, type=_workflow_type(type_arg) if type_arg else None
        )
        return jsonify({"success": True, "data": [wf.to_dict() for wf in workflows]})

    @app.route("/workflows", methods=["POST"], endpoint="create_workflow")
    def create_workflow():
        data = json_body()
        workflow_id = engine.create_workflow(
            organization_id=require_field(data, "organization_id"),
            name=require_field(data, "name"),
            type=_workflow_type(require_field(data, "type")),
            department_id=data.get("department_id"),
            is_active=bool(data.get("is_active", True)),
        )
        return jsonify({"success": True, "data": engine.get_workflow(workflow_id).to_dict()}), 201

    @app.route("/workflows/<workflow_id>", methods=["GET"], endpoint="get_workflow")
    def get_workflow(workflow_id: str):
        return jsonify({"success": True, "data": engine.get_workflow(workflow_id).to_dict()})

    @app.route("/workflows/<workflow_id>", methods=["PUT"], endpoint="update_workflow")
    def update_workflow(workflow_id: str):
        data = json_body()
        engine.update_workflow(
            workflow_id=workflow_id,
            name=require_field(data, "name"),
            department_id=data.get("department_id"),
            is_active=bool(data.get("is_active", True)),
        )
        return jsonify({"success": True, "data": engine.get_workflow(workflow_id).to_dict()})

    @app.route("/workflows/<workflow_id>", methods=["DELETE"], endpoint="delete_workflow")
    def delete_workflow(workflow_id: str):
        engine.delete_workflow(workflow_id)
        return jsonify({"success": True})

    # -------- steps --------
    @app.route("/workflows/<workflow_id>/steps", methods=["POST"], endpoint="add_workflow_step")
    def add_workflow_step(workflow_id: str):
        data = json_body()
        step_id = engine.add_step(
            workflow_id=workflow_id,
            name=require_field(data, "name"),
            step_order=_optional_int(data.get("step_order"), "step_order"),
            condition=data.get("condition"),
        )
        approver_id = data.get("approver_id")
        if approver_id:
            engine.assign_approver(step_id=step_id, approver_id=approver_id)
        return jsonify({"success": True, "data": engine.get_workflow(workflow_id).to_dict()}), 201

    @app.route("/workflows/steps/<step_id>", methods=["PUT"], endpoint="update_workflow_step")
    def update_workflow_step(step_id: str):
        data = json_body()
        engine.update_step(
            step_id=step_id,
            name=data.get("name"),
            step_order=_optional_int(data.get("step_order"), "step_order"),
            condition=data.get("condition"),
        )
        return jsonify({"success": True})

    @app.route("/workflows/steps/<step_id>", methods=["DELETE"], endpoint="delete_workflow_step")
    def delete_workflow_step(step_id: str):
        engine.delete_step(step_id)
        return jsonify({"success": True})

    @app.route("/workflows/steps/<step_id>/approver", methods=["PUT"], endpoint="assign_step_approver")
    def assign_step_approver(step_id: str):
        data = json_body()
        engine.assign_approver(step_id=step_id, approver_id=require_field(data, "approver_id"))
        return jsonify({"success": True})

    # -------- approvals --------
    def _act(request_id: str, action: StepAction):
        data = json_body()
        event = engine.act(
            request_id=request_id,
            approver_id=require_field(data, "approver_id"),
            action=action,
            step_id=data.get("step_id"),
            remarks=data.get("remarks"),
            admin_override=bool(data.get("admin_override", False)),
        )
        return jsonify({"success": True, "data": event.to_dict()})

    @app.route("/approvals/<request_id>", methods=["GET"], endpoint="get_approval")
    def get_approval(request_id: str):
        return jsonify({"success": True, "data": engine.get_request(request_id).to_dict()})

    @app.route("/approvals/<request_id>/approve", methods=["POST"], endpoint="approve_request")
    def approve_request(request_id: str):
        return _act(request_id, StepAction.APPROVE)

    @app.route("/approvals/<request_id>/reject", methods=["POST"], endpoint="reject_request")
    def reject_request(request_id: str):
        return _act(request_id, StepAction.REJECT)

    @app.route("/approvals/batch", methods=["POST"], endpoint="batch_approvals")
    def batch_approvals():
        data = json_body()
        request_ids = data.get("request_ids")
        if not isinstance(request_ids, list) or not request_ids:
            raise ValidationError("request_ids must be a non-empty list")
        try:
            action = StepAction(str(require_field(data, "action")).upper())
        except ValueError:
            raise ValidationError("action must be APPROVED or REJECTED")

        results = engine.act_many(
            request_ids=[str(r) for r in request_ids],
            approver_id=require_field(data, "approver_id"),
            action=action,
            remarks=data.get("remarks"),
            admin_override=bool(data.get("admin_override", False)),
        )
        return jsonify({"success": True, "data": results})

    @app.route("/approvals/pending", methods=["GET"], endpoint="pending_approvals")
    def pending_approvals():
        approver_id = request.args.get("approver_id", "").strip()
        if not approver_id:
            raise ValidationError("approver_id is required")
        pending = engine.pending_for_approver(
            approver_id=approver_id, organization_id=request.args.get("organization_id") or None
        )
        return jsonify({"success": True, "data": [r.to_dict() for r in pending]})
