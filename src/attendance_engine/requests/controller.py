from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify, request

from ..common.http import json_body, parse_date, require_field
from ..container import Container
from ..core.enums import RequestStatus
from ..core.exceptions import ValidationError


def _status_arg() -> Optional[RequestStatus]:
    raw = request.args.get("status")
    if not raw:
        return None
    try:
        return RequestStatus(raw.upper())
    except ValueError:
        raise ValidationError(f"Unknown status: {raw}")


def register(app: Flask, container: Container) -> None:
    service = container.request_service

    # -------- timeslips --------
    @app.route("/timeslips", methods=["GET"], endpoint="list_timeslips")
    def list_timeslips():
        items = service.list_timeslips(employee_id=request.args.get("employee_id") or None, status=_status_arg())
        return jsonify({"success": True, "data": [t.to_dict() for t in items]})

    @app.route("/timeslips", methods=["POST"], endpoint="submit_timeslip")
    def submit_timeslip():
        data = json_body()
        timeslip, approval = service.submit_timeslip(
            employee_id=require_field(data, "employee_id"),
            work_date=parse_date(data.get("date"), "date"),
            missing_type=str(require_field(data, "missing_type")).upper(),
            corrected_in=data.get("corrected_in"),
            corrected_out=data.get("corrected_out"),
            reason=data.get("reason") or "",
        )
        return jsonify({"success": True, "data": {**timeslip.to_dict(), "approval": approval.to_dict()}}), 201

    @app.route("/timeslips/<timeslip_id>", methods=["GET"], endpoint="get_timeslip")
    def get_timeslip(timeslip_id: str):
        return jsonify({"success": True, "data": service.get_timeslip(timeslip_id).to_dict()})

    @app.route("/timeslips/<timeslip_id>", methods=["PUT"], endpoint="update_timeslip")
    def update_timeslip(timeslip_id: str):
        data = json_body()
        timeslip = service.update_timeslip(
            timeslip_id=timeslip_id,
            work_date=parse_date(data.get("date"), "date"),
            missing_type=str(require_field(data, "missing_type")).upper(),
            corrected_in=data.get("corrected_in"),
            corrected_out=data.get("corrected_out"),
            reason=data.get("reason") or "",
        )
        return jsonify({"success": True, "data": timeslip.to_dict()})

    @app.route("/timeslips/<timeslip_id>", methods=["DELETE"], endpoint="delete_timeslip")
    def delete_timeslip(timeslip_id: str):
        service.delete_timeslip(timeslip_id)
        return jsonify({"success": True})

    # -------- leaves --------
    @app.route("/leaves", methods=["GET"], endpoint="list_leaves")
    def list_leaves():
        items = service.list_leaves(employee_id=request.args.get("employee_id") or None, status=_status_arg())
        return jsonify({"success": True, "data": [lv.to_dict() for lv in items]})

    @app.route("/leaves", methods=["POST"], endpoint="submit_leave")
    def submit_leave():
        data = json_body()
        leave, approval = service.submit_leave(
            employee_id=require_field(data, "employee_id"),
            start_date=parse_date(data.get("start_date"), "start_date"),
            end_date=parse_date(data.get("end_date"), "end_date"),
            reason=data.get("reason") or "",
        )
        return jsonify({"success": True, "data": {**leave.to_dict(), "approval": approval.to_dict()}}), 201

    @app.route("/leaves/<leave_id>", methods=["DELETE"], endpoint="delete_leave")
    def delete_leave(leave_id: str):
        service.delete_leave(leave_id)
        return jsonify({"success": True})

    # -------- recovery --------
    @app.route("/approvals/<request_id>/resync", methods=["POST"], endpoint="resync_approval_subject")
    def resync_approval_subject(request_id: str):
        req = service.resync_subject(request_id)
        return jsonify({"success": True, "data": req.to_dict()})
