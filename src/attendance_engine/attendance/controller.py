from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, parse_date
from ..container import Container
from ..core.exceptions import InvalidPunchSequence, ValidationError
from ..reports.export import to_csv_bytes, to_excel_bytes
from .model import PunchEvent


def register(app: Flask, container: Container) -> None:
    def _month_args() -> tuple[str, int, int]:
        organization_id = request.args.get("organization_id", "").strip()
        if not organization_id:
            raise ValidationError("organization_id is required")
        try:
            year = int(request.args.get("year", ""))
            month = int(request.args.get("month", ""))
        except ValueError:
            raise ValidationError("year and month must be integers")
        return organization_id, year, month

    def _employee_ids() -> list[str] | None:
        raw = request.args.get("employee_ids", "")
        ids = [v.strip() for v in raw.split(",") if v.strip()]
        return ids or None

    def _monthly_report():
        organization_id, year, month = _month_args()
        return container.report_service.build_monthly_report(
            organization_id=organization_id,
            year=year,
            month=month,
            employee_ids=_employee_ids(),
        )

    def _attachment(payload: bytes, *, mimetype: str, filename: str):
        return app.response_class(
            payload,
            mimetype=mimetype,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/attendance/<employee_id>/days", methods=["GET"], endpoint="attendance_days")
    def attendance_days(employee_id: str):
        organization_id = request.args.get("organization_id", "").strip()
        if not organization_id:
            raise ValidationError("organization_id is required")
        start = parse_date(request.args.get("start"), "start")
        end = parse_date(request.args.get("end"), "end")

        records = container.attendance_service.daily_records(
            organization_id=organization_id, employee_id=employee_id, start=start, end=end
        )
        return jsonify({"success": True, "data": [r.to_dict() for r in records]})

    @app.route("/attendance/<employee_id>/punches", methods=["POST"], endpoint="record_punch")
    def record_punch(employee_id: str):
        try:
            punch = PunchEvent.from_dict(json_body())
        except InvalidPunchSequence as exc:
            raise ValidationError(str(exc)) from exc
        punch_id = container.attendance_service.record_punch(employee_id=employee_id, punch=punch)
        return jsonify({"success": True, "data": {"id": punch_id}}), 201

    @app.route("/attendance/report", methods=["GET"], endpoint="attendance_report")
    def attendance_report():
        data = _monthly_report()
        return jsonify(
            {
                "success": True,
                "data": {"reports": [r.to_dict() for r in data.reports], "summary": data.summary},
            }
        )

    @app.route("/attendance/report.csv", methods=["GET"], endpoint="attendance_report_csv")
    def attendance_report_csv():
        _, year, month = _month_args()
        data = _monthly_report()
        return _attachment(
            to_csv_bytes(data.reports),
            mimetype="text/csv",
            filename=f"attendance_report_{year}_{month:02d}.csv",
        )

    @app.route("/attendance/report.xlsx", methods=["GET"], endpoint="attendance_report_xlsx")
    def attendance_report_xlsx():
        _, year, month = _month_args()
        data = _monthly_report()
        return _attachment(
            to_excel_bytes(data.reports),
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            filename=f"attendance_report_{year}_{month:02d}.xlsx",
        )
