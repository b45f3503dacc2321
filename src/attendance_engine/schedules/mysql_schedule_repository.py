from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, json_column, normalize_mysql_time
from .model import BranchTiming, Holiday, ScheduleConfig
from .repository import ScheduleRepository


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_org_settings(self, *, organization_id: str) -> Optional[ScheduleConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT work_start_time, work_end_time, grace_minutes, late_threshold_minutes,
                       half_day_cutoff_time, working_days, weekday_off_rules, allowed_radius_meters,
                       office_latitude, office_longitude, enable_gps_validation, enable_wifi_validation,
                       enable_face_validation, enable_checkin_validation, enable_checkout_validation
                FROM attendance_settings
                WHERE organization_id=%s
                """,
                (organization_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ScheduleConfig.from_dict(
                {
                    "workStartTime": normalize_mysql_time(r["work_start_time"]),
                    "workEndTime": normalize_mysql_time(r["work_end_time"]),
                    "graceMinutes": r["grace_minutes"],
                    "lateThresholdMinutes": r["late_threshold_minutes"],
                    "halfDayCutoffTime": normalize_mysql_time(r["half_day_cutoff_time"]),
                    "workingDays": json_column(r["working_days"], []),
                    "weekdayOffRules": json_column(r.get("weekday_off_rules"), {}),
                    "allowedRadiusMeters": r["allowed_radius_meters"],
                    "officeLatitude": r.get("office_latitude"),
                    "officeLongitude": r.get("office_longitude"),
                    "enableGpsValidation": bool(r["enable_gps_validation"]),
                    "enableWifiValidation": bool(r["enable_wifi_validation"]),
                    "enableFaceValidation": bool(r["enable_face_validation"]),
                    "enableCheckinValidation": bool(r["enable_checkin_validation"]),
                    "enableCheckoutValidation": bool(r["enable_checkout_validation"]),
                }
            )

    def get_branch(self, *, branch_id: str) -> Optional[BranchTiming]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT branch_id, name, work_start_time, work_end_time,
                       grace_minutes, late_threshold_minutes, is_active
                FROM branches
                WHERE branch_id=%s
                """,
                (branch_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return BranchTiming(
                branch_id=r["branch_id"],
                name=r["name"],
                work_start_time=normalize_mysql_time(r["work_start_time"]),
                work_end_time=normalize_mysql_time(r["work_end_time"]),
                grace_minutes=int(r["grace_minutes"] or 0),
                late_threshold_minutes=int(r["late_threshold_minutes"] or 0),
                is_active=bool(r["is_active"]),
            )

    def list_holidays(self, *, organization_id: str, start: date, end: date) -> Sequence[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT holiday_date, name, is_optional
                FROM holidays
                WHERE organization_id=%s AND holiday_date BETWEEN %s AND %s
                ORDER BY holiday_date
                """,
                (organization_id, start, end),
            )
            return [
                Holiday(date=r["holiday_date"], name=r["name"], is_optional=bool(r["is_optional"]))
                for r in fetchall(cur)
            ]

    def list_accepted_optional_holidays(self, *, employee_id: str, start: date, end: date) -> Sequence[date]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT holiday_date
                FROM optional_holiday_optins
                WHERE employee_id=%s AND holiday_date BETWEEN %s AND %s
                """,
                (employee_id, start, end),
            )
            return [r["holiday_date"] for r in fetchall(cur)]
