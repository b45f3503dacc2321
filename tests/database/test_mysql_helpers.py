from __future__ import annotations

from datetime import datetime, time, timedelta
from pathlib import Path

import pytest

from attendance_engine.core.enums import RequestStatus
from attendance_engine.database.bootstrap import iter_sql_statements, strip_create_db_and_use
from attendance_engine.database.connection import DBConfig
from attendance_engine.database.mysql_base import db_cursor, execute_guarded, json_column, normalize_mysql_time
from attendance_engine.workflows.model import StepApproval
from attendance_engine.workflows.mysql_workflow_repository import MySQLWorkflowRepository

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


class FakeCursor:
    def __init__(self, rowcounts):
        self.executed = []
        self._rowcounts = list(rowcounts)
        self.rowcount = 0

    def execute(self, sql, params=None):
        self.executed.append((" ".join(sql.split()), params))
        self.rowcount = self._rowcounts.pop(0) if self._rowcounts else 1

    def close(self):
        pass


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False

    def cursor(self, dictionary=True):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        pass


class FakeConnFactory:
    def __init__(self, *rowcounts):
        self.cursor = FakeCursor(rowcounts)
        self.connection = FakeConnection(self.cursor)

    def connect(self, *, with_database=True):
        return self.connection


def test_normalize_mysql_time_variants():
    assert normalize_mysql_time(None) is None
    assert normalize_mysql_time(time(8, 30)) == time(8, 30)
    assert normalize_mysql_time(timedelta(hours=9, minutes=15)) == time(9, 15)
    assert normalize_mysql_time("18:05:30") == time(18, 5, 30)
    with pytest.raises(ValueError):
        normalize_mysql_time("1800")


def test_schema_splits_into_statements_without_database_selection():
    statements = list(iter_sql_statements(strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8"))))

    assert statements
    assert all(s.upper().startswith("CREATE TABLE") for s in statements)
    assert any("approval_requests" in s for s in statements)


def test_semicolons_inside_quotes_do_not_split():
    sql = "INSERT INTO t VALUES ('a;b');\n-- comment; here\nSELECT 1;"

    assert list(iter_sql_statements(sql)) == ["INSERT INTO t VALUES ('a;b')", "SELECT 1"]


def test_db_config_from_mapping_defaults():
    config = DBConfig.from_mapping({"host": "db", "port": "3307"})

    assert config.host == "db"
    assert config.port == 3307
    assert config.database == "attendance_engine"


def test_db_cursor_rolls_back_on_error():
    factory = FakeConnFactory()

    with pytest.raises(RuntimeError):
        with db_cursor(factory) as (_, cur):
            cur.execute("SELECT 1")
            raise RuntimeError("boom")

    assert factory.connection.rolled_back
    assert not factory.connection.committed


def _approval():
    return StepApproval(
        step_order=1,
        approver_id="mgr-1",
        action=RequestStatus.APPROVED,
        remarks=None,
        acted_at=datetime(2026, 10, 19, 10, 0),
    )


def test_transition_records_action_when_guard_matches():
    factory = FakeConnFactory(1, 1)
    repo = MySQLWorkflowRepository(factory)

    won = repo.transition(
        request_id="req-1",
        expected_step_order=1,
        approval=_approval(),
        new_status=RequestStatus.PENDING,
        next_step_order=2,
    )

    assert won is True
    update_sql, update_params = factory.cursor.executed[0]
    assert "AND status=%s AND current_step_order=%s" in update_sql
    assert update_params == ("PENDING", 2, "req-1", "PENDING", 1)
    assert factory.cursor.executed[1][0].startswith("INSERT INTO approval_actions")


def test_transition_loses_when_guard_misses():
    factory = FakeConnFactory(0)
    repo = MySQLWorkflowRepository(factory)

    won = repo.transition(
        request_id="req-1",
        expected_step_order=1,
        approval=_approval(),
        new_status=RequestStatus.APPROVED,
        next_step_order=None,
    )

    assert won is False
    assert len(factory.cursor.executed) == 1


def test_execute_guarded_reports_whether_the_guard_matched():
    cursor = FakeCursor([1, 0])

    assert execute_guarded(cursor, "UPDATE timeslips SET status=%s WHERE timeslip_id=%s AND status=%s", ["APPROVED", "ts-1", "PENDING"])
    assert not execute_guarded(cursor, "UPDATE timeslips SET status=%s WHERE timeslip_id=%s AND status=%s", ["APPROVED", "ts-1", "PENDING"])
    assert cursor.executed[0][1] == ("APPROVED", "ts-1", "PENDING")


@pytest.mark.parametrize(
    "raw, default, expected",
    [
        (None, [], []),
        ("  ", {}, {}),
        ("[1, 2, 3, 4, 5]", [], [1, 2, 3, 4, 5]),
        (b'{"6": [2, 4]}', {}, {"6": [2, 4]}),
        ([0, 6], [], [0, 6]),
    ],
)
def test_json_column_decodes_settings_columns(raw, default, expected):
    assert json_column(raw, default) == expected
