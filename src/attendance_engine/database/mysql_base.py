from __future__ import annotations

import json
import uuid
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, List, Optional, Sequence

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit on success, rollback on error.

    Repositories that need a read-check-write (a guarded update followed by
    an insert) do both inside a single block so they commit together.
    """

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def execute_guarded(cur, sql: str, params: Sequence[Any]) -> bool:
    """Run an UPDATE/DELETE whose WHERE carries the expected state.

    True when a row still matched, i.e. this caller won the compare-and-swap.
    """

    cur.execute(sql, tuple(params))
    return cur.rowcount > 0


def json_column(value: Any, default: Any) -> Any:
    """Decode a JSON/TEXT column such as working_days; NULL or blank gives default."""

    if value is None:
        return default
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value) if value.strip() else default
    # Newer connectors hand JSON columns back already decoded.
    return value


def new_id() -> str:
    return str(uuid.uuid4())


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Schedule and correction times come back as time, timedelta or 'HH:MM[:SS]'."""

    if value is None or isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        # TIME columns are durations to the connector; settings never exceed a day.
        total = int(value.total_seconds()) % 86400
        return time(total // 3600, (total % 3600) // 60, total % 60)

    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        hour, minute = int(parts[0]), int(parts[1])
        second = int(parts[2]) if len(parts) > 2 and parts[2] else 0
        return time(hour, minute, second)

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
