"""SQLite persistence for shifts.

Implements the ``shift_core.repository.ShiftRepository`` contract. ``atomic()``
opens a deferred transaction: the conflict check reads a WAL snapshot without
taking the write lock, so checks for different windows run side by side. If
another writer committed after that snapshot, the first write fails with
SQLITE_BUSY, the transaction is rolled back and ``WriteContention`` is raised
for the caller to retry. Inside ``atomic()`` every call on the same thread
reuses the transaction's connection.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator

from shift_core.models import Shift
from shift_core.repository import WriteContention, sort_key
from shift_core.time_values import TimeValue

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS shifts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    employee_ref TEXT NOT NULL,
    shift_date TEXT NOT NULL,
    start_minute INTEGER NOT NULL CHECK (start_minute BETWEEN 0 AND 1439),
    end_minute INTEGER NOT NULL CHECK (end_minute BETWEEN 0 AND 1439),
    hours REAL NOT NULL,
    created_at TEXT,
    updated_at TEXT,
    CHECK (start_minute <> end_minute)
);
CREATE INDEX IF NOT EXISTS idx_shifts_employee_date ON shifts (employee_ref, shift_date);
"""

_COLUMNS = "id, employee_ref, shift_date, start_minute, end_minute, hours, created_at, updated_at"


def _row_to_shift(row: sqlite3.Row) -> Shift:
    return Shift(
        id=int(row["id"]),
        employee_ref=row["employee_ref"],
        calendar_date=date.fromisoformat(row["shift_date"]),
        start_time=TimeValue(int(row["start_minute"])),
        end_time=TimeValue(int(row["end_minute"])),
        duration_hours=float(row["hours"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _is_busy(exc: sqlite3.OperationalError) -> bool:
    name = getattr(exc, "sqlite_errorname", "") or ""
    return name.startswith("SQLITE_BUSY") or "database is locked" in str(exc)


def _rollback(conn: sqlite3.Connection) -> None:
    # SQLite may already have ended the transaction on its own.
    if conn.in_transaction:
        conn.execute("ROLLBACK")


class SqliteShiftRepository:
    def __init__(self, db_path: str | Path, *, timeout_s: float = 30.0):
        self.db_path = Path(db_path)
        self.timeout_s = timeout_s
        self._local = threading.local()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_schema()

    def _connect(self) -> sqlite3.Connection:
        # isolation_level=None: statements autocommit unless atomic() opened a transaction.
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout_s, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        active = getattr(self._local, "conn", None)
        if active is not None:
            yield active
            return
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def init_schema(self) -> None:
        with self._connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(SCHEMA)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        if getattr(self._local, "conn", None) is not None:
            yield
            return
        conn = self._connect()
        self._local.conn = conn
        try:
            conn.execute("BEGIN")
            yield
            conn.execute("COMMIT")
        except sqlite3.OperationalError as exc:
            _rollback(conn)
            if _is_busy(exc):
                raise WriteContention(str(exc)) from exc
            raise
        except BaseException:
            _rollback(conn)
            raise
        finally:
            self._local.conn = None
            conn.close()

    def find_by_employee_and_date(
        self, employee_ref: str, calendar_date: date, exclude_id: int | None = None
    ) -> list[Shift]:
        sql = f"SELECT {_COLUMNS} FROM shifts WHERE employee_ref = ? AND shift_date = ?"
        params: list[object] = [employee_ref, calendar_date.isoformat()]
        if exclude_id is not None:
            sql += " AND id <> ?"
            params.append(exclude_id)
        sql += " ORDER BY start_minute, id"
        with self._connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_shift(r) for r in rows]

    def get(self, shift_id: int) -> Shift | None:
        with self._connection() as conn:
            row = conn.execute(f"SELECT {_COLUMNS} FROM shifts WHERE id = ?", (shift_id,)).fetchone()
        return _row_to_shift(row) if row else None

    def insert(self, shift: Shift) -> Shift:
        with self._connection() as conn:
            cur = conn.execute(
                """
                INSERT INTO shifts (employee_ref, shift_date, start_minute, end_minute, hours, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    shift.employee_ref,
                    shift.calendar_date.isoformat(),
                    shift.start_time.minutes,
                    shift.end_time.minutes,
                    shift.duration_hours,
                    shift.created_at,
                    shift.updated_at,
                ),
            )
            shift_id = cur.lastrowid
        logger.debug("Inserted shift %s for %s on %s", shift_id, shift.employee_ref, shift.calendar_date)
        return shift.with_id(int(shift_id))

    def replace(self, shift: Shift) -> Shift:
        with self._connection() as conn:
            cur = conn.execute(
                """
                UPDATE shifts
                SET employee_ref = ?, shift_date = ?, start_minute = ?, end_minute = ?, hours = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    shift.employee_ref,
                    shift.calendar_date.isoformat(),
                    shift.start_time.minutes,
                    shift.end_time.minutes,
                    shift.duration_hours,
                    shift.updated_at,
                    shift.id,
                ),
            )
            if cur.rowcount == 0:
                raise KeyError(f"shift not found: {shift.id}")
            row = conn.execute(f"SELECT {_COLUMNS} FROM shifts WHERE id = ?", (shift.id,)).fetchone()
        return _row_to_shift(row)

    def remove(self, shift_id: int) -> bool:
        with self._connection() as conn:
            cur = conn.execute("DELETE FROM shifts WHERE id = ?", (shift_id,))
            return cur.rowcount > 0

    def list(
        self,
        employee_ref: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Shift]:
        clauses: list[str] = []
        params: list[object] = []
        if employee_ref is not None:
            clauses.append("employee_ref = ?")
            params.append(employee_ref)
        if date_from is not None:
            clauses.append("shift_date >= ?")
            params.append(date_from.isoformat())
        if date_to is not None:
            clauses.append("shift_date <= ?")
            params.append(date_to.isoformat())
        sql = f"SELECT {_COLUMNS} FROM shifts"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        with self._connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return sorted((_row_to_shift(r) for r in rows), key=sort_key)
