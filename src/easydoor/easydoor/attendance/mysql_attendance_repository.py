from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import WorkingFrom
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, set_clause, where_clause
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, working_from, office_id, clock_in, clock_out, duration,
    is_active, created_at, updated_at
"""

_FIELD_COLUMNS = {
    "employee_id": "employee_id",
    "working_from": "working_from",
    "office_id": "office_id",
    "clock_in": "clock_in",
    "clock_out": "clock_out",
    "duration": "duration",
    "is_active": "is_active",
}

_ACTIVE_CONFLICT = "Employee already has an active attendance session"


def _to_record(row: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(row["attendance_id"]),
        employee_id=int(row["employee_id"]),
        working_from=WorkingFrom(row["working_from"]),
        clock_in=row["clock_in"],
        office_id=int(row["office_id"]) if row.get("office_id") is not None else None,
        clock_out=row.get("clock_out"),
        duration=row.get("duration"),
        is_active=bool(row.get("is_active")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    """The unique key on the generated `active_employee_id` column rejects a second open session."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            row = fetchone(cur)
            return _to_record(row) if row else None

    def find_active(self, employee_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE active_employee_id=%s",
                (int(employee_id),),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def open_session(
        self,
        *,
        employee_id: int,
        working_from: WorkingFrom,
        office_id: Optional[int],
        clock_in: datetime,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance(employee_id, working_from, office_id, clock_in, is_active)
                    VALUES(%s,%s,%s,%s,1)
                    """,
                    (int(employee_id), working_from.value, office_id, clock_in),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError(_ACTIVE_CONFLICT)
            raise

    def close_session(self, attendance_id: int, *, clock_out: datetime, duration: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET clock_out=%s, duration=%s, is_active=0
                WHERE attendance_id=%s AND is_active=1
                """,
                (clock_out, duration, int(attendance_id)),
            )
            return cur.rowcount > 0

    def update_fields(self, attendance_id: int, fields: Mapping[str, Any]) -> bool:
        if not fields:
            return self.get_by_id(attendance_id) is not None
        sets, params = set_clause(fields, _FIELD_COLUMNS)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE attendance SET {sets} WHERE attendance_id=%s",
                    (*params, int(attendance_id)),
                )
                if cur.rowcount > 0:
                    return True
                cur.execute("SELECT 1 AS ok FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
                return fetchone(cur) is not None
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError(_ACTIVE_CONFLICT)
            raise

    def delete(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s FOR UPDATE",
                (int(attendance_id),),
            )
            row = fetchone(cur)
            if not row:
                return None
            cur.execute("DELETE FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            return _to_record(row)

    def list_attendance(
        self,
        *,
        page: PageRequest,
        employee_id: Optional[int] = None,
        working_from: Optional[WorkingFrom] = None,
        office_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        clock_in_from: Optional[datetime] = None,
        clock_in_before: Optional[datetime] = None,
    ) -> Page[AttendanceRecord]:
        clauses: list[str] = []
        params: list[object] = []
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if working_from is not None:
            clauses.append("working_from=%s")
            params.append(working_from.value)
        if office_id is not None:
            clauses.append("office_id=%s")
            params.append(int(office_id))
        if is_active is not None:
            clauses.append("is_active=%s")
            params.append(1 if is_active else 0)
        if clock_in_from is not None:
            clauses.append("clock_in >= %s")
            params.append(clock_in_from)
        if clock_in_before is not None:
            clauses.append("clock_in < %s")
            params.append(clock_in_before)
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance {where}
                ORDER BY clock_in DESC, attendance_id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, page.limit, page.offset),
            )
            items = [_to_record(r) for r in fetchall(cur)]
            return Page(items=items, page=page.page, limit=page.limit, total=total)

    def list_active(
        self,
        *,
        office_id: Optional[int] = None,
        working_from: Optional[WorkingFrom] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if office_id is not None:
            clauses.append("office_id=%s")
            params.append(int(office_id))
        if working_from is not None:
            clauses.append("working_from=%s")
            params.append(working_from.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance {where_clause(clauses)} ORDER BY clock_in DESC",
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_employee(
        self,
        employee_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if start is not None:
            clauses.append("clock_in >= %s")
            params.append(start)
        if end is not None:
            clauses.append("clock_in <= %s")
            params.append(end)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance {where_clause(clauses)} ORDER BY clock_in DESC",
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
