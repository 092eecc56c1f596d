from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.pagination import Page, PageRequest
from ..core.enums import VisitStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, guard_clause, set_clause, where_clause
from .model import Visit
from .repository import VisitRepository

_COLUMNS = """
    visit_id, visitor_id, employee_id, expected_clock_in, clock_in, clock_out, duration,
    reason, comment, status, office_id, created_at, updated_at
"""

_FIELD_COLUMNS = {
    "expected_clock_in": "expected_clock_in",
    "clock_in": "clock_in",
    "clock_out": "clock_out",
    "duration": "duration",
    "reason": "reason",
    "comment": "comment",
    "status": "status",
    "office_id": "office_id",
}


def _to_visit(row: dict) -> Visit:
    return Visit(
        visit_id=int(row["visit_id"]),
        visitor_id=int(row["visitor_id"]),
        employee_id=int(row["employee_id"]),
        expected_clock_in=row["expected_clock_in"],
        reason=row["reason"],
        status=VisitStatus(row["status"]),
        clock_in=row.get("clock_in"),
        clock_out=row.get("clock_out"),
        duration=row.get("duration"),
        comment=row.get("comment"),
        office_id=int(row["office_id"]) if row.get("office_id") is not None else None,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLVisitRepository(VisitRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, visit_id: int) -> Optional[Visit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM visits WHERE visit_id=%s", (int(visit_id),))
            row = fetchone(cur)
            return _to_visit(row) if row else None

    def create_visit(
        self,
        *,
        visitor_id: int,
        employee_id: int,
        expected_clock_in: datetime,
        reason: str,
        comment: Optional[str],
        office_id: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO visits(visitor_id, employee_id, expected_clock_in, reason, comment, status, office_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(visitor_id),
                    int(employee_id),
                    expected_clock_in,
                    reason,
                    comment,
                    VisitStatus.PENDING.value,
                    office_id,
                ),
            )
            return int(cur.lastrowid)

    def update_fields(
        self,
        visit_id: int,
        fields: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        guard, guard_params = guard_clause(expected or {}, _FIELD_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            if fields:
                sets, params = set_clause(fields, _FIELD_COLUMNS)
                cur.execute(
                    f"UPDATE visits SET {sets} WHERE visit_id=%s{guard}",
                    (*params, int(visit_id), *guard_params),
                )
                if cur.rowcount > 0:
                    return True
            # Nothing changed: still report success if the row exists and matches the guard.
            cur.execute(f"SELECT 1 AS ok FROM visits WHERE visit_id=%s{guard}", (int(visit_id), *guard_params))
            return fetchone(cur) is not None

    def delete(self, visit_id: int) -> Optional[Visit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM visits WHERE visit_id=%s FOR UPDATE", (int(visit_id),))
            row = fetchone(cur)
            if not row:
                return None
            cur.execute("DELETE FROM visits WHERE visit_id=%s", (int(visit_id),))
            return _to_visit(row)

    def list_visits(
        self,
        *,
        page: PageRequest,
        visitor_id: Optional[int] = None,
        employee_id: Optional[int] = None,
        status: Optional[VisitStatus] = None,
        office_id: Optional[int] = None,
    ) -> Page[Visit]:
        clauses: list[str] = []
        params: list[object] = []
        if visitor_id is not None:
            clauses.append("visitor_id=%s")
            params.append(int(visitor_id))
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if office_id is not None:
            clauses.append("office_id=%s")
            params.append(int(office_id))
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM visits {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM visits {where}
                ORDER BY expected_clock_in DESC, visit_id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, page.limit, page.offset),
            )
            items = [_to_visit(r) for r in fetchall(cur)]
            return Page(items=items, page=page.page, limit=page.limit, total=total)
