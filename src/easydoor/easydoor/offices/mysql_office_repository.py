from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, set_clause, where_clause
from .model import Office
from .repository import OfficeRepository

_COLUMNS = """
    office_id, name, address, city, country, zip_code, phone, email,
    capacity, current_occupancy, company_id, is_active, created_at, updated_at
"""

_FIELD_COLUMNS = {
    "name": "name",
    "address": "address",
    "city": "city",
    "country": "country",
    "zip_code": "zip_code",
    "phone": "phone",
    "email": "email",
    "capacity": "capacity",
    "current_occupancy": "current_occupancy",
    "company_id": "company_id",
    "is_active": "is_active",
}


def _to_office(row: dict) -> Office:
    return Office(
        office_id=int(row["office_id"]),
        name=row["name"],
        address=row["address"],
        city=row["city"],
        country=row["country"],
        company_id=int(row["company_id"]),
        zip_code=row.get("zip_code"),
        phone=row.get("phone"),
        email=row.get("email"),
        capacity=int(row.get("capacity") or 0),
        current_occupancy=int(row.get("current_occupancy") or 0),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLOfficeRepository(OfficeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, office_id: int) -> Optional[Office]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM offices WHERE office_id=%s", (int(office_id),))
            row = fetchone(cur)
            return _to_office(row) if row else None

    def create_office(
        self,
        *,
        name: str,
        address: str,
        city: str,
        country: str,
        company_id: int,
        zip_code: Optional[str],
        phone: Optional[str],
        email: Optional[str],
        capacity: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO offices(name, address, city, country, company_id, zip_code, phone, email, capacity)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (name, address, city, country, int(company_id), zip_code, phone, email, int(capacity)),
            )
            return int(cur.lastrowid)

    def update_fields(self, office_id: int, fields: Mapping[str, Any]) -> bool:
        if not fields:
            return self.get_by_id(office_id) is not None
        sets, params = set_clause(fields, _FIELD_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE offices SET {sets} WHERE office_id=%s", (*params, int(office_id)))
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS ok FROM offices WHERE office_id=%s", (int(office_id),))
            return fetchone(cur) is not None

    def list_offices(
        self,
        *,
        page: PageRequest,
        company_id: Optional[int] = None,
        city: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Page[Office]:
        clauses: list[str] = []
        params: list[object] = []
        if company_id is not None:
            clauses.append("company_id=%s")
            params.append(int(company_id))
        if city:
            clauses.append("LOWER(city) LIKE %s")
            params.append(f"%{city.lower()}%")
        if is_active is not None:
            clauses.append("is_active=%s")
            params.append(1 if is_active else 0)
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM offices {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM offices {where} ORDER BY created_at DESC, office_id DESC LIMIT %s OFFSET %s",
                (*params, page.limit, page.offset),
            )
            items = [_to_office(r) for r in fetchall(cur)]
            return Page(items=items, page=page.page, limit=page.limit, total=total)

    def list_by_company(self, company_id: int, *, is_active: Optional[bool] = None) -> Sequence[Office]:
        clauses = ["company_id=%s"]
        params: list[object] = [int(company_id)]
        if is_active is not None:
            clauses.append("is_active=%s")
            params.append(1 if is_active else 0)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM offices {where_clause(clauses)} ORDER BY name ASC",
                tuple(params),
            )
            return [_to_office(r) for r in fetchall(cur)]
