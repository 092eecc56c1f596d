from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from ..common.pagination import Page, PageRequest
from ..core.enums import Membership
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    in_placeholders,
    is_duplicate_key,
    set_clause,
    where_clause,
)
from .model import Company
from .repository import CompanyRepository

_COLUMNS = "company_id, acronym, full_name, logo_url, visitor_count, is_active, created_at, updated_at"

_FIELD_COLUMNS = {
    "acronym": "acronym",
    "full_name": "full_name",
    "logo_url": "logo_url",
    "visitor_count": "visitor_count",
    "is_active": "is_active",
}


class MySQLCompanyRepository(CompanyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, row: dict) -> Company:
        company_id = int(row["company_id"])

        cur.execute(
            "SELECT membership, user_id FROM company_members WHERE company_id=%s ORDER BY added_at ASC",
            (company_id,),
        )
        members: dict[Membership, list[int]] = {m: [] for m in Membership}
        for r in fetchall(cur):
            members[Membership(r["membership"])].append(int(r["user_id"]))

        cur.execute(
            "SELECT office_id FROM company_offices WHERE company_id=%s ORDER BY added_at ASC",
            (company_id,),
        )
        office_ids = tuple(int(r["office_id"]) for r in fetchall(cur))

        return Company(
            company_id=company_id,
            acronym=row["acronym"],
            full_name=row["full_name"],
            logo_url=row.get("logo_url"),
            office_ids=office_ids,
            admin_ids=tuple(members[Membership.ADMIN]),
            employee_ids=tuple(members[Membership.EMPLOYEE]),
            in_office_ids=tuple(members[Membership.IN_OFFICE]),
            out_of_service_ids=tuple(members[Membership.OUT_OF_SERVICE]),
            visitor_count=int(row.get("visitor_count") or 0),
            is_active=bool(row.get("is_active", True)),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def get_by_id(self, company_id: int) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM companies WHERE company_id=%s", (int(company_id),))
            row = fetchone(cur)
            return self._hydrate(cur, row) if row else None

    def get_by_acronym(self, acronym: str) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM companies WHERE acronym=%s", (acronym,))
            row = fetchone(cur)
            return self._hydrate(cur, row) if row else None

    def create_company(self, *, acronym: str, full_name: str, logo_url: Optional[str]) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO companies(acronym, full_name, logo_url) VALUES(%s,%s,%s)",
                    (acronym, full_name, logo_url),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError("Company with this acronym already exists", details={"field": "acronym"})
            raise

    def update_fields(self, company_id: int, fields: Mapping[str, Any]) -> bool:
        if not fields:
            return self.get_by_id(company_id) is not None
        sets, params = set_clause(fields, _FIELD_COLUMNS)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE companies SET {sets} WHERE company_id=%s", (*params, int(company_id)))
                if cur.rowcount > 0:
                    return True
                cur.execute("SELECT 1 AS ok FROM companies WHERE company_id=%s", (int(company_id),))
                return fetchone(cur) is not None
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError("Company with this acronym already exists", details={"field": "acronym"})
            raise

    def list_companies(self, *, page: PageRequest, is_active: Optional[bool] = None) -> Page[Company]:
        clauses: list[str] = []
        params: list[object] = []
        if is_active is not None:
            clauses.append("is_active=%s")
            params.append(1 if is_active else 0)
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM companies {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM companies {where} ORDER BY created_at DESC, company_id DESC LIMIT %s OFFSET %s",
                (*params, page.limit, page.offset),
            )
            rows = fetchall(cur)
            items = [self._hydrate(cur, r) for r in rows]
            return Page(items=items, page=page.page, limit=page.limit, total=total)

    def add_member(self, company_id: int, user_id: int, membership: Membership) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO company_members(company_id, user_id, membership) VALUES(%s,%s,%s)",
                (int(company_id), int(user_id), membership.value),
            )

    def remove_member(self, company_id: int, user_id: int, memberships: Iterable[Membership]) -> None:
        values = [m.value for m in memberships]
        if not values:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                DELETE FROM company_members
                WHERE company_id=%s AND user_id=%s AND membership IN ({in_placeholders(values)})
                """,
                (int(company_id), int(user_id), *values),
            )

    def add_office(self, company_id: int, office_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO company_offices(company_id, office_id) VALUES(%s,%s)",
                (int(company_id), int(office_id)),
            )

    def remove_office(self, company_id: int, office_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM company_offices WHERE company_id=%s AND office_id=%s",
                (int(company_id), int(office_id)),
            )
