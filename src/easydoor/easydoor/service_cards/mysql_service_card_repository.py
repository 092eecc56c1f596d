from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.pagination import Page, PageRequest
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, set_clause, where_clause
from .model import ServiceCard
from .repository import ServiceCardRepository

_COLUMNS = """
    card_id, user_id, company_id, position, issue_at, expire_at, card_number,
    is_active, created_at, updated_at
"""

_FIELD_COLUMNS = {
    "user_id": "user_id",
    "company_id": "company_id",
    "position": "position",
    "issue_at": "issue_at",
    "expire_at": "expire_at",
    "is_active": "is_active",
}


def _to_card(row: dict) -> ServiceCard:
    return ServiceCard(
        card_id=int(row["card_id"]),
        user_id=int(row["user_id"]),
        company_id=int(row["company_id"]),
        position=row["position"],
        issue_at=row["issue_at"],
        expire_at=row["expire_at"],
        card_number=row["card_number"],
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLServiceCardRepository(ServiceCardRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, card_id: int) -> Optional[ServiceCard]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM service_cards WHERE card_id=%s", (int(card_id),))
            row = fetchone(cur)
            return _to_card(row) if row else None

    def find_active(self, user_id: int, company_id: int) -> Optional[ServiceCard]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM service_cards
                WHERE user_id=%s AND company_id=%s AND is_active=1
                ORDER BY card_id DESC LIMIT 1
                """,
                (int(user_id), int(company_id)),
            )
            row = fetchone(cur)
            return _to_card(row) if row else None

    def create_card(
        self,
        *,
        user_id: int,
        company_id: int,
        position: str,
        issue_at: datetime,
        expire_at: datetime,
        card_number: str,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO service_cards(user_id, company_id, position, issue_at, expire_at, card_number)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (int(user_id), int(company_id), position, issue_at, expire_at, card_number),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError("Service card number already exists", details={"field": "cardNumber"})
            raise

    def update_fields(self, card_id: int, fields: Mapping[str, Any]) -> bool:
        if not fields:
            return self.get_by_id(card_id) is not None
        sets, params = set_clause(fields, _FIELD_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE service_cards SET {sets} WHERE card_id=%s", (*params, int(card_id)))
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS ok FROM service_cards WHERE card_id=%s", (int(card_id),))
            return fetchone(cur) is not None

    def delete(self, card_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM service_cards WHERE card_id=%s", (int(card_id),))
            return cur.rowcount > 0

    def list_cards(
        self,
        *,
        page: Optional[PageRequest] = None,
        user_id: Optional[int] = None,
        company_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        position: Optional[str] = None,
    ) -> Page[ServiceCard]:
        clauses: list[str] = []
        params: list[object] = []
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if company_id is not None:
            clauses.append("company_id=%s")
            params.append(int(company_id))
        if is_active is not None:
            clauses.append("is_active=%s")
            params.append(1 if is_active else 0)
        if position:
            clauses.append("LOWER(position) LIKE %s")
            params.append(f"%{position.lower()}%")
        where = where_clause(clauses)
        order = "ORDER BY created_at DESC, card_id DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            if page is None:
                cur.execute(f"SELECT {_COLUMNS} FROM service_cards {where} {order}", tuple(params))
                items = [_to_card(r) for r in fetchall(cur)]
                return Page(items=items, page=1, limit=max(len(items), 1), total=len(items))

            cur.execute(f"SELECT COUNT(*) AS total FROM service_cards {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM service_cards {where} {order} LIMIT %s OFFSET %s",
                (*params, page.limit, page.offset),
            )
            items = [_to_card(r) for r in fetchall(cur)]
            return Page(items=items, page=page.page, limit=page.limit, total=total)
