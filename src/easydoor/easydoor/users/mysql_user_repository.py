from __future__ import annotations

from typing import Any, Mapping, Optional

from ..common.pagination import Page, PageRequest
from ..core.constants import DEFAULT_LANGUAGE_CODE
from ..core.enums import Civility, UserStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, set_clause, where_clause
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, email, password_hash, first_name, last_name, civility, phone, image_url, token,
    employer_id, service_card_id, country_code, language_code, player_id, status,
    is_admin, is_active, created_at, updated_at
"""

_FIELD_COLUMNS = {
    "email": "email",
    "password_hash": "password_hash",
    "first_name": "first_name",
    "last_name": "last_name",
    "civility": "civility",
    "phone": "phone",
    "image_url": "image_url",
    "token": "token",
    "employer_id": "employer_id",
    "service_card_id": "service_card_id",
    "country_code": "country_code",
    "language_code": "language_code",
    "player_id": "player_id",
    "status": "status",
    "is_admin": "is_admin",
    "is_active": "is_active",
}


def _to_user(row: dict, visit_ids: tuple[int, ...] = ()) -> User:
    return User(
        user_id=int(row["user_id"]),
        email=row["email"],
        password_hash=row["password_hash"],
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        civility=Civility(row["civility"]) if row.get("civility") else None,
        phone=row.get("phone"),
        image_url=row.get("image_url"),
        token=row.get("token"),
        employer_id=row.get("employer_id"),
        service_card_id=row.get("service_card_id"),
        visit_ids=visit_ids,
        country_code=row.get("country_code"),
        language_code=row.get("language_code") or DEFAULT_LANGUAGE_CODE,
        player_id=row.get("player_id"),
        status=UserStatus(row.get("status") or UserStatus.AVAILABLE.value),
        is_admin=bool(row.get("is_admin")),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _visit_ids(self, cur, user_id: int) -> tuple[int, ...]:
        cur.execute("SELECT visit_id FROM user_visits WHERE user_id=%s ORDER BY added_at ASC", (user_id,))
        return tuple(int(r["visit_id"]) for r in fetchall(cur))

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            if not row:
                return None
            return _to_user(row, self._visit_ids(cur, int(row["user_id"])))

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            if not row:
                return None
            return _to_user(row, self._visit_ids(cur, int(row["user_id"])))

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: Optional[str],
        last_name: Optional[str],
        phone: Optional[str],
        civility: Optional[Civility],
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users(email, password_hash, first_name, last_name, phone, civility)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (email, password_hash, first_name, last_name, phone, civility.value if civility else None),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError("User with this email already exists", details={"field": "email"})
            raise

    def update_fields(self, user_id: int, fields: Mapping[str, Any]) -> bool:
        if not fields:
            return self.get_by_id(user_id) is not None
        sets, params = set_clause(fields, _FIELD_COLUMNS)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"UPDATE users SET {sets} WHERE user_id=%s", (*params, int(user_id)))
                if cur.rowcount > 0:
                    return True
                cur.execute("SELECT 1 AS ok FROM users WHERE user_id=%s", (int(user_id),))
                return fetchone(cur) is not None
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError("User with this email already exists", details={"field": "email"})
            raise

    def list_users(
        self,
        *,
        page: PageRequest,
        status: Optional[UserStatus] = None,
        is_admin: Optional[bool] = None,
    ) -> Page[User]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if is_admin is not None:
            clauses.append("is_admin=%s")
            params.append(1 if is_admin else 0)
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM users {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM users {where} ORDER BY created_at DESC, user_id DESC LIMIT %s OFFSET %s",
                (*params, page.limit, page.offset),
            )
            rows = fetchall(cur)
            items = [_to_user(r, self._visit_ids(cur, int(r["user_id"]))) for r in rows]
            return Page(items=items, page=page.page, limit=page.limit, total=total)

    def add_visit(self, user_id: int, visit_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO user_visits(user_id, visit_id) VALUES(%s,%s)",
                (int(user_id), int(visit_id)),
            )

    def remove_visit(self, user_id: int, visit_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM user_visits WHERE user_id=%s AND visit_id=%s",
                (int(user_id), int(visit_id)),
            )
