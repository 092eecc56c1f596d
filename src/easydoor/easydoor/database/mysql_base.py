from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from mysql.connector import errorcode
from mysql.connector import errors as mysql_errors

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
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
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(err: Exception) -> bool:
    return isinstance(err, mysql_errors.IntegrityError) and getattr(err, "errno", None) == errorcode.ER_DUP_ENTRY


def where_clause(clauses: Sequence[str]) -> str:
    return ("WHERE " + " AND ".join(clauses)) if clauses else ""


def set_clause(fields: Mapping[str, Any], columns: Mapping[str, str]) -> Tuple[str, List[Any]]:
    """Build "col1=%s, col2=%s" for a partial update.

    `columns` maps domain field names to column names; unknown fields are a
    programming error (services validate patches before they get here).
    """
    parts: list[str] = []
    params: list[Any] = []
    for field, value in fields.items():
        column = columns[field]
        parts.append(f"{column}=%s")
        params.append(value.value if hasattr(value, "value") else value)
    return ", ".join(parts), params


def in_placeholders(values: Iterable[Any]) -> str:
    return ", ".join(["%s"] * len(list(values)))


def guard_clause(expected: Mapping[str, Any], columns: Mapping[str, str]) -> Tuple[str, List[Any]]:
    """Build the " AND col=%s AND other IS NULL" tail of a compare-and-swap UPDATE."""
    parts: list[str] = []
    params: list[Any] = []
    for field, value in expected.items():
        column = columns[field]
        if value is None:
            parts.append(f" AND {column} IS NULL")
        else:
            parts.append(f" AND {column}=%s")
            params.append(value.value if hasattr(value, "value") else value)
    return "".join(parts), params
