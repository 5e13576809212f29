from __future__ import annotations

from typing import Iterable, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_bool
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, full_name, department, role, employee_code, is_active"


def _row_to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        full_name=r["full_name"],
        department=r.get("department"),
        role=Role(r.get("role") or Role.STAFF.value),
        employee_code=r.get("employee_code"),
        is_active=to_bool(r.get("is_active", 1)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> User | None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def list_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        ids = [int(u) for u in user_ids]
        if not ids:
            return []
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE user_id IN ({placeholders}) ORDER BY user_id",
                tuple(ids),
            )
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_active(self, *, department: str | None = None) -> Sequence[User]:
        sql = f"SELECT {_COLUMNS} FROM users WHERE is_active=1"
        params: list[object] = []
        if department:
            sql += " AND department=%s"
            params.append(department)
        sql += " ORDER BY user_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_user(r) for r in fetchall(cur)]
