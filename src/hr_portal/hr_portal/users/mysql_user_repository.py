from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import User
from .repository import UserRepository

_SELECT_USER = """
    SELECT u.user_id, u.username, u.password_hash, u.role, u.employee_id, u.is_active,
           CONCAT(e.first_name, ' ', e.last_name) AS full_name
    FROM users u
    JOIN employees e ON e.employee_id = u.employee_id
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        username=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        employee_id=int(row["employee_id"]),
        full_name=row.get("full_name") or "",
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_USER} WHERE {where}=%s", (value,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("u.user_id", int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        return self._get_one("u.username", username)

    def get_by_employee_id(self, employee_id: int) -> Optional[User]:
        return self._get_one("u.employee_id", int(employee_id))

    def create_user(self, *, username: str, password_hash: str, role: Role, employee_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users (username, password_hash, role, employee_id)
                VALUES (%s, %s, %s, %s)
                """,
                (username, password_hash, role.value, int(employee_id)),
            )
            return int(cur.lastrowid)

    def update_password(self, user_id: int, *, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE user_id=%s", (password_hash, int(user_id)))
            return cur.rowcount > 0

    def set_active(self, employee_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE employee_id=%s", (1 if is_active else 0, int(employee_id)))
            return cur.rowcount > 0
