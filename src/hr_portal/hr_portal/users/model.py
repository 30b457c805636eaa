from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Login account linked to exactly one employee record.

    Note: plain data object (no DB access here).
    """

    user_id: int
    username: str
    password_hash: str
    role: Role
    employee_id: int
    full_name: str = ""
    is_active: bool = True
