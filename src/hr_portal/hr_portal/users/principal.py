from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Principal:
    """Request-scoped identity resolved once from the session cookie."""

    user_id: int
    employee_id: int
    role: Role
    name: str = ""

    @property
    def is_hr(self) -> bool:
        return self.role == Role.HR

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER

    @classmethod
    def from_session(cls, session: Mapping) -> Optional["Principal"]:
        user_id = session.get("user_id")
        employee_id = session.get("employee_id")
        if not user_id or not employee_id:
            return None
        try:
            role = Role(session.get("role"))
        except ValueError:
            return None
        return cls(user_id=int(user_id), employee_id=int(employee_id), role=role, name=session.get("name") or "")
