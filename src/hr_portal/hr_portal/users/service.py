from __future__ import annotations

import logging

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH, TEMP_PASSWORD
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from .principal import Principal
from .repository import UserRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Use cases: login, password change, login accounts for new employees."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> Principal:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hash values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password")

        return Principal(user_id=user.user_id, employee_id=user.employee_id, role=user.role, name=user.full_name)

    def change_password(self, principal: Principal, *, current_password: str, new_password: str, confirm_password: str) -> None:
        user = self._users.get_by_id(principal.user_id)
        if not user:
            raise NotFoundError("User not found")

        if not check_password_hash(user.password_hash, current_password or ""):
            raise ValidationError("Current password is incorrect")
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)
        if new_password != confirm_password:
            raise ValidationError("New passwords do not match")

        self._users.update_password(user.user_id, password_hash=generate_password_hash(new_password))
        logger.info("Password changed for user %s", user.user_id)

    def create_account(self, *, employee_id: int, username: str, role: Role = Role.EMPLOYEE, password: str = TEMP_PASSWORD) -> int:
        username = require_non_empty(username, "Username")
        if self._users.get_by_username(username):
            raise ConflictError("Username already exists")

        return self._users.create_user(
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
            employee_id=int(employee_id),
        )

    def set_login_enabled(self, employee_id: int, *, enabled: bool) -> None:
        self._users.set_active(int(employee_id), is_active=enabled)
