from __future__ import annotations

from ..common.validators import require_int
from ..core.enums import Role
from ..core.exceptions import Forbidden
from .model import User
from .repository import UserRepository


class UserService:
    """Use case: resolve a caller id into an active user of an allowed role."""

    def __init__(self, users: UserRepository):
        self._users = users

    def require_role(self, user_id: int, *roles: Role) -> User:
        user = self._users.get_by_id(require_int(user_id, "userId"))
        if not user or not user.is_active:
            raise Forbidden("Unknown or inactive user")
        if roles and user.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise Forbidden(f"This action requires role: {allowed}")
        return user
