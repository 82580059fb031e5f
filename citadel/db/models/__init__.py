"""Database models for Citadel."""

from citadel.db.models.permission import Permission
from citadel.db.models.role import Role
from citadel.db.models.user import User
from citadel.db.models.grants import role_permissions, user_permissions, user_roles

__all__ = [
    "Permission",
    "Role",
    "User",
    "role_permissions",
    "user_permissions",
    "user_roles",
]
