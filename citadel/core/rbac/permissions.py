"""Permission names for Citadel RBAC.

Permission string format: "resource.action", dot-delimited. The first
segment is the resource, everything after the first dot is the action
(convention is a single action segment).

Two action suffixes cover every action on a resource:
  - users.*       wildcard
  - users.manage  management shorthand

Examples:
  - users.view
  - roles.assign
  - media.*
"""

from typing import Dict, List, NamedTuple, Tuple

SEPARATOR = "."
WILDCARD_ACTION = "*"
MANAGE_ACTION = "manage"


class PermissionName(NamedTuple):
    """A permission name split into resource and action."""
    resource: str
    action: str

    def __str__(self) -> str:
        return f"{self.resource}{SEPARATOR}{self.action}"

    @property
    def is_wildcard(self) -> bool:
        return self.action == WILDCARD_ACTION

    @classmethod
    def from_string(cls, perm_str: str) -> "PermissionName":
        """Parse a permission string like 'users.view'."""
        resource, sep, action = perm_str.partition(SEPARATOR)
        if not sep or not resource or not action:
            raise ValueError(f"Invalid permission format: {perm_str}")
        return cls(resource, action)


def split_permission(perm_str: str) -> List[str]:
    """Split a permission string into its dot-delimited segments."""
    return perm_str.split(SEPARATOR)


def wildcard_permission(resource: str) -> str:
    """The permission granting every action on resource."""
    return f"{resource}{SEPARATOR}{WILDCARD_ACTION}"


def manage_permission(resource: str) -> str:
    """The management permission, equivalent to the wildcard for resource."""
    return f"{resource}{SEPARATOR}{MANAGE_ACTION}"


# Permission catalogue seeded at bootstrap.
# Maps each resource to its actions, in seeding order.
PERMISSION_CATALOGUE: Dict[str, Tuple[str, ...]] = {
    "users": ("view", "create", "update", "delete", "manage", "*"),
    "roles": ("view", "create", "update", "delete", "manage", "assign", "*"),
    "permissions": ("view", "create", "update", "delete", "manage", "*"),
    "media": ("view", "upload", "update", "delete", "manage", "*"),
    "system": ("manage", "configure", "backup", "restore", "*"),
    "analytics": ("view", "export", "*"),
    "api": ("access", "admin", "*"),
}


def get_permissions_for_resource(resource: str) -> List[str]:
    """Get all catalogued permission strings for a resource."""
    return [
        str(PermissionName(resource, action))
        for action in PERMISSION_CATALOGUE.get(resource, ())
    ]


def get_all_permissions() -> List[str]:
    """Get all catalogued permission strings, in seeding order."""
    permissions = []
    for resource in PERMISSION_CATALOGUE:
        permissions.extend(get_permissions_for_resource(resource))
    return permissions


def group_by_resource(names) -> Dict[str, List[str]]:
    """Group permission names by resource.

    Names without an action segment are collected under "general".
    """
    groups: Dict[str, List[str]] = {}
    for name in names:
        parts = split_permission(name)
        key = parts[0] if len(parts) > 1 else "general"
        groups.setdefault(key, []).append(name)
    return groups
