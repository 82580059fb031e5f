"""Default role definitions for Citadel.

Defines the 4 standard roles with their permission sets:
1. Super Admin - bypasses every permission check (no explicit grants)
2. Admin - wildcard access to everything except system management
3. Moderator - user review and full media management
4. User - the role given to newly registered users

The super admin and default user role names are configurable, so the role
table is built from settings rather than declared as a constant.
"""

from typing import Dict, List, Optional

from citadel.core.config import Settings, get_settings

ADMIN_ROLE = "Admin"
MODERATOR_ROLE = "Moderator"

# Admin: wildcard permissions for most resources except system
ADMIN_PERMISSIONS = [
    "users.*",
    "roles.*",
    "permissions.*",
    "media.*",
    "analytics.*",
    "api.*",
]

# Moderator: specific user permissions, all media permissions
MODERATOR_PERMISSIONS = [
    "users.view",
    "users.update",
    "roles.view",
    "media.*",
    "analytics.view",
    "api.access",
]

# User: basic permissions for their own media
USER_PERMISSIONS = [
    "users.view",  # limited further by business logic
    "media.view",
    "media.upload",
    "api.access",
]


def get_default_roles(settings: Optional[Settings] = None) -> Dict[str, dict]:
    """Get all default role definitions keyed by role name."""
    settings = settings or get_settings()
    return {
        settings.super_admin_role: {
            "description": "Implicitly granted every permission of its guard",
            "permissions": [],
        },
        ADMIN_ROLE: {
            "description": "Full access to users, roles, media, analytics and API",
            "permissions": ADMIN_PERMISSIONS,
        },
        MODERATOR_ROLE: {
            "description": "Reviews users and manages all media",
            "permissions": MODERATOR_PERMISSIONS,
        },
        settings.default_user_role: {
            "description": "Default role assigned on registration",
            "permissions": USER_PERMISSIONS,
        },
    }


def get_default_role_permissions(role_name: str, settings: Optional[Settings] = None) -> List[str]:
    """Get permissions list for a default role."""
    role = get_default_roles(settings).get(role_name)
    if role is None:
        raise ValueError(f"Unknown default role: {role_name}")
    return list(role["permissions"])
