"""Database seeding for Citadel.

Creates the permission catalogue, the default roles and super admin users.
Everything here is idempotent: running it twice leaves the same rows.
"""

from datetime import datetime
from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session

from citadel.common.logger import get_logger
from citadel.core.config import Settings, get_settings
from citadel.core.rbac.permissions import get_all_permissions
from citadel.core.rbac.roles import get_default_roles
from citadel.core.rbac.store import Principal
from citadel.core.security import get_password_hash
from citadel.db.models import Role, User
from citadel.db.store import SqlPermissionStore

logger = get_logger(__name__)


def seed_roles_and_permissions(db: Session, settings: Optional[Settings] = None) -> Dict[str, Role]:
    """
    Create the catalogued permissions and the default roles.

    Role permissions are synced, so re-seeding restores the default grants.

    Args:
        db: Database session
        settings: Settings providing role names and guard

    Returns:
        Dict mapping role name to Role object
    """
    settings = settings or get_settings()
    guard = settings.permission_guard
    store = SqlPermissionStore(db, default_guard=guard)

    for name in get_all_permissions():
        store.find_or_create_permission(name, guard)

    roles = {}
    for role_name, role_config in get_default_roles(settings).items():
        roles[role_name] = store.find_or_create_role(
            role_name, guard, permissions=role_config["permissions"]
        )

    logger.info("Roles and permissions seeded for guard %s", guard)
    logger.info("Super Admin role: %s", settings.super_admin_role)
    logger.info("Default User role: %s", settings.default_user_role)
    return roles


def create_super_admin(
    db: Session,
    *,
    name: str,
    email: str,
    password: str,
    settings: Optional[Settings] = None,
) -> Tuple[User, bool]:
    """
    Create a super admin user, or promote the user owning email.

    The super admin role is created if it does not exist yet.

    Args:
        db: Database session
        name: Display name for a new user
        email: Email address identifying the user
        password: Plain password for a new user
        settings: Settings providing the role name and guard

    Returns:
        Tuple of (user, created) where created is False for an existing user
    """
    settings = settings or get_settings()
    guard = settings.permission_guard
    store = SqlPermissionStore(db, default_guard=guard)
    store.find_or_create_role(settings.super_admin_role, guard)

    user = db.query(User).filter(User.email == email).first()
    created = user is None
    if created:
        user = User(
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            email_verified_at=datetime.utcnow(),
        )
        db.add(user)
        db.flush()

    store.assign_role(Principal(user.id, guard), settings.super_admin_role)
    logger.info("Super admin role assigned to %s (new user: %s)", email, created)
    return user, created
