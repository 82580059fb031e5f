"""SQL-backed permission store.

Reads are issued as fresh queries on every call, so a grant revoked in the
current session (after flush) or committed by another request is visible to
the very next authorization decision. Mutations flush but never commit;
committing is the caller's responsibility.
"""

from typing import Iterable, List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from citadel.common.logger import get_logger
from citadel.core.rbac.exceptions import (
    GuardMismatch,
    PermissionNotFound,
    PrincipalNotFound,
    RoleNotFound,
)
from citadel.core.rbac.store import DEFAULT_GUARD, PermissionStore, Principal
from citadel.db.models import Permission, Role, User, role_permissions, user_permissions, user_roles

logger = get_logger(__name__)


class SqlPermissionStore(PermissionStore):
    """Permission store over the roles/permissions/grant tables."""

    def __init__(self, db: Session, default_guard: str = DEFAULT_GUARD):
        self.db = db
        self.default_guard = default_guard

    # -- lookups ----------------------------------------------------------

    def find_permission(self, name: str, guard: Optional[str] = None) -> Permission:
        """Get a permission by name within guard.

        Raises:
            GuardMismatch: If the name only exists under another guard
            PermissionNotFound: If the name does not exist at all
        """
        guard = guard or self.default_guard
        permission = self.db.query(Permission).filter(
            Permission.name == name, Permission.guard_name == guard
        ).first()
        if permission:
            return permission

        other = self.db.query(Permission).filter(Permission.name == name).first()
        if other:
            raise GuardMismatch(expected=guard, given=other.guard_name, name=name)
        raise PermissionNotFound(name, guard)

    def find_role(self, name: str, guard: Optional[str] = None) -> Role:
        """Get a role by name within guard.

        Raises:
            GuardMismatch: If the name only exists under another guard
            RoleNotFound: If the name does not exist at all
        """
        guard = guard or self.default_guard
        role = self.db.query(Role).filter(Role.name == name, Role.guard_name == guard).first()
        if role:
            return role

        other = self.db.query(Role).filter(Role.name == name).first()
        if other:
            raise GuardMismatch(expected=guard, given=other.guard_name, name=name)
        raise RoleNotFound(name, guard)

    def _lookup(self, model, **filters):
        return self.db.query(model).filter_by(**filters).first()

    def _get_or_create(self, model, **filters):
        """Return (instance, created), tolerating a concurrent insert.

        The insert runs inside a savepoint; if another writer created the
        same row first, the unique constraint fails, only the savepoint is
        rolled back and the existing row is returned.
        """
        existing = self._lookup(model, **filters)
        if existing is not None:
            return existing, False

        instance = model(**filters)
        try:
            with self.db.begin_nested():
                self.db.add(instance)
        except IntegrityError:
            logger.info("%s %s was created concurrently", model.__name__, filters)
            return self.db.query(model).filter_by(**filters).one(), False
        return instance, True

    def find_or_create_permission(self, name: str, guard: Optional[str] = None) -> Permission:
        permission, _ = self._get_or_create(Permission, name=name, guard_name=guard or self.default_guard)
        return permission

    def find_or_create_role(
        self,
        name: str,
        guard: Optional[str] = None,
        permissions: Optional[Iterable[str]] = None,
    ) -> Role:
        guard = guard or self.default_guard
        role, created = self._get_or_create(Role, name=name, guard_name=guard)
        if created:
            logger.info("Created role %s (guard %s)", name, guard)

        if permissions is not None:
            self.sync_role_permissions(name, permissions, guard)
        return role

    def _get_user(self, principal: Principal) -> User:
        user = self.db.get(User, principal.id)
        if user is None:
            raise PrincipalNotFound(principal.id)
        return user

    def list_roles(self, guard: Optional[str] = None, name: Optional[str] = None) -> List[Role]:
        """Roles of guard ordered by name, optionally filtered to one name."""
        query = self.db.query(Role).filter(Role.guard_name == (guard or self.default_guard))
        if name:
            query = query.filter(Role.name == name)
        return query.order_by(Role.name).all()

    def role_permissions(self, role_name: str, guard: Optional[str] = None) -> Set[str]:
        return {p.name for p in self.find_role(role_name, guard).permissions}

    # -- role permissions -------------------------------------------------

    def give_permission_to_role(self, role_name: str, *permissions: str, guard: Optional[str] = None) -> None:
        role = self.find_role(role_name, guard)
        for name in permissions:
            permission = self.find_permission(name, role.guard_name)
            if permission not in role.permissions:
                role.permissions.append(permission)
        self.db.flush()

    def revoke_permission_from_role(self, role_name: str, *permissions: str, guard: Optional[str] = None) -> None:
        role = self.find_role(role_name, guard)
        for name in permissions:
            permission = self.find_permission(name, role.guard_name)
            if permission in role.permissions:
                role.permissions.remove(permission)
        self.db.flush()

    def sync_role_permissions(self, role_name: str, permissions: Iterable[str], guard: Optional[str] = None) -> None:
        """Replace the role's permissions with exactly the given set."""
        role = self.find_role(role_name, guard)
        role.permissions = [self.find_permission(name, role.guard_name) for name in dict.fromkeys(permissions)]
        self.db.flush()

    # -- principal grants -------------------------------------------------

    def assign_role(self, principal: Principal, *role_names: str, guard: Optional[str] = None) -> None:
        guard = self.resolve_grant_guard(principal, guard)
        user = self._get_user(principal)
        roles = [self.find_role(name, guard) for name in role_names]
        for role in roles:
            if role not in user.roles:
                user.roles.append(role)
        self.db.flush()
        logger.info("Assigned roles %s to principal %s", ", ".join(role_names), principal.id)

    def remove_role(self, principal: Principal, role_name: str, guard: Optional[str] = None) -> None:
        """Detach a role from principal; the role itself is kept."""
        guard = self.resolve_grant_guard(principal, guard)
        user = self._get_user(principal)
        role = self.find_role(role_name, guard)
        if role in user.roles:
            user.roles.remove(role)
        self.db.flush()
        logger.info("Removed role %s from principal %s", role_name, principal.id)

    def grant_permission(self, principal: Principal, *permissions: str, guard: Optional[str] = None) -> None:
        guard = self.resolve_grant_guard(principal, guard)
        user = self._get_user(principal)
        found = [self.find_permission(name, guard) for name in permissions]
        for permission in found:
            if permission not in user.permissions:
                user.permissions.append(permission)
        self.db.flush()

    def revoke_permission(self, principal: Principal, *permissions: str, guard: Optional[str] = None) -> None:
        guard = self.resolve_grant_guard(principal, guard)
        user = self._get_user(principal)
        found = [self.find_permission(name, guard) for name in permissions]
        for permission in found:
            if permission in user.permissions:
                user.permissions.remove(permission)
        self.db.flush()

    # -- reads ------------------------------------------------------------

    def roles_of(self, principal: Principal, guard: str) -> Set[str]:
        rows = (
            self.db.query(Role.name)
            .join(user_roles, user_roles.c.role_id == Role.id)
            .filter(user_roles.c.user_id == principal.id, Role.guard_name == guard)
            .all()
        )
        return {name for (name,) in rows}

    def has_role(self, principal: Principal, role_name: str, guard: str) -> bool:
        match = (
            self.db.query(Role.id)
            .join(user_roles, user_roles.c.role_id == Role.id)
            .filter(
                user_roles.c.user_id == principal.id,
                Role.name == role_name,
                Role.guard_name == guard,
            )
            .first()
        )
        return match is not None

    def direct_permissions(self, principal: Principal, guard: str) -> Set[str]:
        rows = (
            self.db.query(Permission.name)
            .join(user_permissions, user_permissions.c.permission_id == Permission.id)
            .filter(user_permissions.c.user_id == principal.id, Permission.guard_name == guard)
            .all()
        )
        return {name for (name,) in rows}

    def permissions_via_roles(self, principal: Principal, guard: str) -> Set[str]:
        rows = (
            self.db.query(Permission.name)
            .join(role_permissions, role_permissions.c.permission_id == Permission.id)
            .join(Role, Role.id == role_permissions.c.role_id)
            .join(user_roles, user_roles.c.role_id == Role.id)
            .filter(
                user_roles.c.user_id == principal.id,
                Role.guard_name == guard,
                Permission.guard_name == guard,
            )
            .all()
        )
        return {name for (name,) in rows}

    def effective_permissions(self, principal: Principal, guard: str) -> Set[str]:
        return self.direct_permissions(principal, guard) | self.permissions_via_roles(principal, guard)
