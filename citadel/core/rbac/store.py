"""Permission store contract and in-memory implementation.

The authorizer only ever reads from a store. Administrative mutations
(role assignment, direct grants, role permission syncing) live on the
concrete implementations and enforce guard consistency.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Set, Tuple

from .exceptions import GuardMismatch, PermissionNotFound, RoleNotFound

DEFAULT_GUARD = "api"


@dataclass(frozen=True)
class Principal:
    """An identity that can hold roles and direct permissions."""

    id: Any
    guard: str = DEFAULT_GUARD


class PermissionStore(ABC):
    """Read interface consumed by the authorizer."""

    @abstractmethod
    def roles_of(self, principal: Principal, guard: str) -> Set[str]:
        """Names of the roles assigned to principal within guard."""

    @abstractmethod
    def effective_permissions(self, principal: Principal, guard: str) -> Set[str]:
        """Direct grants plus permissions of all assigned roles, within guard."""

    @abstractmethod
    def has_role(self, principal: Principal, role_name: str, guard: str) -> bool:
        """Check whether principal holds role_name within guard."""

    @staticmethod
    def resolve_grant_guard(principal: Principal, guard: Optional[str]) -> str:
        """Guard used for a grant; it must match the principal's guard."""
        guard = guard or principal.guard
        if guard != principal.guard:
            raise GuardMismatch(expected=principal.guard, given=guard)
        return guard


class InMemoryPermissionStore(PermissionStore):
    """Dict-backed store for tests, fixtures and embedded use.

    Roles and permissions are keyed by (name, guard). Principals are keyed
    by id; a principal's grants only ever carry its own guard.
    """

    def __init__(self, default_guard: str = DEFAULT_GUARD):
        self.default_guard = default_guard
        self._lock = threading.RLock()
        self._permissions: Set[Tuple[str, str]] = set()
        self._roles: Dict[Tuple[str, str], Set[str]] = {}
        self._principal_roles: Dict[Any, Set[Tuple[str, str]]] = {}
        self._principal_permissions: Dict[Any, Set[Tuple[str, str]]] = {}

    # -- creation ---------------------------------------------------------

    def find_or_create_permission(self, name: str, guard: Optional[str] = None) -> str:
        with self._lock:
            self._permissions.add((name, guard or self.default_guard))
        return name

    def find_or_create_role(
        self,
        name: str,
        guard: Optional[str] = None,
        permissions: Optional[Iterable[str]] = None,
    ) -> str:
        guard = guard or self.default_guard
        with self._lock:
            self._roles.setdefault((name, guard), set())
            if permissions is not None:
                self.sync_role_permissions(name, permissions, guard)
        return name

    # -- lookups ----------------------------------------------------------

    def _require_permission(self, name: str, guard: str) -> Tuple[str, str]:
        if (name, guard) in self._permissions:
            return (name, guard)
        for other_name, other_guard in self._permissions:
            if other_name == name:
                raise GuardMismatch(expected=guard, given=other_guard, name=name)
        raise PermissionNotFound(name, guard)

    def _require_role(self, name: str, guard: str) -> Tuple[str, str]:
        if (name, guard) in self._roles:
            return (name, guard)
        for other_name, other_guard in self._roles:
            if other_name == name:
                raise GuardMismatch(expected=guard, given=other_guard, name=name)
        raise RoleNotFound(name, guard)

    def role_names(self, guard: Optional[str] = None) -> Set[str]:
        guard = guard or self.default_guard
        with self._lock:
            return {name for name, role_guard in self._roles if role_guard == guard}

    def role_permissions(self, role_name: str, guard: Optional[str] = None) -> Set[str]:
        guard = guard or self.default_guard
        with self._lock:
            return set(self._roles[self._require_role(role_name, guard)])

    # -- role permissions -------------------------------------------------

    def give_permission_to_role(self, role_name: str, *permissions: str, guard: Optional[str] = None) -> None:
        guard = guard or self.default_guard
        with self._lock:
            key = self._require_role(role_name, guard)
            for name in permissions:
                self._require_permission(name, guard)
            self._roles[key].update(permissions)

    def revoke_permission_from_role(self, role_name: str, *permissions: str, guard: Optional[str] = None) -> None:
        guard = guard or self.default_guard
        with self._lock:
            key = self._require_role(role_name, guard)
            for name in permissions:
                self._require_permission(name, guard)
            self._roles[key].difference_update(permissions)

    def sync_role_permissions(self, role_name: str, permissions: Iterable[str], guard: Optional[str] = None) -> None:
        """Replace the role's permissions with exactly the given set."""
        guard = guard or self.default_guard
        permissions = list(permissions)
        with self._lock:
            key = self._require_role(role_name, guard)
            for name in permissions:
                self._require_permission(name, guard)
            self._roles[key] = set(permissions)

    # -- principal grants -------------------------------------------------

    def assign_role(self, principal: Principal, *role_names: str, guard: Optional[str] = None) -> None:
        guard = self.resolve_grant_guard(principal, guard)
        with self._lock:
            keys = [self._require_role(name, guard) for name in role_names]
            self._principal_roles.setdefault(principal.id, set()).update(keys)

    def remove_role(self, principal: Principal, role_name: str, guard: Optional[str] = None) -> None:
        """Detach a role from principal; the role itself is kept."""
        guard = self.resolve_grant_guard(principal, guard)
        with self._lock:
            key = self._require_role(role_name, guard)
            self._principal_roles.get(principal.id, set()).discard(key)

    def grant_permission(self, principal: Principal, *permissions: str, guard: Optional[str] = None) -> None:
        guard = self.resolve_grant_guard(principal, guard)
        with self._lock:
            keys = [self._require_permission(name, guard) for name in permissions]
            self._principal_permissions.setdefault(principal.id, set()).update(keys)

    def revoke_permission(self, principal: Principal, *permissions: str, guard: Optional[str] = None) -> None:
        guard = self.resolve_grant_guard(principal, guard)
        with self._lock:
            keys = [self._require_permission(name, guard) for name in permissions]
            self._principal_permissions.get(principal.id, set()).difference_update(keys)

    # -- reads ------------------------------------------------------------

    def roles_of(self, principal: Principal, guard: str) -> Set[str]:
        if principal is None:
            return set()
        with self._lock:
            return {
                name
                for name, role_guard in self._principal_roles.get(principal.id, ())
                if role_guard == guard
            }

    def has_role(self, principal: Principal, role_name: str, guard: str) -> bool:
        return role_name in self.roles_of(principal, guard)

    def direct_permissions(self, principal: Principal, guard: str) -> Set[str]:
        if principal is None:
            return set()
        with self._lock:
            return {
                name
                for name, perm_guard in self._principal_permissions.get(principal.id, ())
                if perm_guard == guard
            }

    def permissions_via_roles(self, principal: Principal, guard: str) -> Set[str]:
        with self._lock:
            permissions: Set[str] = set()
            for role_name in self.roles_of(principal, guard):
                permissions |= self._roles.get((role_name, guard), set())
            return permissions

    def effective_permissions(self, principal: Principal, guard: str) -> Set[str]:
        with self._lock:
            return self.direct_permissions(principal, guard) | self.permissions_via_roles(principal, guard)
