"""Wildcard permission resolution.

Rules are evaluated in order, first match wins:
  1. no principal                         -> deny
  2. principal holds the super admin role -> allow
  3. literal permission is granted        -> allow
  4. fewer than two segments              -> deny
  5. "{resource}.*" is granted            -> allow
  6. "{resource}.manage" is granted       -> allow
  7.                                      -> deny

Matching is single level: "a.b.c" only ever checks "a.b.c", "a.*" and
"a.manage".
"""

from enum import Enum
from typing import Iterable, Optional

from citadel.common.logger import get_logger
from citadel.core.config import Settings, get_settings

from .exceptions import AuthorizationDenied
from .permissions import manage_permission, split_permission, wildcard_permission
from .store import DEFAULT_GUARD, PermissionStore, Principal

logger = get_logger(__name__)


class Decision(str, Enum):
    """Outcome of an authorization check."""

    ALLOW = "allow"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is Decision.ALLOW


class WildcardAuthorizer:
    """Decides whether a principal satisfies a requested permission.

    Holds no mutable state; every decision reads the store afresh, so a
    revoked grant takes effect on the very next call.
    """

    def __init__(
        self,
        store: PermissionStore,
        *,
        super_admin_role: str = "Super Admin",
        default_guard: str = DEFAULT_GUARD,
    ):
        self.store = store
        self.super_admin_role = super_admin_role
        self.default_guard = default_guard

    @classmethod
    def from_settings(cls, store: PermissionStore, settings: Optional[Settings] = None) -> "WildcardAuthorizer":
        settings = settings or get_settings()
        return cls(
            store,
            super_admin_role=settings.super_admin_role,
            default_guard=settings.permission_guard,
        )

    def authorize(
        self,
        principal: Optional[Principal],
        permission: str,
        guard: Optional[str] = None,
    ) -> Decision:
        """Resolve permission for principal within guard.

        Args:
            principal: The identity being checked, or None when unauthenticated
            permission: Non-empty dot-delimited permission string
            guard: Guard to evaluate in; the configured default when omitted

        Returns:
            Decision.ALLOW or Decision.DENY

        Raises:
            ValueError: If permission is not a non-empty string
        """
        if not isinstance(permission, str) or not permission:
            raise ValueError(f"Permission must be a non-empty string, got {permission!r}")

        guard = guard or self.default_guard
        decision = self._resolve(principal, permission, guard)

        principal_id = principal.id if principal is not None else None
        if decision.allowed:
            logger.debug("allow %s for principal=%s guard=%s", permission, principal_id, guard)
        else:
            logger.info("deny %s for principal=%s guard=%s", permission, principal_id, guard)
        return decision

    def _resolve(self, principal: Optional[Principal], permission: str, guard: str) -> Decision:
        if principal is None:
            return Decision.DENY

        if self.store.has_role(principal, self.super_admin_role, guard):
            return Decision.ALLOW

        granted = self.store.effective_permissions(principal, guard)
        if permission in granted:
            return Decision.ALLOW

        parts = split_permission(permission)
        if len(parts) < 2:
            return Decision.DENY

        resource = parts[0]
        if wildcard_permission(resource) in granted:
            return Decision.ALLOW
        if manage_permission(resource) in granted:
            return Decision.ALLOW

        return Decision.DENY

    def can(self, principal: Optional[Principal], permission: str, guard: Optional[str] = None) -> bool:
        return self.authorize(principal, permission, guard).allowed

    def can_any(self, principal: Optional[Principal], permissions: Iterable[str], guard: Optional[str] = None) -> bool:
        """Check if principal satisfies at least one of permissions."""
        return any(self.can(principal, p, guard) for p in permissions)

    def can_all(self, principal: Optional[Principal], permissions: Iterable[str], guard: Optional[str] = None) -> bool:
        """Check if principal satisfies every one of permissions."""
        return all(self.can(principal, p, guard) for p in permissions)

    def require_authorization(
        self,
        principal: Optional[Principal],
        permission: str,
        guard: Optional[str] = None,
    ) -> None:
        """Raise AuthorizationDenied unless principal satisfies permission."""
        guard = guard or self.default_guard
        if not self.authorize(principal, permission, guard).allowed:
            raise AuthorizationDenied(permission, guard)
